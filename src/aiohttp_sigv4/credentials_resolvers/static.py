#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from ..identity import AWSCredentialsIdentity, CredentialsProvider


class StaticCredentialsResolver(CredentialsProvider):
    """Resolve Static AWS Credentials."""

    def __init__(self, *, credentials: AWSCredentialsIdentity) -> None:
        self._credentials = credentials

    async def get_identity(self) -> AWSCredentialsIdentity:
        return self._credentials
