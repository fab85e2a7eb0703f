#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import os
from collections.abc import Mapping

from ..exceptions import CredentialsUnavailableError
from ..identity import AWSCredentialsIdentity, CredentialsProvider


class EnvironmentCredentialsResolver(CredentialsProvider):
    """Resolves AWS Credentials from environment variables.

    The variables are read from an explicit mapping. When none is given, a snapshot
    of ``os.environ`` is taken at construction time.
    """

    ACCESS_KEY_ID = "AWS_ACCESS_KEY_ID"
    SECRET_ACCESS_KEY = "AWS_SECRET_ACCESS_KEY"  # noqa: S105
    SESSION_TOKEN = "AWS_SESSION_TOKEN"  # noqa: S105
    ACCOUNT_ID = "AWS_ACCOUNT_ID"

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ: Mapping[str, str] = (
            dict(os.environ) if environ is None else environ
        )

    async def get_identity(self) -> AWSCredentialsIdentity:
        access_key_id = self._environ.get(self.ACCESS_KEY_ID) or None
        secret_access_key = self._environ.get(self.SECRET_ACCESS_KEY) or None

        if access_key_id is None or secret_access_key is None:
            raise CredentialsUnavailableError(
                f"{self.ACCESS_KEY_ID} and {self.SECRET_ACCESS_KEY} are required"
            )

        return AWSCredentialsIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=self._environ.get(self.SESSION_TOKEN) or None,
            account_id=self._environ.get(self.ACCOUNT_ID) or None,
        )
