#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import configparser
import os
from collections.abc import Mapping
from pathlib import Path

from ..exceptions import CredentialsUnavailableError
from ..identity import AWSCredentialsIdentity, CredentialsProvider

_DEFAULT_PROFILE = "default"


class ProfileCredentialsResolver(CredentialsProvider):
    """Resolves AWS Credentials from a profile in the shared credentials file.

    The file location and profile name come from ``AWS_SHARED_CREDENTIALS_FILE`` and
    ``AWS_PROFILE`` in the supplied environment unless set explicitly.
    """

    ENV_VAR_FILE = "AWS_SHARED_CREDENTIALS_FILE"
    ENV_VAR_PROFILE = "AWS_PROFILE"

    def __init__(
        self,
        *,
        profile: str | None = None,
        path: str | Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        environ = dict(os.environ) if environ is None else environ
        self._profile = (
            profile or environ.get(self.ENV_VAR_PROFILE) or _DEFAULT_PROFILE
        )
        if path is None:
            path = environ.get(self.ENV_VAR_FILE) or (
                Path.home() / ".aws" / "credentials"
            )
        self._path = Path(path).expanduser()

    async def get_identity(self) -> AWSCredentialsIdentity:
        values = await asyncio.to_thread(self._read_profile)

        access_key_id = values.get("aws_access_key_id") or None
        secret_access_key = values.get("aws_secret_access_key") or None
        if access_key_id is None or secret_access_key is None:
            raise CredentialsUnavailableError(
                f"Profile '{self._profile}' in {self._path} does not define "
                "aws_access_key_id and aws_secret_access_key"
            )

        return AWSCredentialsIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=values.get("aws_session_token") or None,
            account_id=values.get("aws_account_id") or None,
        )

    def _read_profile(self) -> dict[str, str]:
        if not self._path.is_file():
            raise CredentialsUnavailableError(
                f"Shared credentials file {self._path} does not exist"
            )

        parser = configparser.ConfigParser(interpolation=None)
        try:
            parser.read(self._path, encoding="utf-8")
        except (configparser.Error, UnicodeDecodeError) as e:
            raise CredentialsUnavailableError(
                f"Unable to parse shared credentials file {self._path}"
            ) from e

        if self._profile not in parser:
            raise CredentialsUnavailableError(
                f"Profile '{self._profile}' not found in {self._path}"
            )
        return dict(parser[self._profile])
