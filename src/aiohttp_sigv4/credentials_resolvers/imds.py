#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import json
import logging
from collections.abc import Mapping
from contextlib import nullcontext
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import Any, Final, Literal

import aiohttp
from yarl import URL

from .._version import __version__
from ..exceptions import CredentialsUnavailableError
from ..identity import AWSCredentialsIdentity, CredentialsProvider

logger: Final = logging.getLogger(__name__)

_USER_AGENT = f"aiohttp-sigv4-imds-client/{__version__}"
_DEFAULT_TIMEOUT = 2


@dataclass(init=False)
class Config:
    """Configuration for EC2Metadata."""

    _HOST_MAPPING = MappingProxyType(
        {"IPv4": "169.254.169.254", "IPv6": "[fd00:ec2::254]"}
    )
    _MIN_TTL = 5
    _MAX_TTL = 21600

    endpoint_uri: URL
    endpoint_mode: Literal["IPv4", "IPv6"]
    token_ttl: int
    timeout: float
    ec2_instance_profile_name: str | None

    def __init__(
        self,
        *,
        endpoint_uri: URL | str | None = None,
        endpoint_mode: Literal["IPv4", "IPv6"] = "IPv4",
        token_ttl: int = _MAX_TTL,
        timeout: float = _DEFAULT_TIMEOUT,
        ec2_instance_profile_name: str | None = None,
    ):
        self.endpoint_mode = endpoint_mode
        self.endpoint_uri = self._resolve_endpoint(endpoint_uri, endpoint_mode)
        self.token_ttl = self._validate_token_ttl(token_ttl)
        self.timeout = timeout
        self.ec2_instance_profile_name = ec2_instance_profile_name

    def _validate_token_ttl(self, ttl: int) -> int:
        if not self._MIN_TTL <= ttl <= self._MAX_TTL:
            raise ValueError(
                f"Token TTL must be between {self._MIN_TTL} and {self._MAX_TTL} "
                "seconds."
            )
        return ttl

    def _resolve_endpoint(
        self, endpoint_uri: URL | str | None, endpoint_mode: Literal["IPv4", "IPv6"]
    ) -> URL:
        if endpoint_uri is not None:
            return URL(endpoint_uri)

        host = self._HOST_MAPPING.get(endpoint_mode, self._HOST_MAPPING["IPv4"])
        return URL(f"http://{host}:80")


class Token:
    """Represents an IMDSv2 session token with a value and method for checking
    expiration."""

    def __init__(self, value: str, ttl: int):
        self._value = value
        self._ttl = ttl
        self._created_time = datetime.now()

    def is_expired(self) -> bool:
        return datetime.now() - self._created_time >= timedelta(seconds=self._ttl)

    @property
    def value(self) -> str:
        return self._value


class EC2Metadata:
    """Minimal IMDSv2 client.

    Requests go through the given ``aiohttp.ClientSession`` when one is supplied,
    otherwise a short-lived session is opened for each call. The session must not
    carry the signing middleware.
    """

    _TOKEN_PATH = "/latest/api/token"  # noqa: S105

    def __init__(
        self,
        config: Config | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self._config = config or Config()
        self._session = session
        self._refresh_lock = asyncio.Lock()
        self._token: Token | None = None

    def _should_refresh(self) -> bool:
        return self._token is None or self._token.is_expired()

    async def _refresh(self) -> None:
        async with self._refresh_lock:
            if not self._should_refresh():
                return
            value = await self._send(
                "PUT",
                self._TOKEN_PATH,
                {"x-aws-ec2-metadata-token-ttl-seconds": str(self._config.token_ttl)},
            )
            self._token = Token(value, self._config.token_ttl)

    async def get_token(self) -> Token:
        if self._should_refresh():
            await self._refresh()
        assert self._token is not None  # noqa: S101
        return self._token

    async def get(self, *, path: str) -> str:
        token = await self.get_token()
        return await self._send("GET", path, {"x-aws-ec2-metadata-token": token.value})

    async def _send(self, method: str, path: str, headers: Mapping[str, str]) -> str:
        url = self._config.endpoint_uri.with_path(path)
        timeout = aiohttp.ClientTimeout(total=self._config.timeout)
        session_context = (
            nullcontext(self._session)
            if self._session is not None
            else aiohttp.ClientSession()
        )
        logger.debug("Sending %s request to instance metadata at %s", method, path)
        try:
            async with session_context as session:
                async with session.request(
                    method,
                    url,
                    headers={"User-Agent": _USER_AGENT, **headers},
                    timeout=timeout,
                ) as response:
                    body = await response.text()
                    status = response.status
        except (aiohttp.ClientError, TimeoutError) as e:
            raise CredentialsUnavailableError(
                f"Unable to reach the instance metadata service at {url}"
            ) from e

        if status != 200:
            raise CredentialsUnavailableError(
                f"Instance metadata service returned {status} for {path}"
            )
        return body


class IMDSCredentialsResolver(CredentialsProvider):
    """Resolves AWS Credentials from an EC2 Instance Metadata Service (IMDS) client."""

    _METADATA_PATH_BASE = "/latest/meta-data/iam/security-credentials"

    def __init__(
        self,
        config: Config | None = None,
        session: aiohttp.ClientSession | None = None,
    ):
        self._config = config or Config()
        self._ec2_metadata_client = EC2Metadata(config=self._config, session=session)
        self._credentials: AWSCredentialsIdentity | None = None
        self._profile_name = self._config.ec2_instance_profile_name

    async def get_identity(self) -> AWSCredentialsIdentity:
        if (
            self._credentials is not None
            and self._credentials.expiration
            and datetime.now(UTC) < self._credentials.expiration
        ):
            return self._credentials

        profile = self._profile_name
        if profile is None:
            profiles = await self._ec2_metadata_client.get(
                path=f"{self._METADATA_PATH_BASE}/"
            )
            profile = profiles.strip().split("\n")[0].strip()
            if not profile:
                raise CredentialsUnavailableError(
                    "No instance profile is attached to this instance"
                )

        creds_str = await self._ec2_metadata_client.get(
            path=f"{self._METADATA_PATH_BASE}/{profile}"
        )
        creds = self._parse_credentials(creds_str)

        access_key_id = creds.get("AccessKeyId")
        secret_access_key = creds.get("SecretAccessKey")
        if access_key_id is None or secret_access_key is None:
            raise CredentialsUnavailableError(
                "AccessKeyId and SecretAccessKey are required"
            )

        expiration = creds.get("Expiration")
        if expiration is not None:
            expiration = datetime.fromisoformat(expiration.replace("Z", "+00:00"))

        self._credentials = AWSCredentialsIdentity(
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=creds.get("Token"),
            expiration=expiration,
            account_id=creds.get("AccountId"),
        )
        return self._credentials

    def _parse_credentials(self, creds_str: str) -> dict[str, Any]:
        try:
            creds = json.loads(creds_str)
        except json.JSONDecodeError as e:
            raise CredentialsUnavailableError(
                "Instance metadata service returned malformed credentials"
            ) from e
        if not isinstance(creds, dict):
            raise CredentialsUnavailableError(
                "Instance metadata service returned malformed credentials"
            )
        code = creds.get("Code", "Success")
        if code != "Success":
            raise CredentialsUnavailableError(
                f"Instance metadata service reported credentials status {code}"
            )
        return creds
