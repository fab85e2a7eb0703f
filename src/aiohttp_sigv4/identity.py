#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable


@dataclass(kw_only=True, frozen=True)
class AWSCredentialsIdentity:
    access_key_id: str
    """A unique identifier for an AWS user or role."""

    secret_access_key: str
    """A secret key used in conjunction with the access key ID to authenticate
    programmatic access to AWS services."""

    session_token: str | None = None
    """A temporary token used to specify the current session for the supplied
    credentials."""

    expiration: datetime | None = None
    """The expiration time of the identity.

    If time zone is provided, it is updated to UTC. The value must always be in UTC.
    """

    account_id: str | None = None
    """The AWS account's ID."""

    def __post_init__(self) -> None:
        if self.expiration is not None:
            if self.expiration.tzinfo is None:
                expiration = self.expiration.replace(tzinfo=UTC)
            else:
                expiration = self.expiration.astimezone(UTC)
            object.__setattr__(self, "expiration", expiration)

    @property
    def is_expired(self) -> bool:
        """Whether the identity is expired."""
        if self.expiration is None:
            return False
        return datetime.now(tz=UTC) >= self.expiration

    def __repr__(self) -> str:
        return (
            f"AWSCredentialsIdentity(access_key_id={self.access_key_id!r}, "
            f"expiration={self.expiration!r}, account_id={self.account_id!r})"
        )


@runtime_checkable
class CredentialsProvider(Protocol):
    """Used to load an `AWSCredentialsIdentity` from a given source.

    Providers signal that they have nothing to offer by raising
    :py:class:`aiohttp_sigv4.exceptions.CredentialsUnavailableError`.
    """

    async def get_identity(self) -> AWSCredentialsIdentity:
        """Load the credentials from this provider."""
        ...
