#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from .canonical import JSONSerializer
from .credentials_resolvers.chain import CredentialsResolverChain
from .identity import CredentialsProvider

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(kw_only=True)
class SigV4Config:
    """Settings shared by every request signed through one client."""

    providers: CredentialsProvider | Sequence[CredentialsProvider] | None = None
    """A provider or an ordered sequence of providers used to look up credentials.

    If not set, credentials are read from environment variables.
    """

    service: str | None = None
    """The service requests are signed for.

    If not set, it is inferred from the host of each request.
    """

    region: str | None = None
    """The region requests are signed for.

    If not set, it is inferred from the host of each request and defaults to
    ``us-east-1``.
    """

    clock: Clock = _utc_now
    """Source of the signing timestamp."""

    json_serializer: JSONSerializer = json.dumps
    """Serializer the HTTP client uses for JSON payloads."""

    credentials_resolver: CredentialsResolverChain = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.service = self.service or None
        self.region = self.region or None

        providers: Sequence[CredentialsProvider] | None
        if self.providers is None:
            providers = None
        elif isinstance(self.providers, CredentialsProvider):
            providers = (self.providers,)
        else:
            providers = tuple(self.providers)
        self.credentials_resolver = CredentialsResolverChain(providers)
