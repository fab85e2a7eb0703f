#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import logging
from collections.abc import Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Any, Final

from multidict import CIMultiDict, MutableMultiMapping
from yarl import URL

from .canonical import TRACE_HEADER, build_signable_request
from .config import SigV4Config
from .exceptions import SigningFailedError
from .signers import SigV4Signer, format_date
from .target import infer_target

logger: Final = logging.getLogger(__name__)


@dataclass(kw_only=True)
class OutgoingRequest:
    """A request about to be transmitted by an HTTP client.

    Only ``headers`` is modified by the interceptor.
    """

    method: str
    url: URL | str
    headers: MutableMapping[str, str] = field(default_factory=CIMultiDict)
    body: bytes | str | None = None
    json: Any = None
    """A structured payload the client will transmit as JSON."""

    is_stream: bool = False
    """Whether the body is streamed and can only be read once."""


class SigV4Interceptor:
    """Signs outgoing requests with AWS Signature Version 4 before they are sent.

    Credentials are resolved again for every request. Requests with streamed bodies
    are passed through unsigned.
    """

    def __init__(
        self, config: SigV4Config | None = None, *, signer: SigV4Signer | None = None
    ) -> None:
        self._config = config or SigV4Config()
        self._signer = signer or SigV4Signer()

    @property
    def config(self) -> SigV4Config:
        return self._config

    async def before_request(self, request: OutgoingRequest) -> bool:
        """Sign the request in place.

        :param request: The request to sign. Its headers are replaced by the signed
            header set once signing succeeds and are left untouched otherwise.
        :returns: True if the request was signed, False if it was passed through
            because its body is streamed.
        :raises CredentialsUnavailableError: No provider could resolve credentials.
        :raises SigningFailedError: The request could not be signed.
        """
        if request.is_stream:
            logger.debug("Not signing %s request with a streamed body.", request.method)
            return False

        identity = await self._config.credentials_resolver.get_identity()

        target = infer_target(
            request.url, service=self._config.service, region=self._config.region
        )
        logger.debug(
            "Signing %s request for service %r in region %s.",
            request.method,
            target.service,
            target.region,
        )

        try:
            signable = build_signable_request(
                request, target, json_serializer=self._config.json_serializer
            )
            signed_headers = self._signer.sign(
                request=signable,
                identity=identity,
                date=format_date(self._config.clock()),
            )
        except SigningFailedError:
            raise
        except (TypeError, ValueError) as e:
            raise SigningFailedError(f"Unable to sign request: {e}") from e

        trace_headers = _find_headers(request.headers, TRACE_HEADER)
        _replace_headers(request.headers, signed_headers)
        if isinstance(request.headers, MutableMultiMapping):
            request.headers.extend(trace_headers)
        else:
            for name, value in trace_headers:
                request.headers[name] = value
        return True


def _find_headers(headers: Mapping[str, str], name: str) -> list[tuple[str, str]]:
    target = name.lower()
    return [(key, value) for key, value in headers.items() if key.lower() == target]


def _replace_headers(
    headers: MutableMapping[str, str], signed_headers: CIMultiDict[str]
) -> None:
    headers.clear()
    if isinstance(headers, MutableMultiMapping):
        headers.extend(signed_headers)
        return

    names: dict[str, str] = {}
    for name in signed_headers.keys():
        names.setdefault(name.lower(), name)
    for name in names.values():
        headers[name] = ",".join(signed_headers.getall(name))
