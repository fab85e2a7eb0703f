#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Final

from multidict import CIMultiDict
from yarl import URL

from .exceptions import SigningFailedError
from .target import SigningTarget

if TYPE_CHECKING:
    from .interceptor import OutgoingRequest

TRACE_HEADER: Final = "X-Amzn-Trace-Id"
"""Header carrying X-Ray trace identifiers. It is never part of the signature."""

JSONSerializer = Callable[[Any], str]


@dataclass(frozen=True, kw_only=True)
class SignableRequest:
    """The projection of an outgoing request that is fed to the signer."""

    method: str
    protocol: str
    """The URL scheme, e.g. ``https``."""

    host: str
    port: int | None = None
    """The port, if one was given explicitly in the URL."""

    path: str = "/"
    """The raw path followed by ``?`` and the raw query string when there is one."""

    headers: CIMultiDict[str]
    body: bytes | None = None
    service: str
    region: str

    @property
    def url(self) -> str:
        """The request URL, still percent-encoded as it will be sent."""
        host = f"[{self.host}]" if ":" in self.host else self.host
        port = "" if self.port is None else f":{self.port}"
        return f"{self.protocol}://{host}{port}{self.path}"


def build_signable_request(
    request: "OutgoingRequest",
    target: SigningTarget,
    *,
    json_serializer: JSONSerializer = json.dumps,
) -> SignableRequest:
    """Project an outgoing request into the form the signer consumes.

    The trace header is left out, every other header is kept. A JSON payload is
    serialized with ``json_serializer``, which must be the serializer the HTTP
    client uses to transmit it.
    """
    url = URL(request.url)
    if not url.raw_host:
        raise SigningFailedError(f"Cannot sign a request without a host: {url}")

    path = url.raw_path or "/"
    if url.raw_query_string:
        path = f"{path}?{url.raw_query_string}"

    headers = CIMultiDict(request.headers)
    headers.popall(TRACE_HEADER, None)

    body: bytes | None
    if request.json is not None:
        body = json_serializer(request.json).encode("utf-8")
    elif isinstance(request.body, str):
        body = request.body.encode("utf-8")
    elif request.body is not None:
        body = bytes(request.body)
    else:
        body = None

    return SignableRequest(
        method=request.method.upper(),
        protocol=url.scheme,
        host=url.raw_host,
        port=url.explicit_port,
        path=path,
        headers=headers,
        body=body,
        service=target.service,
        region=target.region,
    )
