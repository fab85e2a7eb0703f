#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
"""Integration with the aiohttp client."""

import json
from collections.abc import Sequence
from typing import Any

import aiohttp
from aiohttp import payload
from aiohttp.client_middlewares import ClientHandlerType, ClientMiddlewareType

from .config import Clock, SigV4Config
from .identity import CredentialsProvider
from .interceptor import OutgoingRequest, SigV4Interceptor


class SigV4Middleware:
    """aiohttp client middleware that signs each request before it is sent.

    Requests whose body is not fully buffered in memory (async iterables, stream
    readers, file objects, multipart writers) are sent unsigned.
    """

    def __init__(
        self,
        config: SigV4Config | None = None,
        *,
        interceptor: SigV4Interceptor | None = None,
    ) -> None:
        self._interceptor = interceptor or SigV4Interceptor(config)

    async def __call__(
        self, request: aiohttp.ClientRequest, handler: ClientHandlerType
    ) -> aiohttp.ClientResponse:
        outgoing = await self._to_outgoing_request(request)
        await self._interceptor.before_request(outgoing)
        return await handler(request)

    async def _to_outgoing_request(
        self, request: aiohttp.ClientRequest
    ) -> OutgoingRequest:
        body = request.body
        if isinstance(body, payload.BytesPayload):
            # JSON, text and form bodies are already serialized at this point, so
            # these are exactly the bytes that go on the wire.
            return OutgoingRequest(
                method=request.method,
                url=request.url,
                headers=request.headers,
                body=await body.as_bytes(),
            )

        return OutgoingRequest(
            method=request.method,
            url=request.url,
            headers=request.headers,
            is_stream=isinstance(body, payload.Payload),
        )


def create_session(
    *,
    providers: CredentialsProvider | Sequence[CredentialsProvider] | None = None,
    service: str | None = None,
    region: str | None = None,
    clock: Clock | None = None,
    middlewares: Sequence[ClientMiddlewareType] = (),
    **session_kwargs: Any,
) -> aiohttp.ClientSession:
    """Create an ``aiohttp.ClientSession`` that signs every request with SigV4.

    The signing middleware runs after any ``middlewares`` passed in, so headers they
    add are covered by the signature.

    :param providers: A provider or an ordered sequence of providers used to look up
        credentials. Defaults to environment variables.
    :param service: The service requests are signed for. Inferred from the request
        host if not set. For API Gateway behind a custom domain this should be
        ``execute-api``.
    :param region: The region requests are signed for. Inferred from the request
        host if not set, falling back to ``us-east-1``.
    :param clock: Source of the signing timestamp.
    :param middlewares: Additional client middlewares.
    :param session_kwargs: Passed through to ``aiohttp.ClientSession``.
    """
    config = SigV4Config(
        providers=providers,
        service=service,
        region=region,
        json_serializer=session_kwargs.get("json_serialize", json.dumps),
        **({"clock": clock} if clock is not None else {}),
    )
    return aiohttp.ClientSession(
        middlewares=(*middlewares, SigV4Middleware(config)), **session_kwargs
    )
