#  Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
#  SPDX-License-Identifier: Apache-2.0
import asyncio
import json
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from aiohttp_sigv4 import (
    AWSCredentialsIdentity,
    CredentialsUnavailableError,
    EnvironmentCredentialsResolver,
    OutgoingRequest,
    SigningFailedError,
    SigV4Config,
    SigV4Interceptor,
    StaticCredentialsResolver,
    TargetAmbiguousWarning,
)
from multidict import CIMultiDict

TRACE_ID = "Root=1-5759e988-bd862e3fe1be46a994272793;Sampled=1"
SIGNING_DATE = "20200701T100000Z"


@pytest.fixture
def interceptor(
    static_provider: StaticCredentialsResolver, fixed_clock
) -> SigV4Interceptor:
    config = SigV4Config(
        providers=static_provider, service="execute-api", clock=fixed_clock
    )
    return SigV4Interceptor(config)


def _request(**kwargs) -> OutgoingRequest:
    kwargs.setdefault("method", "GET")
    kwargs.setdefault("url", "https://example.test/resource")
    return OutgoingRequest(**kwargs)


async def test_adds_signing_headers(interceptor: SigV4Interceptor):
    request = _request()
    assert await interceptor.before_request(request) is True

    assert request.headers["X-Amz-Date"] == SIGNING_DATE
    assert request.headers["Authorization"] == (
        "AWS4-HMAC-SHA256 "
        "Credential=unicorn/20200701/us-east-1/execute-api/aws4_request, "
        "SignedHeaders=host;x-amz-date, "
        "Signature=a60be0ce6aff1c71638a0915a53ecc8f690937b20983d0f7e5e8e595228dc6e8"
    )


async def test_scheme_does_not_change_signature(interceptor: SigV4Interceptor):
    secure = _request()
    plain = _request(url="http://example.test/resource")
    await interceptor.before_request(secure)
    await interceptor.before_request(plain)
    assert secure.headers["Authorization"] == plain.headers["Authorization"]


async def test_signature_is_deterministic(interceptor: SigV4Interceptor):
    first, second = _request(), _request()
    await interceptor.before_request(first)
    await interceptor.before_request(second)
    assert first.headers["Authorization"] == second.headers["Authorization"]


async def test_signing_twice_is_stable(interceptor: SigV4Interceptor):
    request = _request()
    await interceptor.before_request(request)
    signed = CIMultiDict(request.headers)
    await interceptor.before_request(request)
    assert request.headers == signed
    assert len(request.headers.getall("Authorization")) == 1


async def test_query_changes_signature(interceptor: SigV4Interceptor):
    plain = _request()
    with_query = _request(url="https://example.test/resource?page=2")
    await interceptor.before_request(plain)
    await interceptor.before_request(with_query)
    assert plain.headers["Authorization"] != with_query.headers["Authorization"]


async def test_trace_header_is_preserved(interceptor: SigV4Interceptor):
    untraced = _request()
    traced = _request(headers=CIMultiDict({"x-amzn-trace-id": TRACE_ID}))
    await interceptor.before_request(untraced)
    await interceptor.before_request(traced)

    assert ("x-amzn-trace-id", TRACE_ID) in list(traced.headers.items())
    assert "x-amzn-trace-id" not in traced.headers["Authorization"]
    assert traced.headers["Authorization"] == untraced.headers["Authorization"]



async def test_repeated_trace_headers_are_preserved(interceptor: SigV4Interceptor):
    headers = CIMultiDict(
        [("X-Amzn-Trace-Id", "Root=1"), ("X-Amzn-Trace-Id", "Self=2")]
    )
    request = _request(headers=headers)
    await interceptor.before_request(request)

    assert request.headers.getall("X-Amzn-Trace-Id") == ["Root=1", "Self=2"]
    assert "x-amzn-trace-id" not in request.headers["Authorization"]


async def test_existing_headers_are_kept(interceptor: SigV4Interceptor):
    request = _request(headers=CIMultiDict({"X-Custom": "value"}))
    await interceptor.before_request(request)
    assert request.headers["X-Custom"] == "value"
    assert "SignedHeaders=host;x-amz-date;x-custom," in request.headers["Authorization"]


async def test_plain_dict_headers(interceptor: SigV4Interceptor):
    headers = {"X-Custom": "value", "X-Amzn-Trace-Id": TRACE_ID}
    request = _request(headers=headers)
    await interceptor.before_request(request)

    assert request.headers is headers
    assert headers["X-Custom"] == "value"
    assert headers["X-Amzn-Trace-Id"] == TRACE_ID
    assert headers["X-Amz-Date"] == SIGNING_DATE
    assert "Authorization" in headers


async def test_json_body_matches_serialized_body(interceptor: SigV4Interceptor):
    payload = {"message": "hello", "count": 3}
    structured = _request(method="POST", json=payload)
    serialized = _request(method="POST", body=json.dumps(payload))
    other = _request(method="POST", json={"message": "bye"})
    for request in (structured, serialized, other):
        await interceptor.before_request(request)

    assert structured.headers["Authorization"] == serialized.headers["Authorization"]
    assert structured.headers["Authorization"] != other.headers["Authorization"]


async def test_streamed_body_is_not_signed():
    provider = AsyncMock()
    interceptor = SigV4Interceptor(SigV4Config(providers=provider, service="s3"))
    headers = CIMultiDict({"Content-Type": "application/octet-stream"})
    request = _request(method="PUT", headers=headers, is_stream=True)

    assert await interceptor.before_request(request) is False
    assert request.headers == CIMultiDict(
        {"Content-Type": "application/octet-stream"}
    )
    provider.get_identity.assert_not_called()


async def test_missing_credentials_leave_request_unchanged(fixed_clock):
    config = SigV4Config(
        providers=[EnvironmentCredentialsResolver(environ={})],
        service="execute-api",
        clock=fixed_clock,
    )
    headers = CIMultiDict({"X-Custom": "value"})
    request = _request(headers=headers)

    with pytest.raises(CredentialsUnavailableError):
        await SigV4Interceptor(config).before_request(request)
    assert request.headers == CIMultiDict({"X-Custom": "value"})


async def test_signing_failure_leaves_request_unchanged(fixed_clock):
    expired = AWSCredentialsIdentity(
        access_key_id="unicorn",
        secret_access_key="rainbow",
        expiration=datetime.now(UTC) - timedelta(hours=1),
    )
    config = SigV4Config(
        providers=StaticCredentialsResolver(credentials=expired),
        service="execute-api",
        clock=fixed_clock,
    )
    request = _request(headers=CIMultiDict({"X-Custom": "value"}))

    with pytest.raises(SigningFailedError):
        await SigV4Interceptor(config).before_request(request)
    assert request.headers == CIMultiDict({"X-Custom": "value"})


async def test_credentials_resolved_per_request(fixed_clock):
    provider = AsyncMock()
    provider.get_identity.side_effect = [
        AWSCredentialsIdentity(access_key_id="first", secret_access_key="one"),
        AWSCredentialsIdentity(access_key_id="second", secret_access_key="two"),
    ]
    interceptor = SigV4Interceptor(
        SigV4Config(providers=[provider], service="execute-api", clock=fixed_clock)
    )
    first, second = _request(), _request()
    await interceptor.before_request(first)
    await interceptor.before_request(second)

    assert "Credential=first/" in first.headers["Authorization"]
    assert "Credential=second/" in second.headers["Authorization"]


async def test_target_inferred_from_host(static_provider, fixed_clock):
    interceptor = SigV4Interceptor(
        SigV4Config(providers=static_provider, clock=fixed_clock)
    )
    request = _request(url="https://abc123.execute-api.eu-west-1.amazonaws.com/prod")
    await interceptor.before_request(request)
    assert (
        "Credential=unicorn/20200701/eu-west-1/execute-api/aws4_request"
        in request.headers["Authorization"]
    )



async def test_target_inferred_from_custom_domain(static_provider, fixed_clock):
    interceptor = SigV4Interceptor(
        SigV4Config(providers=static_provider, clock=fixed_clock)
    )
    request = _request(url="https://svc.execute-api.eu-west-1.example.com/v0")
    await interceptor.before_request(request)
    assert request.headers["Authorization"] == (
        "AWS4-HMAC-SHA256 "
        "Credential=unicorn/20200701/eu-west-1/execute-api/aws4_request, "
        "SignedHeaders=host;x-amz-date, "
        "Signature=207f5d7eaf0bce681a5cb125e4fdb9dfbcfb7f19001d3d2991497add98aea6ed"
    )


async def test_unknown_service_warns(static_provider, fixed_clock):
    interceptor = SigV4Interceptor(
        SigV4Config(providers=static_provider, service="", clock=fixed_clock)
    )
    request = _request()
    with pytest.warns(TargetAmbiguousWarning):
        await interceptor.before_request(request)
    assert "/20200701/us-east-1//aws4_request" in request.headers["Authorization"]


async def test_cancellation_leaves_request_unchanged(fixed_clock):
    started = asyncio.Event()

    class BlockingProvider:
        async def get_identity(self) -> AWSCredentialsIdentity:
            started.set()
            await asyncio.Event().wait()
            raise AssertionError("unreachable")

    interceptor = SigV4Interceptor(
        SigV4Config(
            providers=[BlockingProvider()], service="execute-api", clock=fixed_clock
        )
    )
    request = _request(headers=CIMultiDict({"X-Custom": "value"}))
    task = asyncio.create_task(interceptor.before_request(request))
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert request.headers == CIMultiDict({"X-Custom": "value"})
