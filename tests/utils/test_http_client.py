import httpx
import pytest

from src.models.base_models import Token
from src.models.errors import ErrorCategory, RemoteRejectedError, TransportError
from src.utils.http_client import (
    AuthenticatedClient,
    CallResult,
    FailureKind,
    RequestDescriptor,
    error_from_call,
)

TOKEN = Token(value="access-1", expires_in=3600)


def make_client(handler):
    return AuthenticatedClient(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_call_without_token_builds_no_request(recorder):
    handler = recorder()
    client = make_client(handler)

    result = await client.call(RequestDescriptor(url="https://example.test/a"), Token())

    assert result.ok is False
    assert result.failure is FailureKind.REQUEST_INVALID
    assert handler.requests == []


@pytest.mark.asyncio
async def test_call_sets_bearer_and_content_type(recorder):
    handler = recorder(httpx.Response(200, json={"ok": True}))
    client = make_client(handler)

    result = await client.call(
        RequestDescriptor(
            url="https://example.test/a",
            headers={"Authorization": "Bearer attacker", "Accept-Language": "en-US"},
        ),
        TOKEN,
    )

    assert result.ok is True
    assert result.payload == {"ok": True}
    request = handler.requests[0]
    assert request.headers["authorization"] == "Bearer access-1"
    assert request.headers["content-type"] == "application/json"
    assert request.headers["accept-language"] == "en-US"


@pytest.mark.asyncio
async def test_binary_body_is_sent_verbatim(recorder):
    handler = recorder(httpx.Response(201, json={"resourceId": "r1"}))
    client = make_client(handler)
    data = b"\xff\xd8\xff\xe0binary"

    await client.call(
        RequestDescriptor(
            url="https://example.test/upload",
            method="POST",
            content_type="image/jpeg",
            body=data,
        ),
        TOKEN,
    )

    request = handler.requests[0]
    assert request.method == "POST"
    assert request.content == data
    assert request.headers["content-type"] == "image/jpeg"


@pytest.mark.asyncio
async def test_remote_rejection_keeps_status_and_body(recorder):
    handler = recorder(httpx.Response(403, json={"error": {"message": "forbidden"}}))
    client = make_client(handler)

    result = await client.call(RequestDescriptor(url="https://example.test/a"), TOKEN)

    assert result.ok is False
    assert result.failure is FailureKind.REMOTE_REJECTED
    assert result.status_code == 403
    assert result.body == {"error": {"message": "forbidden"}}


@pytest.mark.asyncio
async def test_non_json_error_body_is_kept_as_text(recorder):
    handler = recorder(httpx.Response(500, text="upstream exploded"))
    client = make_client(handler)

    result = await client.call(RequestDescriptor(url="https://example.test/a"), TOKEN)

    assert result.body == "upstream exploded"


@pytest.mark.asyncio
async def test_transport_error_is_no_response(recorder):
    handler = recorder(httpx.ConnectError("connection refused"))
    client = make_client(handler)

    result = await client.call(RequestDescriptor(url="https://example.test/a"), TOKEN)

    assert result.ok is False
    assert result.failure is FailureKind.NO_RESPONSE
    assert result.status_code is None


@pytest.mark.asyncio
@pytest.mark.parametrize("url", ["not a url", "ftp://example.test/file", "/relative/path"])
async def test_unusable_url_is_request_invalid(recorder, url):
    handler = recorder()
    client = make_client(handler)

    result = await client.call(RequestDescriptor(url=url), TOKEN)

    assert result.failure is FailureKind.REQUEST_INVALID
    assert handler.requests == []


@pytest.mark.asyncio
async def test_binary_response_returns_bytes(recorder):
    handler = recorder(
        httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"})
    )
    client = make_client(handler)

    result = await client.call(
        RequestDescriptor(url="https://example.test/r", binary_response=True), TOKEN
    )

    assert result.payload == b"\x89PNG"
    assert result.content_type == "image/png"


@pytest.mark.asyncio
async def test_empty_success_body_decodes_to_none(recorder):
    handler = recorder(httpx.Response(204))
    client = make_client(handler)

    result = await client.call(
        RequestDescriptor(url="https://example.test/a", method="DELETE"), TOKEN
    )

    assert result.ok is True
    assert result.payload is None


def test_error_from_call_maps_failure_kinds():
    rejected = error_from_call(
        CallResult.failed(FailureKind.REMOTE_REJECTED, status_code=404, body={"e": 1}),
        "Failed to get profile",
    )
    assert isinstance(rejected, RemoteRejectedError)
    assert rejected.status_code == 404
    assert rejected.body == {"e": 1}

    for kind in (FailureKind.NO_RESPONSE, FailureKind.REQUEST_INVALID):
        error = error_from_call(CallResult.failed(kind, reason="x"), "Failed")
        assert isinstance(error, TransportError)
        assert error.category is ErrorCategory.TRANSPORT_FAILURE


@pytest.mark.asyncio
async def test_valid_descriptor_reaches_transport(recorder):
    handler = recorder(httpx.Response(200, json={"profile": {}}))
    client = make_client(handler)

    result = await client.call(
        RequestDescriptor(url="https://example.test/v1/users/me/profile2?fields=onlineId"),
        TOKEN,
    )

    assert result.failure is None
    assert result.ok is True
    assert len(handler.requests) == 1
    assert handler.requests[0].url.params["fields"] == "onlineId"


@pytest.mark.asyncio
async def test_unencodable_header_is_request_invalid(recorder):
    handler = recorder()
    client = make_client(handler)

    result = await client.call(
        RequestDescriptor(url="https://example.test/a", headers={"X-Name": "café ☕"}),
        TOKEN,
    )

    assert result.failure is FailureKind.REQUEST_INVALID
    assert handler.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [httpx.DecodingError("Error -3 while decompressing data"), httpx.TooManyRedirects("loop")],
)
async def test_request_errors_are_no_response(recorder, error):
    handler = recorder(error)
    client = make_client(handler)

    result = await client.call(RequestDescriptor(url="https://example.test/a"), TOKEN)

    assert result.ok is False
    assert result.failure is FailureKind.NO_RESPONSE
