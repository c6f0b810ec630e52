"""Tests for the form submission client."""

import json
from typing import List

import httpx
import pytest
from httpx import AsyncClient

from chatproxy.models import SubmissionFailure, SubmissionSuccess
from chatproxy.submission import (
    EMPTY_MESSAGE_ERROR,
    FALLBACK_RESPONSE,
    describe_error,
    submit_message,
)

from tests.conftest import FakeProvider


@pytest.mark.asyncio
async def test_success_through_proxy(proxy_transport: httpx.ASGITransport) -> None:
    """A good reply yields userMessage/aiResponse and fires the refresh hook."""
    refreshed: List[str] = []
    async with AsyncClient(transport=proxy_transport, base_url="http://test") as client:
        result = await submit_message(
            {"message": "hello"},
            proxy_url="http://test",
            client=client,
            on_success=refreshed.append,
        )

    assert isinstance(result, SubmissionSuccess)
    assert result.ok
    assert result.to_dict() == {"userMessage": "hello", "aiResponse": "hi there"}
    assert refreshed == ["/"]


@pytest.mark.parametrize("form", [{"message": "   "}, {"message": ""}, {}])
@pytest.mark.asyncio
async def test_empty_message_makes_no_call(form: dict) -> None:
    """Whitespace-only input is rejected before any request."""
    seen: List[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"aiResponse": "unused"})

    async with AsyncClient(transport=httpx.MockTransport(_handler)) as client:
        result = await submit_message(form, client=client)

    assert isinstance(result, SubmissionFailure)
    assert result.to_dict() == {"error": EMPTY_MESSAGE_ERROR}
    assert seen == []


@pytest.mark.asyncio
async def test_provider_network_fault(
    proxy_transport: httpx.ASGITransport, proxy_app: FakeProvider
) -> None:
    """A provider fault surfaces as a fallback reply plus an error descriptor."""

    def _fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    proxy_app.handler = _fail
    refreshed: List[str] = []

    async with AsyncClient(transport=proxy_transport, base_url="http://test") as client:
        result = await submit_message(
            {"message": "hello"},
            proxy_url="http://test",
            client=client,
            on_success=refreshed.append,
        )

    assert isinstance(result, SubmissionFailure)
    assert result.to_dict() == {
        "userMessage": "hello",
        "aiResponse": FALLBACK_RESPONSE,
        "error": "SubmissionError: An unexpected error occurred",
    }
    assert refreshed == []


@pytest.mark.asyncio
async def test_proxy_unreachable() -> None:
    """A transport failure talking to the proxy is reported by kind."""

    def _fail(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("All connection attempts failed", request=request)

    async with AsyncClient(transport=httpx.MockTransport(_fail)) as client:
        result = await submit_message({"message": "hi"}, client=client)

    assert not result.ok
    assert result.user_message == "hi"
    assert result.ai_response == FALLBACK_RESPONSE
    assert result.error == "ConnectError: All connection attempts failed"


@pytest.mark.asyncio
async def test_proxy_error_without_message() -> None:
    """An error status without an error field gets the generic message."""
    transport = httpx.MockTransport(lambda request: httpx.Response(502, json={}))

    async with AsyncClient(transport=transport) as client:
        result = await submit_message({"message": "hi"}, client=client)

    assert result.error == "SubmissionError: Failed to get response"


@pytest.mark.asyncio
async def test_unparseable_proxy_reply() -> None:
    """A non-JSON reply is converted to a failure result, not raised."""
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="oops"))

    async with AsyncClient(transport=transport) as client:
        result = await submit_message({"message": "hi"}, client=client)

    assert isinstance(result, SubmissionFailure)
    assert result.error.startswith("JSONDecodeError: ")


@pytest.mark.asyncio
async def test_posts_message_as_json() -> None:
    """The raw, untrimmed message is posted to /api/chat."""
    seen: List[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"aiResponse": "ok"})

    async with AsyncClient(transport=httpx.MockTransport(_handler)) as client:
        result = await submit_message(
            {"message": " padded "}, proxy_url="http://proxy:9000/", client=client
        )

    assert result.ok
    assert str(seen[0].url) == "http://proxy:9000/api/chat"
    assert json.loads(seen[0].content) == {"message": " padded "}


@pytest.mark.asyncio
async def test_refresh_hook_skipped_on_bad_reply() -> None:
    """A 200 without a usable aiResponse is a failure and does not refresh."""
    refreshed: List[str] = []
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"aiResponse": None})
    )

    async with AsyncClient(transport=transport) as client:
        result = await submit_message(
            {"message": "hi"}, client=client, on_success=refreshed.append
        )

    assert isinstance(result, SubmissionFailure)
    assert result.error.startswith("ValidationError: ")
    assert result.ai_response == FALLBACK_RESPONSE
    assert refreshed == []


@pytest.mark.parametrize("value", [5, b"bytes", ["hello"], object()])
@pytest.mark.asyncio
async def test_non_string_message_treated_as_empty(value: object) -> None:
    """Non-text form values are rejected without raising or calling out."""
    seen: List[httpx.Request] = []

    def _handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"aiResponse": "unused"})

    async with AsyncClient(transport=httpx.MockTransport(_handler)) as client:
        result = await submit_message({"message": value}, client=client)

    assert isinstance(result, SubmissionFailure)
    assert result.to_dict() == {"error": EMPTY_MESSAGE_ERROR}
    assert seen == []


def test_describe_error() -> None:
    assert describe_error(ValueError("bad value")) == "ValueError: bad value"
    assert describe_error(RuntimeError()) == "RuntimeError"
