"""Tests for HttpTransport using httpx.MockTransport.

Tests verify:
- Request shape: URL, bearer auth, provider headers, payload
- Dynamic max_tokens budget
- Response parsing and token usage
- Error mapping onto ProviderTimeoutError / ProviderTransportError /
  ProviderResponseError
"""

import json
from collections.abc import Callable

import httpx
import pytest

from model_comparison.core.exceptions import (
    ProviderResponseError,
    ProviderTimeoutError,
    ProviderTransportError,
)
from model_comparison.models.model_id import ModelIdentifier
from model_comparison.models.prompt import Prompt
from model_comparison.providers.base import ProviderHandle
from model_comparison.providers.http_transport import HttpTransport, completion_token_budget


Handler = Callable[[httpx.Request], httpx.Response]


pytestmark = pytest.mark.unit


def completion_body(content: str | None = "Pong", total_tokens: int | None = 7) -> dict[str, object]:
    """Helper to build an OpenAI-compatible response body."""
    body: dict[str, object] = {
        "id": "chatcmpl-test",
        "object": "chat.completion",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}}],
    }
    if total_tokens is not None:
        body["usage"] = {"prompt_tokens": 2, "completion_tokens": 5, "total_tokens": total_tokens}
    return body


def make_transport(handler: Handler) -> HttpTransport:
    """Helper to create an HttpTransport on a mock httpx client."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTransport(client=client, temperature=0.7)


# =============================================================================
# Token Budget
# =============================================================================


class TestCompletionTokenBudget:
    """Test max_tokens selection."""

    @pytest.mark.parametrize(
        ("length", "expected"),
        [(1, 1000), (1500, 1000), (2000, 1000), (2001, 4000), (50_000, 4000)],
    )
    def test_budget(self, length: int, expected: int) -> None:
        """Budget is clamped to [1000, 4000], full above 2,000 characters."""
        assert completion_token_budget(length) == expected


# =============================================================================
# Request Shape
# =============================================================================


class TestRequestShape:
    """Test what HttpTransport sends."""

    async def test_openrouter_request(self, openrouter_handle: ProviderHandle) -> None:
        """OpenRouter gets bearer auth, referer/title headers and a JSON payload."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=completion_body())

        transport = make_transport(handler)
        await transport.complete(
            openrouter_handle, ModelIdentifier.create("x-ai/grok-3:free"), Prompt.create("Ping"), 5.0
        )

        request = seen[0]
        assert str(request.url) == "https://openrouter.test/api/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer router-key"
        assert request.headers["HTTP-Referer"] == "https://example.test"
        assert request.headers["X-Title"] == "Tests"
        assert request.headers["Accept"] == "application/json"

        payload = json.loads(request.content)
        assert payload["model"] == "x-ai/grok-3:free"
        assert payload["messages"] == [{"role": "user", "content": "Ping"}]
        assert payload["stream"] is False
        assert payload["temperature"] == 0.7
        assert payload["max_tokens"] == 1000

    async def test_nanogpt_request(self, nanogpt_handle: ProviderHandle) -> None:
        """NanoGPT accepts event streams and gets the model name without suffix."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=completion_body())

        transport = make_transport(handler)
        await transport.complete(
            nanogpt_handle, ModelIdentifier.create("deepseek:chat"), Prompt.create("Ping"), 5.0
        )

        assert seen[0].headers["Accept"] == "text/event-stream"
        assert json.loads(seen[0].content)["model"] == "deepseek"

    async def test_trailing_slash_in_base_url(self) -> None:
        """Base URLs with a trailing slash do not produce a double slash."""
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=completion_body())

        handle = ProviderHandle(name="p", base_url="https://p.test/v1/", api_key="k", models=("a/one",))
        await make_transport(handler).complete(
            handle, ModelIdentifier.create("a/one"), Prompt.create("Ping"), 5.0
        )
        assert str(seen[0].url) == "https://p.test/v1/chat/completions"


# =============================================================================
# Response Parsing
# =============================================================================


class TestResponseParsing:
    """Test successful responses."""

    async def test_returns_text_and_tokens(self, openrouter_handle: ProviderHandle) -> None:
        """First choice text and usage.total_tokens are returned."""
        transport = make_transport(lambda _: httpx.Response(200, json=completion_body("Pong", 42)))

        response = await transport.complete(
            openrouter_handle, ModelIdentifier.create("openai/gpt-4o-mini"), Prompt.create("Ping"), 5.0
        )

        assert response.text == "Pong"
        assert response.total_tokens == 42
        assert response.raw["id"] == "chatcmpl-test"

    async def test_missing_usage(self, openrouter_handle: ProviderHandle) -> None:
        """Token count is None when usage is not reported."""
        transport = make_transport(lambda _: httpx.Response(200, json=completion_body("Pong", None)))

        response = await transport.complete(
            openrouter_handle, ModelIdentifier.create("openai/gpt-4o-mini"), Prompt.create("Ping"), 5.0
        )

        assert response.total_tokens is None


# =============================================================================
# Error Mapping
# =============================================================================


class TestErrorMapping:
    """Test failures are mapped onto the provider error taxonomy."""

    async def test_missing_api_key(self) -> None:
        """No credential means ProviderResponseError without a request."""
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(200, json=completion_body())

        handle = ProviderHandle(name="p", base_url="https://p.test", models=("a/one",))
        with pytest.raises(ProviderResponseError, match="API key is not configured"):
            await make_transport(handler).complete(
                handle, ModelIdentifier.create("a/one"), Prompt.create("Ping"), 5.0
            )
        assert calls == []

    async def test_timeout(self, openrouter_handle: ProviderHandle) -> None:
        """httpx timeouts become ProviderTimeoutError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        with pytest.raises(ProviderTimeoutError) as exc_info:
            await make_transport(handler).complete(
                openrouter_handle, ModelIdentifier.create("openai/gpt-4o-mini"), Prompt.create("Ping"), 5.0
            )
        assert exc_info.value.timeout_s == 5.0
        assert exc_info.value.provider == "OpenRouter"

    async def test_connection_error(self, openrouter_handle: ProviderHandle) -> None:
        """Connection failures become ProviderTransportError."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderTransportError, match="connection refused"):
            await make_transport(handler).complete(
                openrouter_handle, ModelIdentifier.create("openai/gpt-4o-mini"), Prompt.create("Ping"), 5.0
            )

    @pytest.mark.parametrize("status_code", [400, 401, 429, 500, 503])
    async def test_error_status(self, openrouter_handle: ProviderHandle, status_code: int) -> None:
        """Non-2xx statuses become ProviderResponseError with the status code."""
        transport = make_transport(lambda _: httpx.Response(status_code, text="upstream said no"))

        with pytest.raises(ProviderResponseError) as exc_info:
            await transport.complete(
                openrouter_handle, ModelIdentifier.create("openai/gpt-4o-mini"), Prompt.create("Ping"), 5.0
            )
        assert exc_info.value.status_code == status_code
        assert "upstream said no" in exc_info.value.message

    async def test_non_json_body(self, openrouter_handle: ProviderHandle) -> None:
        """A 200 that is not JSON is a response error."""
        transport = make_transport(lambda _: httpx.Response(200, text="<html>"))

        with pytest.raises(ProviderResponseError, match="not JSON"):
            await transport.complete(
                openrouter_handle, ModelIdentifier.create("openai/gpt-4o-mini"), Prompt.create("Ping"), 5.0
            )

    async def test_empty_choices(self, openrouter_handle: ProviderHandle) -> None:
        """A body without choices is a response error."""
        transport = make_transport(lambda _: httpx.Response(200, json={"choices": []}))

        with pytest.raises(ProviderResponseError, match="No response choices"):
            await transport.complete(
                openrouter_handle, ModelIdentifier.create("openai/gpt-4o-mini"), Prompt.create("Ping"), 5.0
            )

    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_content(self, openrouter_handle: ProviderHandle, content: str | None) -> None:
        """Empty message content is a response error."""
        transport = make_transport(lambda _: httpx.Response(200, json=completion_body(content)))

        with pytest.raises(ProviderResponseError, match="Empty response content"):
            await transport.complete(
                openrouter_handle, ModelIdentifier.create("openai/gpt-4o-mini"), Prompt.create("Ping"), 5.0
            )


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    """Test client ownership."""

    async def test_does_not_close_injected_client(self) -> None:
        """A caller-supplied client stays open."""
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda _: httpx.Response(200)))
        transport = HttpTransport(client=client)
        await transport.aclose()
        assert not client.is_closed
        await client.aclose()

    async def test_closes_own_client(self) -> None:
        """A self-created client is closed by aclose()."""
        transport = HttpTransport()
        await transport.aclose()
        assert transport._client.is_closed
