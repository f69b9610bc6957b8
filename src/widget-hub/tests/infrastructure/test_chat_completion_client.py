"""Tests for ChatCompletionClient.

Tests cover:
- Plain relay and OpenAI chunk formats
- Stream termination on [DONE]
- HTTP and transport error mapping
"""

import json

import httpx
import pytest

from infrastructure.adapters.chat_completion_client import ChatCompletionClient, LlmClientError

MESSAGES = [{"role": "user", "content": "Suggest a widget for revenue"}]


def sse_body(*chunks: object) -> bytes:
    lines = []
    for chunk in chunks:
        payload = chunk if isinstance(chunk, str) else json.dumps(chunk)
        lines.append(f"data: {payload}\n\n")
    return "".join(lines).encode()


def client_for(handler, **kwargs) -> ChatCompletionClient:
    return ChatCompletionClient(api_url="http://llm.test/v1/chat/completions", transport=httpx.MockTransport(handler), **kwargs)


# ============================================================================
# STREAMING TESTS
# ============================================================================


class TestChatCompletionStreaming:
    """Test ChatCompletionClient.stream_chat."""

    @pytest.mark.asyncio
    async def test_accepts_both_chunk_formats(self) -> None:
        body = sse_body({"content": "Use a "}, {"choices": [{"delta": {"content": "metric card"}}]}, {"choices": []}, "[DONE]", {"content": "ignored"})
        client = client_for(lambda request: httpx.Response(200, content=body))

        chunks = [chunk async for chunk in client.stream_chat(MESSAGES)]

        assert chunks == ["Use a ", "metric card"]
        await client.close()

    @pytest.mark.asyncio
    async def test_request_body_and_headers(self) -> None:
        # Arrange
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, content=sse_body("[DONE]"))

        client = client_for(handler, api_key="secret", max_tokens=256, temperature=0.2)

        # Act
        text = await client.complete(MESSAGES, model="gpt-4.1")

        # Assert
        assert text == ""
        body = json.loads(captured[0].content)
        assert body == {"model": "gpt-4.1", "messages": MESSAGES, "stream": True, "max_tokens": 256, "temperature": 0.2}
        assert captured[0].headers["Authorization"] == "Bearer secret"
        await client.close()

    @pytest.mark.asyncio
    async def test_skips_malformed_lines(self) -> None:
        body = b": keep-alive\n\ndata: not-json\n\n" + sse_body({"content": "ok"}, "[DONE]")
        client = client_for(lambda request: httpx.Response(200, content=body))

        assert await client.complete(MESSAGES) == "ok"
        await client.close()


# ============================================================================
# ERROR TESTS
# ============================================================================


class TestChatCompletionErrors:
    """Test error mapping to LlmClientError."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status,retryable", [(400, False), (429, True), (503, True)])
    async def test_http_errors(self, status: int, retryable: bool) -> None:
        client = client_for(lambda request: httpx.Response(status, text="upstream failure"))

        with pytest.raises(LlmClientError) as exc_info:
            await client.complete(MESSAGES)

        error = exc_info.value
        assert error.message == "LLM API error"
        assert error.error_code == "llm_http_error"
        assert error.status_code == status
        assert error.is_retryable is retryable
        assert error.details["body"] == "upstream failure"

    @pytest.mark.asyncio
    async def test_connect_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = client_for(handler)

        with pytest.raises(LlmClientError) as exc_info:
            await client.complete(MESSAGES)

        assert exc_info.value.error_code == "llm_unavailable"
        assert exc_info.value.is_retryable is True
        assert exc_info.value.to_dict()["details"] == {"url": "http://llm.test/v1/chat/completions"}

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("too slow", request=request)

        client = client_for(handler)

        with pytest.raises(LlmClientError) as exc_info:
            await client.complete(MESSAGES)

        assert exc_info.value.error_code == "llm_timeout"
