"""Chat completion client.

Streams chat completions from an OpenAI-compatible endpoint. The endpoint is
called with ``stream: true`` and answers with server-sent events:

    data: {"content": "..."}                            (plain relay format)
    data: {"choices": [{"delta": {"content": "..."}}]}  (OpenAI format)
    data: [DONE]

Both chunk formats are accepted; the client yields the text content only.
"""

import json
import logging
import time
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any, Optional

import httpx
from opentelemetry import trace

from observability import llm_request_time, llm_requests

if TYPE_CHECKING:
    from neuroglia.hosting.web import WebApplicationBuilder

log = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class LlmClientError(Exception):
    """Error raised when the chat completion endpoint cannot serve a request.

    Attributes:
        message: Human-readable error message
        error_code: Categorized error code for programmatic handling
        status_code: HTTP status returned by the endpoint, if any
        is_retryable: Whether the request might succeed on retry
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: Optional[int] = None,
        is_retryable: bool = False,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.is_retryable = is_retryable
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "error_code": self.error_code,
            "status_code": self.status_code,
            "is_retryable": self.is_retryable,
            "details": self.details,
        }


class ChatCompletionClient:
    """Streaming client for a chat completion endpoint."""

    def __init__(
        self,
        api_url: str,
        api_key: str = "",
        model: str = "gpt-4.1-mini",
        timeout: float = 60.0,
        max_tokens: int | None = None,
        temperature: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._api_key = api_key
        self._model = model
        self._timeout = timeout
        self._max_tokens = max_tokens
        self._temperature = temperature
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def model(self) -> str:
        return self._model

    @staticmethod
    def configure(builder: "WebApplicationBuilder") -> None:
        from application.settings import app_settings

        client = ChatCompletionClient(
            api_url=app_settings.llm_api_url,
            api_key=app_settings.llm_api_key,
            model=app_settings.llm_model,
            timeout=app_settings.llm_timeout,
            max_tokens=app_settings.llm_max_tokens,
            temperature=app_settings.llm_temperature,
        )
        builder.services.add_singleton(ChatCompletionClient, singleton=client)
        log.info(f"Configured ChatCompletionClient for model {app_settings.llm_model}")

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        return self._client

    def _build_request_body(self, messages: list[dict[str, str]], model: str) -> dict[str, Any]:
        body: dict[str, Any] = {"model": model, "messages": messages, "stream": True}
        if self._max_tokens is not None:
            body["max_tokens"] = self._max_tokens
        if self._temperature is not None:
            body["temperature"] = self._temperature
        return body

    def _build_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "Accept": "text/event-stream"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    @staticmethod
    def _extract_content(chunk: dict[str, Any]) -> str:
        if "content" in chunk:
            return chunk.get("content") or ""
        choices = chunk.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("delta") or {}).get("content") or ""

    async def stream_chat(self, messages: list[dict[str, str]], model: str | None = None) -> AsyncIterator[str]:
        """Stream the completion of a conversation.

        Args:
            messages: Conversation as ``{"role": ..., "content": ...}`` dicts
            model: Model override

        Yields:
            Text chunks, in order

        Raises:
            LlmClientError: If the endpoint is unreachable or answers with an error
        """
        model = model or self._model
        client = await self._get_client()
        start_time = time.time()
        llm_requests.add(1, {"model": model})

        with tracer.start_as_current_span("llm.chat_stream") as span:
            span.set_attribute("llm.model", model)
            span.set_attribute("llm.message_count", len(messages))

            try:
                body = self._build_request_body(messages, model)
                async with client.stream("POST", self._api_url, json=body, headers=self._build_headers()) as response:
                    if response.status_code < 200 or response.status_code >= 300:
                        error_content = await response.aread()
                        error_text = error_content.decode("utf-8", errors="replace")
                        log.error(f"LLM HTTP error: {response.status_code} - {error_text}")
                        raise LlmClientError(
                            message="LLM API error",
                            error_code="llm_http_error",
                            status_code=response.status_code,
                            is_retryable=response.status_code >= 500 or response.status_code == 429,
                            details={"body": error_text[:500]},
                        )

                    chunk_count = 0
                    async for line in response.aiter_lines():
                        if not line or not line.startswith("data: "):
                            continue
                        data_str = line[6:]
                        if data_str.strip() == "[DONE]":
                            break
                        try:
                            chunk = json.loads(data_str)
                        except json.JSONDecodeError:
                            log.warning(f"Failed to parse LLM chunk: {data_str}")
                            continue
                        content = self._extract_content(chunk)
                        if content:
                            chunk_count += 1
                            yield content

                duration_ms = (time.time() - start_time) * 1000
                llm_request_time.record(duration_ms, {"model": model})
                span.set_attribute("llm.duration_ms", duration_ms)
                span.set_attribute("llm.chunk_count", chunk_count)
                log.debug(f"LLM stream completed: {chunk_count} chunks in {duration_ms:.0f}ms")

            except LlmClientError:
                span.set_attribute("error", True)
                raise
            except httpx.ConnectError as e:
                span.set_attribute("error", True)
                log.error(f"Cannot connect to LLM endpoint {self._api_url}: {e}")
                raise LlmClientError(
                    message="Cannot connect to LLM service",
                    error_code="llm_unavailable",
                    is_retryable=True,
                    details={"url": self._api_url},
                )
            except httpx.TimeoutException as e:
                span.set_attribute("error", True)
                log.error(f"LLM request timed out: {e}")
                raise LlmClientError(message="LLM request timed out", error_code="llm_timeout", is_retryable=True)
            except httpx.RequestError as e:
                span.set_attribute("error", True)
                log.error(f"LLM request failed: {e}")
                raise LlmClientError(message=f"LLM request failed: {e}", error_code="llm_request_error", is_retryable=True)

    async def complete(self, messages: list[dict[str, str]], model: str | None = None) -> str:
        """Accumulate a streamed completion into its full text."""
        parts = [chunk async for chunk in self.stream_chat(messages, model)]
        return "".join(parts)

    async def close(self) -> None:
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
