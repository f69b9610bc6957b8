"""Outbound adapters."""

from .chat_completion_client import ChatCompletionClient, LlmClientError

__all__ = [
    "ChatCompletionClient",
    "LlmClientError",
]
