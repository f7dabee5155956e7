"""Completion client infrastructure.

Provides the CompletionClient protocol the turn engine calls, a bundled
OpenAI-compatible HTTP client, and the client error hierarchy.
"""

from toolloop.llm.client import OpenAIClient
from toolloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTransportError,
)
from toolloop.llm.protocols import CompletionClient

__all__ = [
    "OpenAIClient",
    "CompletionClient",
    "LLMClientError",
    "LLMConfigError",
    "LLMRateLimitError",
    "LLMAuthError",
    "LLMResponseError",
    "LLMTransportError",
]
