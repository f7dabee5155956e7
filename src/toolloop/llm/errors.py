"""Errors raised by completion clients.

Every failure of the remote call is fatal to the current turn. Retrying
is the transport's business (see ``OpenAIClient``), never the loop's.
"""

from __future__ import annotations

from toolloop.exceptions import ToolLoopError


class LLMClientError(ToolLoopError):
    """Base for all completion client errors."""


class LLMConfigError(LLMClientError):
    """The bundled client was built without an endpoint or credential."""


class LLMRateLimitError(LLMClientError):
    """HTTP 429 that outlasted every retry attempt.

    Attributes:
        retry_after: Value of the Retry-After header in seconds, if the
            server sent one.
    """

    def __init__(self, message: str = "Rate limited", retry_after: float | None = None) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after}s)"
        super().__init__(message)


class LLMAuthError(LLMClientError):
    """The endpoint rejected the bearer credential (401/403)."""


class LLMResponseError(LLMClientError):
    """The response body could not be decoded into a completion."""


class LLMTransportError(LLMClientError):
    """The request failed before a usable response arrived."""
