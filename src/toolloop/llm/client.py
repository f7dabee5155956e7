"""Bundled OpenAI-compatible completion client.

A sync ``httpx`` client that POSTs chat-completion requests to a single
endpoint URL with a bearer credential. Transient failures are retried
with ``tenacity``; everything else surfaces as an ``LLMClientError``.
"""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import httpx
import tenacity

from toolloop.llm.errors import (
    LLMAuthError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTransportError,
)

logger = logging.getLogger(__name__)

_SERVER_ERRORS = frozenset({500, 502, 503, 504})
_AUTH_FAILURES = frozenset({401, 403})

API_KEY_ENV = "TOOLLOOP_API_KEY"
API_URL_ENV = "TOOLLOOP_API_URL"


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, LLMRateLimitError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response.status_code in _SERVER_ERRORS
    return isinstance(exc, (httpx.ConnectError, httpx.ConnectTimeout))


def _retry_after(response: httpx.Response) -> float | None:
    """Seconds from a numeric ``Retry-After`` header; HTTP dates are ignored."""
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return float(value)
    except ValueError:
        return None


def _check_status(response: httpx.Response) -> None:
    status = response.status_code
    if status in _AUTH_FAILURES:
        raise LLMAuthError(f"Authentication failed: HTTP {status} - {response.text}")
    if status == 429:
        raise LLMRateLimitError(
            f"rate limited by endpoint: {response.text}",
            retry_after=_retry_after(response),
        )
    response.raise_for_status()


class OpenAIClient:
    """Sync httpx client for an OpenAI-compatible chat completions endpoint.

    Implements the :class:`~toolloop.llm.protocols.CompletionClient`
    protocol. ``api_url`` is the full endpoint, e.g.
    ``https://openrouter.ai/api/v1/chat/completions``.

    Usage::

        with OpenAIClient(api_key="sk-...", api_url=url) as client:
            response = client.chat([{"role": "user", "content": "Hello"}])
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        default_model: str | None = None,
        timeout: float = 120.0,
        max_retries: int = 3,
    ) -> None:
        """Initialize the client.

        Args:
            api_key: Bearer credential. Falls back to ``TOOLLOOP_API_KEY``.
            api_url: Chat completions endpoint. Falls back to
                ``TOOLLOOP_API_URL``.
            default_model: Model used when ``chat()`` is called without one.
            timeout: Request timeout in seconds.
            max_retries: Maximum attempts for retryable errors.

        Raises:
            LLMConfigError: If no credential or endpoint can be resolved.
        """
        self._api_key = api_key or os.environ.get(API_KEY_ENV, "")
        if not self._api_key:
            raise LLMConfigError(
                f"No API key provided. Pass api_key= or set {API_KEY_ENV}."
            )
        self._api_url = api_url or os.environ.get(API_URL_ENV, "")
        if not self._api_url:
            raise LLMConfigError(
                f"No API URL provided. Pass api_url= or set {API_URL_ENV}."
            )
        self._default_model = default_model
        self._max_retries = max_retries
        self._client = httpx.Client(
            timeout=timeout,
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {self._api_key}",
            },
        )

    @property
    def api_url(self) -> str:
        return self._api_url

    def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """POST one completion request and return the decoded body.

        ``temperature`` and ``max_tokens`` are left out of the payload when
        None; anything in ``kwargs`` (``tools`` among them) is sent as is.
        Rate limits, 5xx responses and failed connections are retried up
        to ``max_retries`` attempts in total.

        Raises:
            LLMAuthError: The endpoint rejected the credential.
            LLMRateLimitError: Still rate limited on the last attempt.
            LLMResponseError: The body is not JSON or has no ``choices``.
            LLMTransportError: Connection failure or any other HTTP error.
        """
        payload: dict[str, Any] = {"messages": messages}
        if model or self._default_model:
            payload["model"] = model or self._default_model
        if temperature is not None:
            payload["temperature"] = temperature
        if max_tokens is not None:
            payload["max_tokens"] = max_tokens
        payload.update(kwargs)

        try:
            return self._retrying()(self._post_once, payload)
        except httpx.HTTPStatusError as exc:
            raise LLMTransportError(
                f"HTTP {exc.response.status_code} from {self._api_url}: "
                f"{exc.response.text}"
            ) from exc
        except httpx.HTTPError as exc:
            raise LLMTransportError(f"error making request: {exc}") from exc

    def _retrying(self) -> tenacity.Retrying:
        # Built per call: the attempt counter lives on the Retrying object.
        return tenacity.Retrying(
            retry=tenacity.retry_if_exception(_is_transient),
            wait=tenacity.wait_exponential(multiplier=1, min=1, max=30)
            + tenacity.wait_random(0, 2),
            stop=tenacity.stop_after_attempt(self._max_retries),
            before_sleep=tenacity.before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _post_once(self, payload: dict[str, Any]) -> dict:
        response = self._client.post(self._api_url, json=payload)
        _check_status(response)
        try:
            data = response.json()
        except json.JSONDecodeError as exc:
            raise LLMResponseError(f"error parsing response: {exc}") from exc
        if not isinstance(data, dict) or "choices" not in data:
            raise LLMResponseError(f"response is missing 'choices': {data!r}")
        return data

    def close(self) -> None:
        """Close the underlying httpx client."""
        self._client.close()

    def __enter__(self) -> OpenAIClient:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
