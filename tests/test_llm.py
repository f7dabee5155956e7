"""Tests for the toolloop.llm package.

Tests cover:
- OpenAIClient: request formatting, bearer auth, retry behavior, error mapping
- Environment fallback for endpoint and credential
- CompletionClient protocol conformance
- Error hierarchy
"""

from __future__ import annotations

import json
import time

import httpx
import pytest

from toolloop.exceptions import ToolLoopError
from toolloop.llm import (
    CompletionClient,
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTransportError,
    OpenAIClient,
)
from tests.conftest import FakeClient, stop_response

API_URL = "http://test-api/v1/chat/completions"


def _make_client(handler=None, api_key: str = "test-key", max_retries: int = 3, **kwargs) -> OpenAIClient:
    """Create an OpenAIClient whose transport is an httpx.MockTransport."""
    client = OpenAIClient(api_key=api_key, api_url=API_URL, max_retries=max_retries, **kwargs)
    if handler is not None:
        client._client = httpx.Client(
            transport=httpx.MockTransport(handler),
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
        )
    return client


@pytest.fixture()
def no_retry_sleep(monkeypatch):
    """Make tenacity's backoff instantaneous."""
    monkeypatch.setattr(time, "sleep", lambda seconds: None)


# ===========================================================================
# Error hierarchy
# ===========================================================================

class TestErrorHierarchy:

    def test_all_client_errors_inherit_base(self):
        for error_class in [LLMConfigError, LLMRateLimitError, LLMAuthError,
                            LLMResponseError, LLMTransportError]:
            assert issubclass(error_class, LLMClientError)
            assert issubclass(error_class, ToolLoopError)

    def test_rate_limit_error_has_retry_after(self):
        err = LLMRateLimitError("rate limited", retry_after=30.0)
        assert err.retry_after == 30.0
        assert "30.0s" in str(err)

    def test_rate_limit_error_no_retry_after(self):
        assert LLMRateLimitError("rate limited").retry_after is None


# ===========================================================================
# Requests
# ===========================================================================

class TestOpenAIClientChat:

    def test_chat_success(self):
        client = _make_client(lambda request: httpx.Response(200, json=stop_response("Hello!")))
        response = client.chat([{"role": "user", "content": "Hello"}])

        assert response["choices"][0]["message"]["content"] == "Hello!"
        client.close()

    def test_request_posts_to_endpoint_with_bearer(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["method"] = request.method
            captured["headers"] = dict(request.headers)
            captured["payload"] = json.loads(request.content)
            return httpx.Response(200, json=stop_response())

        client = _make_client(handler)
        tools = [{"type": "function", "function": {"name": "echo"}}]
        client.chat(
            [{"role": "user", "content": "Test"}],
            model="gpt-4o-mini",
            temperature=0.7,
            tools=tools,
        )

        assert captured["url"] == API_URL
        assert captured["method"] == "POST"
        assert captured["headers"]["authorization"] == "Bearer test-key"
        payload = captured["payload"]
        assert payload["model"] == "gpt-4o-mini"
        assert payload["messages"] == [{"role": "user", "content": "Test"}]
        assert payload["temperature"] == 0.7
        assert payload["tools"] == tools
        client.close()

    def test_optional_params_omitted(self):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["payload"] = json.loads(request.content)
            return httpx.Response(200, json=stop_response())

        client = _make_client(handler, default_model="default-model")
        client.chat([{"role": "user", "content": "Hello"}])

        payload = captured["payload"]
        assert payload["model"] == "default-model"
        assert "temperature" not in payload
        assert "max_tokens" not in payload
        assert "tools" not in payload
        client.close()

    def test_context_manager_closes(self):
        with _make_client(lambda r: httpx.Response(200, json=stop_response())) as client:
            client.chat([{"role": "user", "content": "hi"}])
        assert client._client.is_closed


# ===========================================================================
# Retry and error mapping
# ===========================================================================

class TestOpenAIClientRetry:

    def test_retry_on_500_then_success(self, no_retry_sleep):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                return httpx.Response(500, json={"error": "server error"})
            return httpx.Response(200, json=stop_response())

        client = _make_client(handler)
        response = client.chat([{"role": "user", "content": "Test"}])

        assert call_count == 2
        assert "choices" in response
        client.close()

    def test_retry_on_429_then_success(self, no_retry_sleep):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            if call_count == 1:
                return httpx.Response(429, json={"error": "slow down"}, headers={"Retry-After": "1"})
            return httpx.Response(200, json=stop_response())

        client = _make_client(handler)
        client.chat([{"role": "user", "content": "Test"}])
        assert call_count == 2
        client.close()

    def test_rate_limit_exhausted(self, no_retry_sleep):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            return httpx.Response(429, json={"error": "slow down"}, headers={"Retry-After": "2"})

        client = _make_client(handler, max_retries=2)
        with pytest.raises(LLMRateLimitError) as exc_info:
            client.chat([{"role": "user", "content": "Test"}])

        assert exc_info.value.retry_after == 2.0
        assert call_count == 2
        client.close()

    def test_retry_after_date_is_ignored(self):
        headers = {"Retry-After": "Wed, 21 Oct 2026 07:28:00 GMT"}
        client = _make_client(
            lambda r: httpx.Response(429, text="slow down", headers=headers), max_retries=1
        )
        with pytest.raises(LLMRateLimitError) as exc_info:
            client.chat([{"role": "user", "content": "Test"}])
        assert exc_info.value.retry_after is None
        client.close()

    def test_no_retry_on_401(self):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            return httpx.Response(401, json={"error": "unauthorized"})

        client = _make_client(handler)
        with pytest.raises(LLMAuthError, match="Authentication failed"):
            client.chat([{"role": "user", "content": "Test"}])
        assert call_count == 1
        client.close()

    def test_server_error_exhausted_is_transport_error(self, no_retry_sleep):
        client = _make_client(lambda r: httpx.Response(503, text="unavailable"), max_retries=2)
        with pytest.raises(LLMTransportError, match="HTTP 503"):
            client.chat([{"role": "user", "content": "Test"}])
        client.close()

    def test_client_error_not_retried(self):
        call_count = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal call_count
            call_count += 1
            return httpx.Response(400, json={"error": "bad request"})

        client = _make_client(handler)
        with pytest.raises(LLMTransportError, match="HTTP 400"):
            client.chat([{"role": "user", "content": "Test"}])
        assert call_count == 1
        client.close()

    def test_connection_error_is_transport_error(self, no_retry_sleep):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _make_client(handler, max_retries=2)
        with pytest.raises(LLMTransportError, match="connection refused"):
            client.chat([{"role": "user", "content": "Test"}])
        client.close()

    def test_invalid_json_body(self):
        client = _make_client(lambda r: httpx.Response(200, text="not json"))
        with pytest.raises(LLMResponseError, match="error parsing response"):
            client.chat([{"role": "user", "content": "Test"}])
        client.close()

    def test_missing_choices(self):
        client = _make_client(lambda r: httpx.Response(200, json={"id": "x"}))
        with pytest.raises(LLMResponseError, match="missing 'choices'"):
            client.chat([{"role": "user", "content": "Test"}])
        client.close()


# ===========================================================================
# Configuration
# ===========================================================================

class TestOpenAIClientConfig:

    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("TOOLLOOP_API_KEY", "env-key")
        monkeypatch.setenv("TOOLLOOP_API_URL", "http://env-api/chat")
        client = OpenAIClient()
        assert client._api_key == "env-key"
        assert client.api_url == "http://env-api/chat"
        client.close()

    def test_constructor_overrides_env(self, monkeypatch):
        monkeypatch.setenv("TOOLLOOP_API_KEY", "env-key")
        monkeypatch.setenv("TOOLLOOP_API_URL", "http://env-api/chat")
        client = OpenAIClient(api_key="explicit", api_url="http://explicit/chat")
        assert client._api_key == "explicit"
        assert client.api_url == "http://explicit/chat"
        client.close()

    def test_missing_api_key_raises(self, monkeypatch):
        monkeypatch.delenv("TOOLLOOP_API_KEY", raising=False)
        with pytest.raises(LLMConfigError, match="No API key"):
            OpenAIClient(api_url=API_URL)

    def test_missing_api_url_raises(self, monkeypatch):
        monkeypatch.delenv("TOOLLOOP_API_URL", raising=False)
        with pytest.raises(LLMConfigError, match="No API URL"):
            OpenAIClient(api_key="k")


class TestCompletionClientProtocol:

    def test_openai_client_conforms(self):
        client = _make_client()
        assert isinstance(client, CompletionClient)
        client.close()

    def test_fake_client_conforms(self):
        assert isinstance(FakeClient([stop_response()]), CompletionClient)
