"""Completion client protocol.

The turn engine treats the model endpoint as one opaque blocking call.
Anything with ``chat()`` and ``close()`` matching this shape can be
plugged into an :class:`~toolloop.agent.Agent`; the bundled
:class:`~toolloop.llm.client.OpenAIClient` is one implementation.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CompletionClient(Protocol):
    """Protocol for pluggable completion clients.

    ``chat()`` receives the full wire-form transcript and returns the raw
    response dict (``choices`` with ``finish_reason`` and ``message``,
    plus ``usage``). Tool schemas arrive through ``tools=`` in
    ``kwargs`` and are omitted when no tool is registered.
    """

    def chat(
        self,
        messages: list[dict[str, Any]],
        *,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        **kwargs: Any,
    ) -> dict:
        """Send messages, return response dict."""
        ...

    def close(self) -> None:
        """Release underlying resources."""
        ...
