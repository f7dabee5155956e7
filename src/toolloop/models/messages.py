"""Conversation and result types.

Frozen dataclasses for the transcript the loop sends on every call
(Message, ToolCall), token accounting (TokenUsage) and the outcome of a
run or turn (TurnResult).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

Role = Literal["system", "user", "assistant", "tool"]


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the model.

    ``arguments`` is the raw JSON text exactly as the model produced it.
    The loop never parses or validates it; the handler owns that.
    """

    id: str
    name: str
    arguments: str = ""
    type: str = "function"

    def to_openai(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "function": {"name": self.name, "arguments": self.arguments},
        }


@dataclass(frozen=True)
class Message:
    """A single entry of the conversation transcript."""

    role: Role
    content: str = ""
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None

    @classmethod
    def system(cls, content: str) -> Message:
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls, content: str = "", tool_calls: tuple[ToolCall, ...] | list[ToolCall] = ()
    ) -> Message:
        return cls(role="assistant", content=content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> Message:
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the OpenAI chat wire format.

        Assistant messages that carry tool calls include ``tool_calls``;
        tool messages include ``tool_call_id``.
        """
        d: dict[str, Any] = {"role": self.role, "content": self.content}
        if self.tool_calls:
            d["tool_calls"] = [tc.to_openai() for tc in self.tool_calls]
        if self.tool_call_id is not None:
            d["tool_call_id"] = self.tool_call_id
        return d


@dataclass(frozen=True)
class TokenUsage:
    """Token usage reported by the endpoint, or a sum of several reports."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: TokenUsage) -> TokenUsage:
        if not isinstance(other, TokenUsage):
            return NotImplemented
        return TokenUsage(
            prompt_tokens=self.prompt_tokens + other.prompt_tokens,
            completion_tokens=self.completion_tokens + other.completion_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


@dataclass(frozen=True)
class TurnResult:
    """Outcome of a one-shot run or of one session turn.

    Attributes:
        content: Text of the final assistant message.
        usage: Usage summed over every iteration of the run or turn.
        finish_reason: Finish indicator of the last iteration.
        loop_count: Iterations consumed. For a session this is the
            session-lifetime counter after the turn.
        iterations: Iterations this run or turn used on its own. Equal to
            ``loop_count`` for a one-shot run.
    """

    content: str
    usage: TokenUsage
    finish_reason: str
    loop_count: int
    iterations: int = 0

    def __str__(self) -> str:
        return self.content
