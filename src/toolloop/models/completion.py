"""Pydantic models for decoding a chat completion response.

Only the fields the loop reads are declared; everything else in the
payload is ignored. Providers that send tool-call arguments as an
object rather than a JSON string are normalized to a string.
"""

from __future__ import annotations

import json
from typing import Any, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from toolloop.llm.errors import LLMResponseError
from toolloop.models.messages import TokenUsage, ToolCall

FINISH_STOP = "stop"
FINISH_TOOL_CALLS = "tool_calls"


class FunctionCallPayload(BaseModel):
    name: str
    arguments: str = ""

    @field_validator("arguments", mode="before")
    @classmethod
    def _stringify_arguments(cls, value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        return json.dumps(value)


class ToolCallPayload(BaseModel):
    id: str
    type: str = "function"
    function: FunctionCallPayload

    def to_tool_call(self) -> ToolCall:
        return ToolCall(
            id=self.id,
            name=self.function.name,
            arguments=self.function.arguments,
            type=self.type,
        )


class ChoiceMessage(BaseModel):
    role: str = "assistant"
    content: Optional[str] = None
    tool_calls: list[ToolCallPayload] = Field(default_factory=list)

    @field_validator("tool_calls", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class Choice(BaseModel):
    index: int = 0
    message: ChoiceMessage = Field(default_factory=ChoiceMessage)
    finish_reason: Optional[str] = None


class UsagePayload(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class Completion(BaseModel):
    """A decoded chat completion response."""

    id: Optional[str] = None
    choices: list[Choice] = Field(default_factory=list)
    usage: Optional[UsagePayload] = None

    @classmethod
    def parse(cls, raw: Any) -> Completion:
        """Validate a raw response dict.

        Raises:
            LLMResponseError: If the payload does not match the expected shape.
        """
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            raise LLMResponseError(f"error parsing response: {exc}") from exc

    @property
    def first_choice(self) -> Choice:
        if not self.choices:
            raise LLMResponseError("no response from API: 'choices' is empty")
        return self.choices[0]

    @property
    def token_usage(self) -> TokenUsage:
        if self.usage is None:
            return TokenUsage()
        return TokenUsage(
            prompt_tokens=self.usage.prompt_tokens,
            completion_tokens=self.usage.completion_tokens,
            total_tokens=self.usage.total_tokens,
        )
