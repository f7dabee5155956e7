"""Data models: configuration, transcript messages and completion payloads."""

from toolloop.models.completion import FINISH_STOP, FINISH_TOOL_CALLS, Completion
from toolloop.models.config import AgentConfig
from toolloop.models.messages import Message, TokenUsage, ToolCall, TurnResult

__all__ = [
    "AgentConfig",
    "Completion",
    "FINISH_STOP",
    "FINISH_TOOL_CALLS",
    "Message",
    "TokenUsage",
    "ToolCall",
    "TurnResult",
]
