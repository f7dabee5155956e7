"""Lifecycle events published by a session turn."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class EventType(str, enum.Enum):
    """Kinds of event a turn publishes, in the order they can occur.

    - ``ITERATION_START``: one per loop iteration, before the model call.
    - ``TOOL_CALL``: a requested tool is about to run (content is the
      tool name, data the raw arguments).
    - ``NEED_INPUT``: a tool is blocked waiting for ``send_input()``.
    - ``TOOL_RESULT``: the encoded tool output (data is the tool name).
    - ``TURN_COMPLETE``: terminal, content is the final answer.
    - ``ERROR``: terminal, content describes the failure.
    """

    ITERATION_START = "iteration_start"
    TOOL_CALL = "tool_call"
    TOOL_RESULT = "tool_result"
    NEED_INPUT = "need_input"
    TURN_COMPLETE = "turn_complete"
    ERROR = "error"

    @property
    def terminal(self) -> bool:
        return self in (EventType.TURN_COMPLETE, EventType.ERROR)


@dataclass(frozen=True)
class AgentEvent:
    """One event on a session's event stream.

    Attributes:
        type: What happened.
        content: Human-readable payload (tool name, tool output, answer,
            error message).
        iteration: Session-lifetime iteration counter at emission time.
        data: Extra payload (raw tool arguments, tool name, the
            ``TurnResult`` of a completed turn, or the exception of a
            failed one).
        call_id: Identifier of the tool call for TOOL_CALL / TOOL_RESULT.
    """

    type: EventType
    content: str = ""
    iteration: int = 0
    data: Any = None
    call_id: str | None = None
