"""toolloop exception hierarchy.

All toolloop-specific exceptions inherit from ToolLoopError.
"""


class ToolLoopError(Exception):
    """Base exception for all toolloop errors."""


class AgentConfigError(ToolLoopError):
    """Raised when an Agent is constructed with missing or invalid setup."""


class ToolNotFoundError(ToolLoopError):
    """Raised when a tool call names a tool that is not registered."""

    def __init__(self, tool_name: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"tool not found: {tool_name}")


class ToolResultEncodingError(ToolLoopError):
    """Raised when a tool handler returns a value that cannot be JSON-encoded."""

    def __init__(self, tool_name: str, reason: str) -> None:
        self.tool_name = tool_name
        super().__init__(f"error encoding tool result for {tool_name}: {reason}")


class IterationLimitExceededError(ToolLoopError):
    """Raised when a run or session would exceed its iteration ceiling."""

    def __init__(self, max_loops: int) -> None:
        self.max_loops = max_loops
        super().__init__(f"maximum loop iterations ({max_loops}) exceeded")


class UnknownFinishReasonError(ToolLoopError):
    """Raised when the model stops for a reason the loop does not handle.

    Only ``"stop"`` and ``"tool_calls"`` are recognized. Anything else
    (``"length"``, ``"content_filter"``, vendor-specific values) ends the
    turn instead of being retried blindly.
    """

    def __init__(self, finish_reason: str | None) -> None:
        self.finish_reason = finish_reason
        super().__init__(f"unrecognized finish reason: {finish_reason!r}")


class SessionError(ToolLoopError):
    """Base for session lifecycle errors."""


class SessionClosedError(SessionError):
    """Raised when operating on a session that has been closed."""

    def __init__(self) -> None:
        super().__init__("session is closed")


class TurnInProgressError(SessionError):
    """Raised when send() is called while a previous turn is still running."""

    def __init__(self) -> None:
        super().__init__(
            "a turn is already in progress; wait for its turn_complete "
            "or error event before sending again"
        )


class ContextCancelledError(SessionError):
    """Raised when a blocking session operation is interrupted by cancellation."""

    def __init__(self, message: str = "session context cancelled") -> None:
        super().__init__(message)
