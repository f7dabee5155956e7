"""ToolExecutor: runs requested tool calls against a ToolRegistry.

``execute()`` is the raw dispatch: look the tool up, hand it the
unvalidated argument text, return whatever it returns or let its
exception propagate. ``invoke()`` wraps that for the loop and encodes
the outcome as the text the model sees in the tool message.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from toolloop.exceptions import (
    ContextCancelledError,
    ToolNotFoundError,
    ToolResultEncodingError,
)
from toolloop.toolkit.models import ToolResult

if TYPE_CHECKING:
    from toolloop.models.messages import ToolCall
    from toolloop.toolkit.registry import ToolRegistry

logger = logging.getLogger(__name__)


def encode_error(message: str) -> str:
    """Encode a failure as the minimal ``{"error": ...}`` payload."""
    return json.dumps({"error": message})


class ToolExecutor:
    """Dispatches tool calls to registered handlers.

    Usage::

        executor = ToolExecutor(registry)
        result = executor.invoke(ToolCall(id="call_1", name="echo", arguments='"hi"'))
        result.content  # '"hi"'
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def execute(self, name: str, raw_args: str) -> Any:
        """Run the named tool's handler on the raw argument text.

        Raises:
            ToolNotFoundError: If no tool with that name is registered.
            Exception: Whatever the handler raises, unchanged.
        """
        tool = self._registry.get(name)
        if tool is None:
            raise ToolNotFoundError(name)
        return tool.handler(raw_args)

    def invoke(self, call: ToolCall) -> ToolResult:
        """Execute one tool call and encode the outcome for the model.

        Lookup and handler failures become an ``{"error": ...}`` payload
        so the model can react to them; they never abort the loop. A
        handler interrupted by session cancellation is the exception.

        Raises:
            ToolResultEncodingError: If a successful result is not
                JSON-serializable.
            ContextCancelledError: If the handler was interrupted by
                cancellation.
        """
        logger.info("Executing tool %s with arguments %s", call.name, call.arguments)
        try:
            value = self.execute(call.name, call.arguments)
        except ContextCancelledError:
            raise
        except Exception as exc:
            logger.error("Tool %s failed: %s", call.name, exc, exc_info=True)
            message = str(exc)
            return ToolResult(
                tool_name=call.name,
                call_id=call.id,
                success=False,
                content=encode_error(message),
                error=message,
            )

        try:
            content = json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise ToolResultEncodingError(call.name, str(exc)) from exc
        return ToolResult(
            tool_name=call.name,
            call_id=call.id,
            success=True,
            content=content,
        )
