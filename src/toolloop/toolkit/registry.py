"""ToolRegistry: insert-or-replace lookup of tools by name."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator

    from toolloop.toolkit.models import ToolDefinition

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Mapping from tool name to its definition.

    Registering a name that already exists replaces the earlier entry.
    Iteration order (and therefore the order of ``schemas()``) is not
    part of the contract.

    Usage::

        registry = ToolRegistry()
        registry.register(ToolDefinition(name="echo", description="...", handler=fn))
        registry.get("echo")
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolDefinition] = {}

    def register(self, tool: ToolDefinition) -> None:
        if tool.name in self._tools:
            logger.debug("Replacing registered tool %s", tool.name)
        self._tools[tool.name] = tool

    def get(self, name: str) -> ToolDefinition | None:
        return self._tools.get(name)

    def names(self) -> list[str]:
        return list(self._tools)

    def schemas(self) -> list[dict[str, Any]]:
        """Return every tool in OpenAI function-calling form."""
        return [tool.to_openai() for tool in self._tools.values()]

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(list(self._tools.values()))
