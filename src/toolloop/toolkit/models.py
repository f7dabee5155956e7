"""Toolkit data models.

Frozen dataclasses for tool definitions, their declared parameters and
the encoded result of running one tool call.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

ToolHandler = Callable[[str], Any]


@dataclass(frozen=True)
class Parameter:
    """One named parameter advertised to the model.

    Attributes:
        type: JSON Schema primitive ("string", "integer", "array", ...).
        description: What the parameter means.
        items: Element type when ``type`` is "array".
    """

    type: str
    description: str = ""
    items: str | None = None

    def to_schema(self) -> dict[str, Any]:
        schema: dict[str, Any] = {"type": self.type, "description": self.description}
        if self.items is not None:
            schema["items"] = {"type": self.items}
        return schema


@dataclass(frozen=True)
class ToolDefinition:
    """A locally executable tool and the metadata advertised for it.

    The parameter schema and ``required`` list describe the tool to the
    model; they are not checked against the arguments of actual calls.
    The handler receives the raw argument text and validates it itself.

    Attributes:
        name: Unique key in the registry.
        description: Human-readable description of when to use the tool.
        handler: ``handler(raw_args: str) -> Any``. The return value must
            be JSON-serializable; raising reports a failure to the model.
        parameters: Declared parameters by name.
        required: Names of parameters the model must supply.
    """

    name: str
    description: str
    handler: ToolHandler
    parameters: dict[str, Parameter] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    def to_openai(self) -> dict[str, Any]:
        """Convert to OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": {
                    "type": "object",
                    "properties": {
                        name: param.to_schema()
                        for name, param in self.parameters.items()
                    },
                    "required": list(self.required),
                },
            },
        }


@dataclass(frozen=True)
class ToolResult:
    """Encoded outcome of one tool call, ready to go back to the model.

    Attributes:
        tool_name: Name of the tool that was requested.
        call_id: Identifier of the tool-call request being answered.
        success: Whether the handler returned normally.
        content: JSON text fed back as the tool message content. On
            failure this is ``{"error": "<message>"}``.
        error: The failure message, empty on success.
    """

    tool_name: str
    call_id: str
    success: bool
    content: str
    error: str = ""
