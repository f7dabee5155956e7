"""Tool toolkit: definitions, registry and executor.

Tools are plain handlers plus the schema metadata advertised to the
model in OpenAI function-calling form.
"""

from toolloop.toolkit.executor import ToolExecutor, encode_error
from toolloop.toolkit.models import Parameter, ToolDefinition, ToolHandler, ToolResult
from toolloop.toolkit.registry import ToolRegistry

__all__ = [
    "Parameter",
    "ToolDefinition",
    "ToolExecutor",
    "ToolHandler",
    "ToolRegistry",
    "ToolResult",
    "encode_error",
]
