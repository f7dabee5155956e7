"""toolloop: drive a chat completion endpoint through a tool-calling loop.

Register local tools on an :class:`Agent`, then either ``run()`` a prompt
to completion or open a :class:`Session` that runs turns in the
background and streams lifecycle events.
"""

from toolloop._version import __version__

# Core entry points
from toolloop.agent import Agent
from toolloop.session import Session

# Configuration and data model
from toolloop.models.config import AgentConfig
from toolloop.models.messages import Message, TokenUsage, ToolCall, TurnResult

# Tools
from toolloop.toolkit import Parameter, ToolDefinition, ToolExecutor, ToolRegistry, ToolResult

# Engine and concurrency
from toolloop.engine import IterationBudget, TurnEngine, UsageTracker
from toolloop.events import AgentEvent, EventType
from toolloop.sync import CancelScope, EventStream, Rendezvous

# Clients
from toolloop.llm import CompletionClient, OpenAIClient

# Exceptions
from toolloop.exceptions import (
    AgentConfigError,
    ContextCancelledError,
    IterationLimitExceededError,
    SessionClosedError,
    SessionError,
    ToolLoopError,
    ToolNotFoundError,
    ToolResultEncodingError,
    TurnInProgressError,
    UnknownFinishReasonError,
)
from toolloop.llm.errors import (
    LLMAuthError,
    LLMClientError,
    LLMConfigError,
    LLMRateLimitError,
    LLMResponseError,
    LLMTransportError,
)

__all__ = [
    "__version__",
    # Core
    "Agent",
    "Session",
    # Config and models
    "AgentConfig",
    "Message",
    "TokenUsage",
    "ToolCall",
    "TurnResult",
    # Tools
    "Parameter",
    "ToolDefinition",
    "ToolExecutor",
    "ToolRegistry",
    "ToolResult",
    # Engine and concurrency
    "IterationBudget",
    "TurnEngine",
    "UsageTracker",
    "AgentEvent",
    "EventType",
    "CancelScope",
    "EventStream",
    "Rendezvous",
    # Clients
    "CompletionClient",
    "OpenAIClient",
    # Exceptions
    "ToolLoopError",
    "AgentConfigError",
    "ToolNotFoundError",
    "ToolResultEncodingError",
    "IterationLimitExceededError",
    "UnknownFinishReasonError",
    "SessionError",
    "SessionClosedError",
    "TurnInProgressError",
    "ContextCancelledError",
    "LLMClientError",
    "LLMConfigError",
    "LLMAuthError",
    "LLMRateLimitError",
    "LLMResponseError",
    "LLMTransportError",
]
