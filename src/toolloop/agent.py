"""Agent -- entry point for running the tool-calling loop.

An Agent validates its configuration up front, holds the tool registry,
and exposes the loop two ways: ``run()`` blocks until the final answer,
``new_session()`` returns an interactive :class:`~toolloop.session.Session`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from toolloop.engine.turn import IterationBudget, TurnEngine
from toolloop.exceptions import AgentConfigError
from toolloop.llm.client import OpenAIClient
from toolloop.models.messages import Message
from toolloop.session import Session
from toolloop.toolkit.executor import ToolExecutor
from toolloop.toolkit.registry import ToolRegistry

if TYPE_CHECKING:
    from toolloop.engine.turn import UsageTracker
    from toolloop.llm.protocols import CompletionClient
    from toolloop.models.config import AgentConfig
    from toolloop.models.messages import TurnResult
    from toolloop.sync import CancelScope
    from toolloop.toolkit.models import ToolDefinition

logger = logging.getLogger(__name__)

_REQUIRED_MESSAGES = {
    "api_url": "API URL is required",
    "api_key": "API key is required",
    "model": "model is required",
    "system_prompt": "system prompt is required",
}


class Agent:
    """A model endpoint plus the tools it may call.

    Usage::

        config = AgentConfig(
            api_key="sk-...",
            api_url="https://openrouter.ai/api/v1/chat/completions",
            model="gpt-4o-mini",
            system_prompt="You are a task management assistant.",
        )
        with Agent(config) as agent:
            agent.register_tool(ToolDefinition(name="list_tasks", ...))
            result = agent.run("What is left on my list?")
            print(result.content, result.loop_count)

    Pass ``client=`` to use any :class:`~toolloop.llm.protocols.CompletionClient`
    instead of the bundled HTTP client; ``api_url`` and ``api_key`` are then
    not required.
    """

    def __init__(
        self,
        config: AgentConfig,
        client: CompletionClient | None = None,
    ) -> None:
        """Validate ``config`` and wire up the engine.

        Raises:
            AgentConfigError: If a required field is empty.
        """
        missing = config.missing_fields(needs_transport=client is None)
        if missing:
            raise AgentConfigError(_REQUIRED_MESSAGES[missing[0]])

        self._config = config
        self._owns_client = client is None
        if client is None:
            client = OpenAIClient(
                api_key=config.api_key,
                api_url=config.api_url,
                default_model=config.model,
                timeout=config.timeout,
                max_retries=config.max_retries,
            )
        self._client = client
        self._registry = ToolRegistry()
        self._engine = TurnEngine(
            client,
            ToolExecutor(self._registry),
            model=config.model,
            temperature=config.request_temperature(),
        )

    @property
    def config(self) -> AgentConfig:
        return self._config

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    def register_tool(self, tool: ToolDefinition) -> None:
        """Register a tool, replacing any earlier tool with the same name."""
        self._registry.register(tool)

    def run(self, prompt: str) -> TurnResult:
        """Run the loop for one prompt and block until the final answer.

        Raises:
            IterationLimitExceededError: ``max_loops`` iterations were used.
            LLMClientError: The model call failed.
            UnknownFinishReasonError: The model stopped for an unhandled reason.
        """
        messages = [
            Message.system(self._config.system_prompt),
            Message.user(prompt),
        ]
        logger.info("Starting run: %s", prompt)
        return self.run_messages(messages)

    def run_messages(
        self, messages: list[Message], *, usage: UsageTracker | None = None
    ) -> TurnResult:
        """Run the loop over a caller-owned transcript.

        ``messages`` must already hold the system and user context; it is
        extended in place with every message the run produces.
        """
        return self._engine.run(
            messages, IterationBudget(self._config.max_loops), usage=usage
        )

    def new_session(self, parent: CancelScope | None = None) -> Session:
        """Start an interactive session.

        Args:
            parent: Scope whose cancellation also cancels the session.
        """
        return Session(
            self._engine,
            self._config.system_prompt,
            self._config.max_loops,
            parent=parent,
            event_buffer=self._config.event_buffer,
        )

    def close(self) -> None:
        """Close the bundled HTTP client, if this agent created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> Agent:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
