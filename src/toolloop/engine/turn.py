"""The tool-calling loop shared by one-shot runs and session turns.

Each iteration spends one unit of the iteration budget, calls the
completion client with the whole transcript, and then either executes
the requested tool calls and loops, or returns the final answer.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from toolloop.events import AgentEvent, EventType
from toolloop.exceptions import (
    ContextCancelledError,
    IterationLimitExceededError,
    ToolLoopError,
    UnknownFinishReasonError,
)
from toolloop.llm.errors import LLMTransportError
from toolloop.models.completion import FINISH_STOP, FINISH_TOOL_CALLS, Completion
from toolloop.models.messages import Message, TokenUsage, TurnResult

if TYPE_CHECKING:
    from collections.abc import Callable

    from toolloop.llm.protocols import CompletionClient
    from toolloop.sync import CancelScope
    from toolloop.toolkit.executor import ToolExecutor

logger = logging.getLogger(__name__)


class IterationBudget:
    """Iteration counter checked against a ceiling.

    A one-shot run gets a fresh budget; a session keeps one for its whole
    lifetime, so the ceiling bounds the aggregate across turns.
    """

    def __init__(self, max_loops: int, used: int = 0) -> None:
        self._max_loops = max_loops
        self._used = used

    @property
    def max_loops(self) -> int:
        return self._max_loops

    @property
    def used(self) -> int:
        return self._used

    def consume(self) -> int:
        """Count one more iteration and return the new total.

        Raises:
            IterationLimitExceededError: If the total now exceeds the ceiling.
        """
        self._used += 1
        if self._used > self._max_loops:
            raise IterationLimitExceededError(self._max_loops)
        return self._used


class UsageTracker:
    """Running token usage, updated after every model call."""

    def __init__(self) -> None:
        self.usage = TokenUsage()

    def add(self, usage: TokenUsage) -> None:
        self.usage = self.usage + usage


class TurnEngine:
    """Runs the tool-calling loop over a caller-owned message list.

    The list passed to ``run()`` is extended in place with every assistant
    and tool message the loop produces; the engine keeps no copy.

    Usage::

        engine = TurnEngine(client, ToolExecutor(registry), model="gpt-4o-mini")
        messages = [Message.system("..."), Message.user("What's the weather?")]
        result = engine.run(messages, IterationBudget(max_loops=20))
    """

    def __init__(
        self,
        client: CompletionClient,
        executor: ToolExecutor,
        *,
        model: str | None = None,
        temperature: float | None = None,
    ) -> None:
        self._client = client
        self._executor = executor
        self._model = model
        self._temperature = temperature

    def run(
        self,
        messages: list[Message],
        budget: IterationBudget,
        *,
        usage: UsageTracker | None = None,
        on_event: Callable[[AgentEvent], None] | None = None,
        scope: CancelScope | None = None,
    ) -> TurnResult:
        """Loop until the model stops.

        Args:
            messages: Transcript, already holding the system and user
                messages. Extended in place.
            budget: Iteration budget to draw from.
            usage: Tracker that receives every iteration's usage, so the
                caller can read it even when the run fails midway.
            on_event: Receives ITERATION_START, TOOL_CALL and TOOL_RESULT
                events in order. Terminal events are the caller's job.
            scope: Checked before each iteration; a cancelled scope stops
                the loop before the next model call.

        Returns:
            TurnResult for this run.

        Raises:
            IterationLimitExceededError: Budget exhausted.
            LLMClientError: The model call or response decoding failed.
            UnknownFinishReasonError: The model stopped for another reason.
            ToolResultEncodingError: A tool returned a non-JSON value.
            ContextCancelledError: ``scope`` was cancelled.
        """
        tracker = usage if usage is not None else UsageTracker()
        start = budget.used

        while True:
            if scope is not None and scope.cancelled:
                raise ContextCancelledError()

            iteration = budget.consume()
            logger.info("Starting iteration %d", iteration)
            self._emit(
                on_event,
                AgentEvent(
                    type=EventType.ITERATION_START,
                    content=f"Starting iteration {iteration}",
                    iteration=iteration,
                ),
            )

            completion = self._complete(messages)
            tracker.add(completion.token_usage)

            choice = completion.first_choice
            reason = choice.finish_reason
            tool_calls = [tc.to_tool_call() for tc in choice.message.tool_calls]
            logger.info(
                "Received response: iteration=%d finish_reason=%s tool_calls=%d",
                iteration,
                reason,
                len(tool_calls),
            )

            if reason == FINISH_TOOL_CALLS:
                messages.append(
                    Message.assistant(choice.message.content or "", tool_calls)
                )
                for call in tool_calls:
                    self._emit(
                        on_event,
                        AgentEvent(
                            type=EventType.TOOL_CALL,
                            content=call.name,
                            iteration=iteration,
                            data=call.arguments,
                            call_id=call.id,
                        ),
                    )
                    result = self._executor.invoke(call)
                    self._emit(
                        on_event,
                        AgentEvent(
                            type=EventType.TOOL_RESULT,
                            content=result.content,
                            iteration=iteration,
                            data=call.name,
                            call_id=call.id,
                        ),
                    )
                    messages.append(Message.tool(call.id, result.content))
                continue

            if reason == FINISH_STOP:
                content = choice.message.content or ""
                messages.append(Message.assistant(content))
                return TurnResult(
                    content=content,
                    usage=tracker.usage,
                    finish_reason=reason,
                    loop_count=budget.used,
                    iterations=budget.used - start,
                )

            raise UnknownFinishReasonError(reason)

    def _complete(self, messages: list[Message]) -> Completion:
        kwargs: dict[str, Any] = {}
        schemas = self._executor.registry.schemas()
        if schemas:
            kwargs["tools"] = schemas
        try:
            raw = self._client.chat(
                [m.to_dict() for m in messages],
                model=self._model,
                temperature=self._temperature,
                **kwargs,
            )
        except ToolLoopError:
            raise
        except Exception as exc:
            raise LLMTransportError(f"API call error: {exc}") from exc
        return Completion.parse(raw)

    @staticmethod
    def _emit(
        on_event: Callable[[AgentEvent], None] | None, event: AgentEvent
    ) -> None:
        if on_event is not None:
            on_event(event)
