"""Session -- interactive, event-streaming wrapper around the turn engine.

Each ``send()`` appends a user message and runs one turn on a background
thread. The turn publishes its lifecycle on a bounded event stream that
the caller reads at its own pace::

    with agent.new_session() as session:
        session.send("Add a task: buy milk")
        for event in session.events():
            print(event.type.value, event.content)
            if event.type.terminal:
                break

History, usage and the iteration counter are guarded by one lock that is
held only to copy state in at turn start and out at turn end, never
across the model call.

Precondition: one turn at a time. Wait for the TURN_COMPLETE or ERROR
event before sending again; an overlapping ``send()`` raises
``TurnInProgressError``.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from toolloop.engine.turn import IterationBudget, UsageTracker
from toolloop.events import AgentEvent, EventType
from toolloop.exceptions import SessionClosedError, TurnInProgressError
from toolloop.models.messages import Message, TokenUsage
from toolloop.sync import CancelScope, EventStream, Rendezvous

if TYPE_CHECKING:
    from toolloop.engine.turn import TurnEngine

logger = logging.getLogger(__name__)


class Session:
    """An interactive conversation with an agent.

    Created through :meth:`toolloop.agent.Agent.new_session`. The session
    owns the conversation history (seeded with the system message), an
    iteration budget shared by all of its turns, and a cancellation scope
    derived from the parent scope it was created under.
    """

    def __init__(
        self,
        engine: TurnEngine,
        system_prompt: str,
        max_loops: int,
        *,
        parent: CancelScope | None = None,
        event_buffer: int = 10,
    ) -> None:
        self._engine = engine
        self._scope = CancelScope(parent)
        self._events: EventStream[AgentEvent] = EventStream(event_buffer, self._scope)
        self._input: Rendezvous[str] = Rendezvous(self._scope)

        self._lock = threading.Lock()
        self._messages: list[Message] = [Message.system(system_prompt)]
        self._usage = TokenUsage()
        self._loop_count = 0
        self._closed = False
        self._running = False
        self._thread: threading.Thread | None = None

        # Only the active turn thread touches the budget.
        self._budget = IterationBudget(max_loops)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def send(self, message: str) -> None:
        """Append a user message and start a turn in the background.

        Raises:
            SessionClosedError: The session was closed.
            TurnInProgressError: The previous turn has not finished.
        """
        with self._lock:
            if self._closed:
                raise SessionClosedError()
            if self._running:
                raise TurnInProgressError()
            self._messages.append(Message.user(message))
            self._running = True
            thread = threading.Thread(
                target=self._run_turn, name="toolloop-turn", daemon=True
            )
            self._thread = thread

        logger.info("User message sent: %s", message)
        thread.start()

    def send_input(self, text: str) -> None:
        """Hand a value to a tool waiting in :meth:`request_input`.

        Blocks until the tool takes it.

        Raises:
            SessionClosedError: The session was closed.
            ContextCancelledError: The session scope was cancelled while
                waiting.
        """
        with self._lock:
            if self._closed:
                raise SessionClosedError()
        self._input.send(text)

    def request_input(self, prompt: str) -> str:
        """Ask the caller for input from inside a tool handler.

        Publishes a NEED_INPUT event carrying ``prompt`` and blocks until
        :meth:`send_input` delivers a value.

        Raises:
            SessionClosedError: The session was closed.
            ContextCancelledError: The session scope was cancelled while
                waiting.
        """
        with self._lock:
            if self._closed:
                raise SessionClosedError()
        self._publish(
            AgentEvent(
                type=EventType.NEED_INPUT,
                content=prompt,
                iteration=self._budget.used,
            )
        )
        return self._input.receive()

    def events(self) -> EventStream[AgentEvent]:
        """Return the stream of lifecycle events."""
        return self._events

    def history(self) -> list[Message]:
        """Return a snapshot of the conversation history."""
        with self._lock:
            return list(self._messages)

    @property
    def usage(self) -> TokenUsage:
        """Token usage accumulated over every turn so far."""
        with self._lock:
            return self._usage

    @property
    def loop_count(self) -> int:
        """Iterations consumed over the session's lifetime."""
        with self._lock:
            return self._loop_count

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def running(self) -> bool:
        """Whether a turn is currently in flight."""
        with self._lock:
            return self._running

    @property
    def scope(self) -> CancelScope:
        return self._scope

    def wait(self, timeout: float | None = None) -> bool:
        """Join the current turn thread.

        Returns:
            True if no turn is running when the call returns.
        """
        with self._lock:
            thread = self._thread
        if thread is not None:
            thread.join(timeout)
            return not thread.is_alive()
        return True

    def close(self) -> None:
        """Close the session. Safe to call more than once.

        Cancels the session scope, then closes the event stream and the
        input channel. Events still buffered remain readable.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True

        self._scope.cancel()
        self._events.close()
        self._input.close()
        logger.info("Session closed")

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Turn execution
    # ------------------------------------------------------------------

    def _run_turn(self) -> None:
        with self._lock:
            messages = list(self._messages)
        tracker = UsageTracker()

        try:
            result = self._engine.run(
                messages,
                self._budget,
                usage=tracker,
                on_event=self._publish,
                scope=self._scope,
            )
        except Exception as exc:
            logger.error("Turn failed: %s", exc, exc_info=True)
            self._finish_turn(tracker.usage, None)
            self._publish(
                AgentEvent(
                    type=EventType.ERROR,
                    content=str(exc),
                    iteration=self._budget.used,
                    data=exc,
                )
            )
            return

        self._finish_turn(tracker.usage, messages)
        self._publish(
            AgentEvent(
                type=EventType.TURN_COMPLETE,
                content=result.content,
                iteration=result.loop_count,
                data=result,
            )
        )

    def _finish_turn(self, usage: TokenUsage, messages: list[Message] | None) -> None:
        # Cleared before the terminal event so a caller reacting to it can
        # send() straight away.
        with self._lock:
            self._usage = self._usage + usage
            self._loop_count = self._budget.used
            if messages is not None:
                self._messages = messages
            self._running = False

    def _publish(self, event: AgentEvent) -> None:
        if not self._events.put(event):
            logger.info(
                "Session cancelled, dropping %s event", event.type.value
            )
