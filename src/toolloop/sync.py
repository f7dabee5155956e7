"""Cancellation-aware thread primitives used by sessions.

- ``CancelScope``: a one-shot cancellation flag that propagates from a
  parent scope to its children and wakes anything blocked on it.
- ``EventStream``: a bounded, ordered, closable queue. A full stream
  blocks the writer until a reader makes room, the stream is closed, or
  the scope is cancelled; in the last two cases the item is dropped.
- ``Rendezvous``: an unbuffered hand-off. ``send()`` returns only once a
  receiver has taken the value.
"""

from __future__ import annotations

import queue
import threading
from collections import deque
from typing import TYPE_CHECKING, Generic, TypeVar

from toolloop.exceptions import ContextCancelledError, SessionClosedError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

T = TypeVar("T")


class CancelScope:
    """A cancellation flag shared by everything running under one scope.

    Cancelling a scope cancels every child created from it. Callbacks
    registered with ``add_callback`` run once, on the cancelling thread;
    a callback added after cancellation runs immediately. A child that is
    cancelled on its own unregisters from its parent, so a long-lived
    parent only tracks children that are still live.
    """

    def __init__(self, parent: CancelScope | None = None) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._callbacks: list[Callable[[], None]] = []
        self._parent = parent
        if parent is not None:
            parent.add_callback(self.cancel)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks, self._callbacks = self._callbacks, []
            parent, self._parent = self._parent, None
        if parent is not None:
            parent.remove_callback(self.cancel)
        for callback in callbacks:
            callback()

    def add_callback(self, callback: Callable[[], None]) -> None:
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def remove_callback(self, callback: Callable[[], None]) -> None:
        """Forget a callback that has not run yet. Unknown callbacks are ignored."""
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    @property
    def pending_callbacks(self) -> int:
        with self._lock:
            return len(self._callbacks)

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled or the timeout elapses; return the flag."""
        return self._event.wait(timeout)

    def child(self) -> CancelScope:
        return CancelScope(parent=self)


class EventStream(Generic[T]):
    """Bounded FIFO with back-pressure, closing and cancellation.

    Delivery is best-effort and at-most-once: ``put()`` returns False
    when the item was abandoned because the stream was closed, or because
    the stream was full when the scope got cancelled.

    Readers either call ``get()`` or iterate; iteration ends once the
    stream is closed and every buffered item has been read.
    """

    def __init__(self, maxsize: int, scope: CancelScope | None = None) -> None:
        if maxsize < 1:
            raise ValueError(f"maxsize must be at least 1, got {maxsize}")
        self._maxsize = maxsize
        self._items: deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self._scope = scope
        if scope is not None:
            scope.add_callback(self._wake)

    @property
    def maxsize(self) -> int:
        return self._maxsize

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def _cancelled(self) -> bool:
        return self._scope is not None and self._scope.cancelled

    def put(self, item: T) -> bool:
        """Append an item, blocking while the stream is full.

        Returns:
            True if the item was enqueued, False if it was dropped.
        """
        with self._cond:
            while (
                not self._closed
                and len(self._items) >= self._maxsize
                and not self._cancelled()
            ):
                self._cond.wait()
            if self._closed or len(self._items) >= self._maxsize:
                return False
            self._items.append(item)
            self._cond.notify_all()
            return True

    def get(self, timeout: float | None = None) -> T | None:
        """Remove and return the oldest item.

        Returns:
            The item, or None once the stream is closed and drained.

        Raises:
            queue.Empty: If ``timeout`` elapses with nothing to read.
        """
        with self._cond:
            ready = self._cond.wait_for(
                lambda: bool(self._items) or self._closed, timeout
            )
            if not ready:
                raise queue.Empty
            if not self._items:
                return None
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self.get()
            if item is None:
                return
            yield item


class Rendezvous(Generic[T]):
    """Unbuffered hand-off between one sender and one receiver at a time.

    Both sides block until the other arrives. Cancellation of the scope
    turns a waiting ``send()`` or ``receive()`` into
    ``ContextCancelledError``; closing without cancellation turns it into
    ``SessionClosedError``. A value that was never taken is withdrawn.
    """

    def __init__(self, scope: CancelScope | None = None) -> None:
        self._cond = threading.Condition()
        self._pending = False
        self._value: T | None = None
        self._sent = 0
        self._received = 0
        self._closed = False
        self._scope = scope
        if scope is not None:
            scope.add_callback(self._wake)

    def _wake(self) -> None:
        with self._cond:
            self._cond.notify_all()

    def _interrupted(self) -> bool:
        return self._closed or (self._scope is not None and self._scope.cancelled)

    def _raise_interrupted(self) -> None:
        if self._scope is not None and self._scope.cancelled:
            raise ContextCancelledError()
        raise SessionClosedError()

    def send(self, value: T) -> None:
        with self._cond:
            while self._pending and not self._interrupted():
                self._cond.wait()
            if self._interrupted():
                self._raise_interrupted()

            self._sent += 1
            ticket = self._sent
            self._pending = True
            self._value = value
            self._cond.notify_all()

            while self._received < ticket and not self._interrupted():
                self._cond.wait()
            if self._received >= ticket:
                return

            # Nobody took it: withdraw so a later receiver does not see it.
            self._pending = False
            self._value = None
            self._sent -= 1
            self._cond.notify_all()
            self._raise_interrupted()

    def receive(self) -> T:
        with self._cond:
            while not self._pending and not self._interrupted():
                self._cond.wait()
            if not self._pending:
                self._raise_interrupted()
            value = self._value
            self._pending = False
            self._value = None
            self._received += 1
            self._cond.notify_all()
            return value  # type: ignore[return-value]

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()
