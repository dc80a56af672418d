"""Cancellation contexts with deadlines for blocking tunnel operations."""

import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from types import TracebackType
from typing import Literal

from .exceptions import ContextCancelled, ContextError, DeadlineExceeded
from .logging import get_logger

logger = get_logger(__name__)


class Context:
    """Carries a cancellation signal and an optional deadline across threads.

    Contexts form a tree: a child is cancelled when its parent is, and a
    child's deadline is never later than its parent's. Once done, a context
    stays done and ``error`` tells why.
    """

    def __init__(
        self, parent: "Context | None" = None, deadline: float | None = None
    ) -> None:
        if parent is not None and parent.deadline is not None:
            deadline = parent.deadline if deadline is None else min(deadline, parent.deadline)

        self._deadline = deadline
        self._done = threading.Event()
        self._lock = threading.Lock()
        self._error: ContextError | None = None
        self._callbacks: list[Callable[["Context"], None]] = []
        self._timer: threading.Timer | None = None
        self._parent = parent

        if parent is not None:
            parent.add_done_callback(self._cancel_from_parent)

        if deadline is not None and not self._done.is_set():
            delay = deadline - time.monotonic()
            if delay <= 0:
                self._finish(DeadlineExceeded("context deadline exceeded"))
            else:
                self._timer = threading.Timer(
                    delay, self._finish, args=(DeadlineExceeded("context deadline exceeded"),)
                )
                self._timer.daemon = True
                self._timer.start()

    @classmethod
    def background(cls) -> "Context":
        """Root context that is never cancelled and has no deadline."""
        return cls()

    def with_cancel(self) -> "Context":
        return Context(parent=self)

    def with_timeout(self, timeout: float) -> "Context":
        """Child context that expires ``timeout`` seconds from now."""
        return Context(parent=self, deadline=time.monotonic() + timeout)

    def with_deadline(self, deadline: float) -> "Context":
        """Child context that expires at ``deadline`` (a ``time.monotonic()`` value)."""
        return Context(parent=self, deadline=deadline)

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def error(self) -> ContextError | None:
        """Why the context is done, or None while it is still live."""
        return self._error

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def done(self) -> bool:
        return self._done.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the context is done; returns False on timeout."""
        return self._done.wait(timeout)

    def cancel(self) -> None:
        self._finish(ContextCancelled("context cancelled"))

    def add_done_callback(self, callback: Callable[["Context"], None]) -> None:
        """Run ``callback(self)`` once the context is done.

        The callback runs immediately, in the calling thread, if the context
        is already done.
        """
        with self._lock:
            if not self._done.is_set():
                self._callbacks.append(callback)
                return
        callback(self)

    def remove_done_callback(self, callback: Callable[["Context"], None]) -> None:
        with self._lock:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

    def _cancel_from_parent(self, parent: "Context") -> None:
        self._finish(parent.error or ContextCancelled("parent context cancelled"))

    def _finish(self, error: ContextError) -> None:
        with self._lock:
            if self._done.is_set():
                return
            self._error = error
            self._done.set()
            callbacks, self._callbacks = self._callbacks, []
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()

        # Detach so long-lived parents do not accumulate finished children
        parent, self._parent = self._parent, None
        if parent is not None:
            parent.remove_done_callback(self._cancel_from_parent)

        for callback in callbacks:
            try:
                callback(self)
            except Exception as e:
                logger.error("Context done callback failed", error=str(e))

    def __enter__(self) -> "Context":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> Literal[False]:
        self.cancel()
        return False

    def __repr__(self) -> str:
        state = type(self._error).__name__ if self._error else "live"
        return f"Context(state={state}, remaining={self.remaining()})"


@contextmanager
def timeout_context(timeout: float, parent: Context | None = None) -> Iterator[Context]:
    """Convenience function for a context cancelled on exit or after ``timeout``."""
    with (parent or Context.background()).with_timeout(timeout) as ctx:
        yield ctx
