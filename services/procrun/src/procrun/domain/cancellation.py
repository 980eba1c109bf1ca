"""Cancellation signal shared between a caller and an invocation.

A ``Cancellation`` fires at most once, either because ``cancel`` was
called, because its deadline passed, or because its parent fired. Work that
needs to react registers a callback with ``on_cancel`` and unregisters it
when it no longer cares, so nothing outlives the work it belongs to.
"""

from __future__ import annotations

from collections.abc import Callable
import threading

CANCELED = "context canceled"
DEADLINE_EXCEEDED = "context deadline exceeded"


class Cancelled(Exception):
    """Reason a cancellation fired, used as the cause of refused work."""

    def __init__(self, reason: str = CANCELED) -> None:
        super().__init__(reason)
        self.reason = reason

    @property
    def deadline_exceeded(self) -> bool:
        return self.reason == DEADLINE_EXCEEDED


class Cancellation:
    def __init__(
        self,
        parent: Cancellation | None = None,
        timeout: float | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._fired = threading.Event()
        self._reason: str | None = None
        self._callbacks: dict[int, Callable[[], None]] = {}
        self._next_id = 0
        self._timer: threading.Timer | None = None
        self._detach: Callable[[], bool] | None = None
        if timeout is not None:
            if timeout <= 0:
                self.cancel(DEADLINE_EXCEEDED)
                return
            self._timer = threading.Timer(timeout, self.cancel, args=(DEADLINE_EXCEEDED,))
            self._timer.daemon = True
            self._timer.start()
        if parent is not None:
            self._detach = parent.on_cancel(lambda: self.cancel(parent.reason or CANCELED))

    @classmethod
    def with_timeout(cls, seconds: float, parent: Cancellation | None = None) -> Cancellation:
        return cls(parent=parent, timeout=seconds)

    def __enter__(self) -> Cancellation:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cancel()

    @property
    def cancelled(self) -> bool:
        return self._fired.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def error(self) -> Cancelled | None:
        if self._reason is None:
            return None
        return Cancelled(self._reason)

    def wait(self, timeout: float | None = None) -> bool:
        return self._fired.wait(timeout)

    def cancel(self, reason: str = CANCELED) -> bool:
        """Fire the signal. Returns ``False`` if it had already fired."""
        with self._lock:
            if self._fired.is_set():
                return False
            self._reason = reason
            self._fired.set()
            callbacks = list(self._callbacks.values())
            self._callbacks.clear()
        if self._timer is not None:
            self._timer.cancel()
        if self._detach is not None:
            self._detach()
        for callback in callbacks:
            callback()
        return True

    def on_cancel(self, callback: Callable[[], None]) -> Callable[[], bool]:
        """Run ``callback`` once when the signal fires.

        If the signal has already fired the callback runs immediately. The
        returned function unregisters the callback and reports whether it
        did so before the callback ran.
        """
        with self._lock:
            if not self._fired.is_set():
                key = self._next_id
                self._next_id += 1
                self._callbacks[key] = callback

                def stop() -> bool:
                    with self._lock:
                        return self._callbacks.pop(key, None) is not None

                return stop
        callback()
        return lambda: False
