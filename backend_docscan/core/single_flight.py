"""
Per-key single-flight guard.

At most one computation per key runs at a time. Callers that arrive while a
computation for the same key is in flight block until it finishes and receive
the same return value, or the same exception. The key is released on every
exit path, so a failed computation does not poison later calls.
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


class _Call(Generic[T]):
    __slots__ = ("done", "result", "error", "waiters")

    def __init__(self) -> None:
        self.done = threading.Event()
        self.result: T | None = None
        self.error: BaseException | None = None
        self.waiters = 0


class SingleFlight(Generic[T]):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: dict[str, _Call[T]] = {}

    def do(self, key: str, fn: Callable[[], T]) -> tuple[T, bool]:
        """
        Run fn() for key unless a call is already in flight.

        Returns (result, shared); shared is True when this caller waited on
        another caller's computation instead of running fn itself.
        """
        with self._lock:
            call = self._calls.get(key)
            if call is not None:
                call.waiters += 1
                leader = False
            else:
                call = _Call()
                self._calls[key] = call
                leader = True

        if not leader:
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.result, True  # type: ignore[return-value]

        try:
            call.result = fn()
        except BaseException as e:
            call.error = e
            raise
        finally:
            with self._lock:
                self._calls.pop(key, None)
            call.done.set()
        return call.result, False

    def in_flight(self, key: str) -> bool:
        with self._lock:
            return key in self._calls

    def waiters(self, key: str) -> int:
        """Callers that joined the in-flight computation for key; 0 when nothing is in flight."""
        with self._lock:
            call = self._calls.get(key)
            return call.waiters if call is not None else 0
