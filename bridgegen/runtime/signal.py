"""Payload-free, multi-subscriber notification channel."""

from __future__ import annotations

import itertools
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Dict, List, Optional

from ..logging import get_logger

Listener = Callable[[], None]

_logger = get_logger("runtime.signal")


class Subscription:
    """Handle returned by :meth:`Signal.subscribe`; its only operation is removal."""

    def __init__(self, signal: "Signal", token: int) -> None:
        self._signal = signal
        self._token = token

    @property
    def active(self) -> bool:
        return self._signal._has(self._token)

    def remove(self) -> None:
        """Stop delivery to this listener. Removing twice is a no-op."""
        self._signal._remove(self._token)


class Signal:
    """Delivers each emission once to every listener registered at emit time.

    The listener set is snapshotted under a lock, so listeners may subscribe
    or unsubscribe concurrently with an emission. Delivery happens on the
    listener executor; ``emit`` never waits for listeners to run.
    """

    def __init__(self, name: str, executor: Optional[Executor] = None) -> None:
        self.name = name
        self._lock = threading.Lock()
        self._listeners: Dict[int, Listener] = {}
        self._tokens = itertools.count()
        self._owns_executor = executor is None
        self._executor: Executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"signal-{name}"
        )

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def subscribe(self, listener: Listener) -> Subscription:
        if not callable(listener):
            raise TypeError("signal listeners must be callable")
        with self._lock:
            token = next(self._tokens)
            self._listeners[token] = listener
        _logger.debug("Listener %d subscribed to %s", token, self.name)
        return Subscription(self, token)

    def emit(self) -> List["Future[None]"]:
        """Schedule every current listener once and return the delivery futures."""
        with self._lock:
            snapshot = list(self._listeners.values())
        return [self._executor.submit(self._deliver, listener) for listener in snapshot]

    def close(self) -> None:
        with self._lock:
            self._listeners.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=True)

    def _deliver(self, listener: Listener) -> None:
        try:
            listener()
        except Exception:
            _logger.exception("Listener for signal %s failed", self.name)

    def _has(self, token: int) -> bool:
        with self._lock:
            return token in self._listeners

    def _remove(self, token: int) -> None:
        with self._lock:
            removed = self._listeners.pop(token, None)
        if removed is not None:
            _logger.debug("Listener %d removed from %s", token, self.name)


__all__ = ["Listener", "Signal", "Subscription"]
