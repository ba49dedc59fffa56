"""Single-settlement promise handed back by deferred bridge calls."""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Generic, List, Optional, TypeVar, Union

from ..logging import get_logger
from .errors import PromiseRejection, PromiseStateError

T = TypeVar("T")

_logger = get_logger("runtime.promise")


class PromiseState(str, Enum):
    PENDING = "pending"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"


class Promise(Generic[T]):
    """Pending until settled exactly once by ``resolve`` or ``reject``.

    Settling from any thread is safe. A second settlement raises
    :class:`PromiseStateError` and leaves the first outcome in place.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._settled = threading.Event()
        self._state = PromiseState.PENDING
        self._value: Optional[T] = None
        self._reason: Optional[str] = None
        self._cause: Optional[BaseException] = None
        self._callbacks: List[Callable[["Promise[T]"], None]] = []

    @classmethod
    def resolved(cls, value: T) -> "Promise[T]":
        promise: Promise[T] = cls()
        promise.resolve(value)
        return promise

    @classmethod
    def rejected(cls, reason: Union[str, BaseException]) -> "Promise[T]":
        promise: Promise[T] = cls()
        promise.reject(reason)
        return promise

    @property
    def state(self) -> PromiseState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state is PromiseState.PENDING

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def resolve(self, value: T = None) -> None:  # type: ignore[assignment]
        self._settle(PromiseState.FULFILLED, value=value)

    def reject(self, reason: Union[str, BaseException]) -> None:
        if isinstance(reason, BaseException):
            message = str(reason) or reason.__class__.__name__
            self._settle(PromiseState.REJECTED, reason=message, cause=reason)
        else:
            self._settle(PromiseState.REJECTED, reason=str(reason))

    def add_done_callback(self, callback: Callable[["Promise[T]"], None]) -> None:
        """Run ``callback`` once the promise settles (immediately if it already has)."""
        with self._lock:
            if self._state is PromiseState.PENDING:
                self._callbacks.append(callback)
                return
        self._run_callback(callback)

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._settled.wait(timeout)

    def result(self, timeout: Optional[float] = None) -> T:
        """Block until settled; return the value or raise :class:`PromiseRejection`."""
        if not self._settled.wait(timeout):
            raise TimeoutError("promise still pending")
        if self._state is PromiseState.REJECTED:
            raise PromiseRejection(self._reason or "") from self._cause
        return self._value  # type: ignore[return-value]

    def _settle(
        self,
        state: PromiseState,
        *,
        value: Optional[T] = None,
        reason: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        with self._lock:
            if self._state is not PromiseState.PENDING:
                raise PromiseStateError(f"promise already {self._state.value}")
            self._state = state
            self._value = value
            self._reason = reason
            self._cause = cause
            callbacks, self._callbacks = self._callbacks, []
            self._settled.set()
        for callback in callbacks:
            self._run_callback(callback)

    def _run_callback(self, callback: Callable[["Promise[T]"], None]) -> None:
        try:
            callback(self)
        except Exception:
            _logger.exception("Promise callback failed")

    def __repr__(self) -> str:
        return f"<Promise {self._state.value}>"


__all__ = ["Promise", "PromiseState"]
