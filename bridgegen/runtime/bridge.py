"""In-process bridge binding a Python implementation to a module spec."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..config import BridgegenConfig
from ..dispatch import DispatchPlan
from ..emitters.naming import snake_case
from ..logging import get_logger
from ..models import Method, ModuleSpec
from ..types import TypeKind
from .errors import ArgumentCountError, BridgeError, DirectCallPanic, UnknownMemberError
from .marshal import to_canonical, to_host
from .promise import Promise
from .signal import Listener, Signal, Subscription

DEFAULT_WORKER_THREADS = 4


class ModuleBridge:
    """Routes host calls to an implementation following the thunk contract.

    Arguments are marshaled to canonical values before anything is
    dispatched, so a bad argument fails synchronously for every method.
    Direct methods run on the calling thread. Deferred methods return a
    pending :class:`Promise` at once and run on the worker pool; the promise
    is settled exactly once with the marshaled result or the failure.
    """

    def __init__(
        self,
        spec: ModuleSpec,
        implementation: object,
        *,
        worker_threads: int = DEFAULT_WORKER_THREADS,
    ) -> None:
        self.spec = spec
        self.implementation = implementation
        self.plan = DispatchPlan.for_module(spec)
        self.logger = get_logger("runtime.bridge")
        self._types = spec.type_index()
        self._handlers = {method.name: self._bind(method) for method in spec.methods}
        self._workers = ThreadPoolExecutor(
            max_workers=worker_threads, thread_name_prefix=f"{snake_case(spec.name)}-worker"
        )
        self._listener_executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix=f"{snake_case(spec.name)}-signals"
        )
        self._signals: Dict[str, Signal] = {
            signal.name: Signal(signal.name, executor=self._listener_executor)
            for signal in spec.signals
        }

    @classmethod
    def from_config(
        cls, spec: ModuleSpec, implementation: object, config: BridgegenConfig
    ) -> "ModuleBridge":
        """Build a bridge sized by the project's ``runtime.worker_threads`` setting."""
        return cls(spec, implementation, worker_threads=config.runtime.worker_threads)

    def __enter__(self) -> "ModuleBridge":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def call(self, name: str, *args: Any) -> Any:
        """Invoke ``name`` with host arguments; deferred methods return a Promise."""
        method = self.spec.method(name)
        if method is None:
            raise UnknownMemberError(f"module '{self.spec.name}' has no method '{name}'")
        if len(args) != len(method.params):
            raise ArgumentCountError(name, len(method.params), len(args))
        converted = [
            to_canonical(arg, param.type, self._types, f"{name}({param.name})")
            for param, arg in zip(method.params, args)
        ]
        handler = self._handlers[name]
        if self.plan.is_deferred(name):
            return self._defer(method, handler, converted)
        return self._direct(method, handler, converted)

    def subscribe(self, signal: str, listener: Listener) -> Subscription:
        return self._signal(signal).subscribe(listener)

    def emit(self, signal: str) -> List["Future[None]"]:
        """Notify every listener of ``signal``; used by the native side."""
        return self._signal(signal).emit()

    def close(self, wait: bool = True) -> None:
        self._workers.shutdown(wait=wait)
        for signal in self._signals.values():
            signal.close()
        self._listener_executor.shutdown(wait=wait)

    def _signal(self, name: str) -> Signal:
        try:
            return self._signals[name]
        except KeyError:
            raise UnknownMemberError(f"module '{self.spec.name}' has no signal '{name}'") from None

    def _bind(self, method: Method) -> Callable[..., Any]:
        for attribute in (snake_case(method.name), method.name):
            handler = getattr(self.implementation, attribute, None)
            if callable(handler):
                return handler
        raise BridgeError(
            f"{type(self.implementation).__name__} does not implement "
            f"{self.spec.name}.{method.name} (expected '{snake_case(method.name)}')"
        )

    def _direct(self, method: Method, handler: Callable[..., Any], args: Sequence[Any]) -> Any:
        try:
            result = handler(*args)
        except Exception as exc:
            self.logger.debug("Direct call %s.%s failed: %s", self.spec.name, method.name, exc)
            raise DirectCallPanic(self.spec.name, method.name, exc) from exc
        if method.return_type.kind is TypeKind.VOID:
            return None
        return to_host(result, method.return_type, self._types, f"{method.name}()")

    def _defer(self, method: Method, handler: Callable[..., Any], args: Sequence[Any]) -> Promise[Any]:
        promise: Promise[Any] = Promise()
        try:
            self._workers.submit(self._run_deferred, method, handler, args, promise)
        except RuntimeError:
            promise.reject(BridgeError(f"module '{self.spec.name}' is closed"))
        return promise

    def _run_deferred(
        self,
        method: Method,
        handler: Callable[..., Any],
        args: Sequence[Any],
        promise: Promise[Any],
    ) -> None:
        settled: Optional[Any] = None
        try:
            result = handler(*args)
            resolved_type = method.return_type.inner
            assert resolved_type is not None
            if resolved_type.kind is not TypeKind.VOID:
                settled = to_host(result, resolved_type, self._types, f"{method.name}()")
        except BaseException as exc:
            self.logger.debug("Deferred call %s.%s rejected: %s", self.spec.name, method.name, exc)
            promise.reject(exc)
            if not isinstance(exc, Exception):
                raise
            return
        promise.resolve(settled)


__all__ = ["DEFAULT_WORKER_THREADS", "ModuleBridge"]
