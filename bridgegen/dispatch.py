"""Per-method dispatch decisions shared by the C++ emitter and the runtime bridge."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Iterator, Mapping, Tuple

from .models import Method, ModuleSpec


class DispatchMode(str, Enum):
    """How a bridge thunk runs the native implementation of a method."""

    DIRECT = "direct"
    DEFERRED = "deferred"


def dispatch_mode(method: Method) -> DispatchMode:
    """Promise-returning methods run on the worker pool; everything else inline."""
    return DispatchMode.DEFERRED if method.is_async else DispatchMode.DIRECT


@dataclass(frozen=True)
class DispatchPlan:
    """Dispatch mode of every method of one module, fixed at generation time."""

    module: str
    modes: Mapping[str, DispatchMode]

    @classmethod
    def for_module(cls, spec: ModuleSpec) -> "DispatchPlan":
        modes = {method.name: dispatch_mode(method) for method in spec.methods}
        return cls(module=spec.name, modes=MappingProxyType(modes))

    def mode(self, method_name: str) -> DispatchMode:
        try:
            return self.modes[method_name]
        except KeyError:
            raise KeyError(f"module '{self.module}' has no method '{method_name}'") from None

    def is_deferred(self, method_name: str) -> bool:
        return self.mode(method_name) is DispatchMode.DEFERRED

    def deferred(self) -> Tuple[str, ...]:
        return tuple(name for name, mode in self.modes.items() if mode is DispatchMode.DEFERRED)

    def __iter__(self) -> Iterator[Tuple[str, DispatchMode]]:
        return iter(self.modes.items())


__all__ = ["DispatchMode", "DispatchPlan", "dispatch_mode"]
