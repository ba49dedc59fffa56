"""Reference implementation of the runtime bridging primitives."""

from __future__ import annotations

from .bridge import ModuleBridge
from .errors import (
    ArgumentCountError,
    BridgeError,
    DirectCallPanic,
    NullableUnwrapError,
    PromiseRejection,
    PromiseStateError,
    TypeMismatchError,
    UnknownMemberError,
)
from .marshal import EnumValue, to_canonical, to_host
from .nullable import Nullable
from .promise import Promise, PromiseState
from .signal import Signal, Subscription

__all__ = [
    "ArgumentCountError",
    "BridgeError",
    "DirectCallPanic",
    "EnumValue",
    "ModuleBridge",
    "Nullable",
    "NullableUnwrapError",
    "Promise",
    "PromiseRejection",
    "PromiseState",
    "PromiseStateError",
    "Signal",
    "Subscription",
    "TypeMismatchError",
    "UnknownMemberError",
    "to_canonical",
    "to_host",
]
