"""Errors raised while marshaling values or dispatching bridge calls."""

from __future__ import annotations


class BridgeError(RuntimeError):
    """Base class for runtime bridge failures."""


class TypeMismatchError(BridgeError):
    """A value does not conform to the declared canonical type."""

    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(f"{path}: expected {expected}, got {actual}")
        self.path = path
        self.expected = expected
        self.actual = actual


class ArgumentCountError(BridgeError):
    """A method was called with the wrong number of arguments."""

    def __init__(self, method: str, expected: int, actual: int) -> None:
        noun = "argument" if expected == 1 else "arguments"
        super().__init__(f"{method}: Expected {expected} {noun}, got {actual}")
        self.method = method
        self.expected = expected
        self.actual = actual


class UnknownMemberError(BridgeError):
    """The module declares no method or signal with the requested name."""


class PromiseRejection(BridgeError):
    """Raised when waiting on a promise that was rejected."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PromiseStateError(BridgeError):
    """A promise was settled more than once."""


class NullableUnwrapError(BridgeError):
    """``unwrap`` was called on an absent nullable."""


class DirectCallPanic(BridgeError):
    """The native side of a synchronous call failed.

    Direct calls have no rejection channel, so the failure surfaces to the
    caller as this error instead of a return value.
    """

    def __init__(self, module: str, method: str, cause: BaseException) -> None:
        super().__init__(f"{module}.{method} failed: {cause}")
        self.module = module
        self.method = method
        self.cause = cause


__all__ = [
    "ArgumentCountError",
    "BridgeError",
    "DirectCallPanic",
    "NullableUnwrapError",
    "PromiseRejection",
    "PromiseStateError",
    "TypeMismatchError",
    "UnknownMemberError",
]
