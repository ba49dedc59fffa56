"""Present-or-absent value container."""

from __future__ import annotations

from typing import Any, Callable, Generic, Optional, TypeVar

from .errors import NullableUnwrapError

T = TypeVar("T")
U = TypeVar("U")


class Nullable(Generic[T]):
    """Either absent or holding exactly one value.

    Instances are immutable; use :meth:`present` and :meth:`absent` to build
    them. A present value is never ``None``.
    """

    __slots__ = ("_value", "_present")

    def __init__(self, value: Optional[T], present: bool) -> None:
        if present and value is None:
            raise ValueError("a present Nullable cannot hold None")
        object.__setattr__(self, "_value", value)
        object.__setattr__(self, "_present", present)

    @classmethod
    def present(cls, value: T) -> "Nullable[T]":
        return cls(value, True)

    @classmethod
    def absent(cls) -> "Nullable[T]":
        return cls(None, False)

    @classmethod
    def from_optional(cls, value: Optional[T]) -> "Nullable[T]":
        return cls.absent() if value is None else cls.present(value)

    @property
    def is_present(self) -> bool:
        return self._present

    def unwrap(self) -> T:
        if not self._present:
            raise NullableUnwrapError("called unwrap() on an absent Nullable")
        return self._value  # type: ignore[return-value]

    def unwrap_or(self, default: T) -> T:
        return self._value if self._present else default  # type: ignore[return-value]

    def map(self, func: Callable[[T], U]) -> "Nullable[U]":
        if not self._present:
            return Nullable.absent()
        return Nullable.present(func(self._value))  # type: ignore[arg-type]

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Nullable is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Nullable):
            return NotImplemented
        if self._present != other._present:
            return False
        return not self._present or self._value == other._value

    def __hash__(self) -> int:
        return hash((self._present, self._value))

    def __bool__(self) -> bool:
        return self._present

    def __repr__(self) -> str:
        if self._present:
            return f"Nullable.present({self._value!r})"
        return "Nullable.absent()"


__all__ = ["Nullable"]
