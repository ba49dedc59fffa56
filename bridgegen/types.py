"""Canonical type representation shared by the resolver and both emitters."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Optional


class TypeKind(str, Enum):
    """Closed set of canonical type variants."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    VOID = "void"
    OBJECT = "object"
    ARRAY = "array"
    NULLABLE = "nullable"
    ENUM = "enum"
    PROMISE = "promise"


_NAMED_KINDS = frozenset({TypeKind.OBJECT, TypeKind.ENUM})
_WRAPPER_KINDS = frozenset({TypeKind.ARRAY, TypeKind.NULLABLE, TypeKind.PROMISE})


@dataclass(frozen=True)
class Type:
    """A resolved type: a kind tag plus a referenced name or a wrapped type.

    ``OBJECT`` and ``ENUM`` carry ``name`` (a key into the module's type
    definitions); ``ARRAY``, ``NULLABLE`` and ``PROMISE`` carry ``inner``.
    Scalars carry neither.
    """

    kind: TypeKind
    name: Optional[str] = None
    inner: Optional["Type"] = None

    def __post_init__(self) -> None:
        if self.kind in _NAMED_KINDS:
            if not self.name or self.inner is not None:
                raise ValueError(f"{self.kind.value} type requires a name and no inner type")
        elif self.kind in _WRAPPER_KINDS:
            if self.inner is None or self.name is not None:
                raise ValueError(f"{self.kind.value} type requires an inner type")
            if self.kind is TypeKind.NULLABLE and self.inner.kind is TypeKind.NULLABLE:
                raise ValueError("nullable type cannot wrap another nullable type")
        elif self.name is not None or self.inner is not None:
            raise ValueError(f"{self.kind.value} type takes no arguments")

    @classmethod
    def number(cls) -> "Type":
        return cls(TypeKind.NUMBER)

    @classmethod
    def string(cls) -> "Type":
        return cls(TypeKind.STRING)

    @classmethod
    def boolean(cls) -> "Type":
        return cls(TypeKind.BOOLEAN)

    @classmethod
    def void(cls) -> "Type":
        return cls(TypeKind.VOID)

    @classmethod
    def object_ref(cls, name: str) -> "Type":
        return cls(TypeKind.OBJECT, name=name)

    @classmethod
    def enum_ref(cls, name: str) -> "Type":
        return cls(TypeKind.ENUM, name=name)

    @classmethod
    def array_of(cls, inner: "Type") -> "Type":
        return cls(TypeKind.ARRAY, inner=inner)

    @classmethod
    def nullable(cls, inner: "Type") -> "Type":
        return cls(TypeKind.NULLABLE, inner=inner)

    @classmethod
    def promise_of(cls, inner: "Type") -> "Type":
        return cls(TypeKind.PROMISE, inner=inner)

    @property
    def is_nullable(self) -> bool:
        return self.kind is TypeKind.NULLABLE

    @property
    def is_promise(self) -> bool:
        return self.kind is TypeKind.PROMISE

    def walk(self) -> Iterator["Type"]:
        """Yield this type and every type nested inside it, outermost first."""
        current: Optional[Type] = self
        while current is not None:
            yield current
            current = current.inner

    def references(self) -> Iterator[str]:
        """Yield the names of object and enum definitions this type refers to."""
        for node in self.walk():
            if node.name is not None:
                yield node.name

    def describe(self) -> str:
        """Render the type in interface-description syntax for diagnostics."""
        if self.kind in _NAMED_KINDS:
            return str(self.name)
        if self.kind is TypeKind.ARRAY:
            inner = self.inner.describe()  # type: ignore[union-attr]
            if self.inner.kind is TypeKind.NULLABLE:  # type: ignore[union-attr]
                inner = f"({inner})"
            return f"{inner}[]"
        if self.kind is TypeKind.NULLABLE:
            return f"{self.inner.describe()} | null"  # type: ignore[union-attr]
        if self.kind is TypeKind.PROMISE:
            return f"Promise<{self.inner.describe()}>"  # type: ignore[union-attr]
        return self.kind.value

    def __str__(self) -> str:
        return self.describe()


__all__ = ["Type", "TypeKind"]
