"""Core data models shared across bridgegen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, Optional, Tuple, Union

from .types import Type


@dataclass(frozen=True, order=True)
class SourceLocation:
    """Position of a declaration inside an interface description unit."""

    path: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.path}:{self.line}:{self.column}"


@dataclass(frozen=True)
class InterfaceUnit:
    """One interface description source file."""

    path: str
    source: str

    @classmethod
    def from_file(cls, path: Path, *, root: Path | None = None) -> "InterfaceUnit":
        display = path
        if root is not None:
            try:
                display = path.relative_to(root)
            except ValueError:
                display = path
        return cls(path=display.as_posix(), source=path.read_text(encoding="utf-8"))


@dataclass(frozen=True)
class Param:
    """Named, typed method parameter."""

    name: str
    type: Type


@dataclass(frozen=True)
class Field:
    """Named, typed object field."""

    name: str
    type: Type

    @property
    def is_mandatory(self) -> bool:
        return not self.type.is_nullable


@dataclass(frozen=True)
class Method:
    """Callable member of a native module."""

    name: str
    params: Tuple[Param, ...]
    return_type: Type
    location: Optional[SourceLocation] = field(default=None, compare=False)

    @property
    def is_async(self) -> bool:
        return self.return_type.is_promise


@dataclass(frozen=True)
class SignalDef:
    """Payload-free event channel exposed by a native module."""

    name: str
    location: Optional[SourceLocation] = field(default=None, compare=False)


@dataclass(frozen=True)
class ObjectTypeDef:
    """Object shape with ordered fields."""

    name: str
    fields: Tuple[Field, ...]
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def get_field(self, name: str) -> Optional[Field]:
        for item in self.fields:
            if item.name == name:
                return item
        return None


class EnumKind(str, Enum):
    """Literal kind shared by every variant of an enum."""

    STRING = "string"
    NUMERIC = "numeric"


@dataclass(frozen=True)
class EnumVariant:
    """Enum member label and its literal value."""

    label: str
    value: Union[str, int]


@dataclass(frozen=True)
class EnumTypeDef:
    """Enum declaration with uniquely valued variants."""

    name: str
    kind: EnumKind
    variants: Tuple[EnumVariant, ...]
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def variant_for_value(self, value: object) -> Optional[EnumVariant]:
        for variant in self.variants:
            if self.kind is EnumKind.NUMERIC:
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    return None
                if variant.value == value:
                    return variant
            elif variant.value == value:
                return variant
        return None

    def variant_for_label(self, label: str) -> Optional[EnumVariant]:
        for variant in self.variants:
            if variant.label == label:
                return variant
        return None


TypeDef = Union[ObjectTypeDef, EnumTypeDef]


@dataclass(frozen=True)
class ModuleSpec:
    """Validated description of one native module boundary."""

    name: str
    methods: Tuple[Method, ...]
    signals: Tuple[SignalDef, ...] = ()
    type_defs: Tuple[TypeDef, ...] = ()
    location: Optional[SourceLocation] = field(default=None, compare=False)

    def method(self, name: str) -> Optional[Method]:
        for method in self.methods:
            if method.name == name:
                return method
        return None

    def signal(self, name: str) -> Optional[SignalDef]:
        for signal in self.signals:
            if signal.name == name:
                return signal
        return None

    def type_def(self, name: str) -> Optional[TypeDef]:
        return self.type_index().get(name)

    def type_index(self) -> Dict[str, TypeDef]:
        return {definition.name: definition for definition in self.type_defs}

    def object_defs(self) -> Iterator[ObjectTypeDef]:
        for definition in self.type_defs:
            if isinstance(definition, ObjectTypeDef):
                yield definition

    def enum_defs(self) -> Iterator[EnumTypeDef]:
        for definition in self.type_defs:
            if isinstance(definition, EnumTypeDef):
                yield definition


__all__ = [
    "EnumKind",
    "EnumTypeDef",
    "EnumVariant",
    "Field",
    "InterfaceUnit",
    "Method",
    "ModuleSpec",
    "ObjectTypeDef",
    "Param",
    "SignalDef",
    "SourceLocation",
    "TypeDef",
]
