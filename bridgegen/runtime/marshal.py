"""Conversion between host values and canonical values of a declared type.

Host values are plain Python data as a JS caller would hand them over:
``None``, numbers, strings, booleans, lists and dicts. Canonical values are
what a native implementation sees: nullable types become :class:`Nullable`,
enum members become :class:`EnumValue`, objects become dicts holding every
declared field in declaration order.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Union

from ..models import EnumTypeDef, ObjectTypeDef, TypeDef
from ..types import Type, TypeKind
from .errors import TypeMismatchError
from .nullable import Nullable

TypeIndex = Mapping[str, TypeDef]


@dataclass(frozen=True)
class EnumValue:
    """One variant of a declared enum."""

    enum: str
    label: str
    value: Union[str, int]


def to_canonical(
    value: Any,
    type_: Type,
    type_defs: Union[TypeIndex, Iterable[TypeDef]],
    path: str = "value",
) -> Any:
    """Convert a host value into the canonical value of ``type_``."""
    return _to_canonical(value, type_, _index(type_defs), path)


def to_host(
    value: Any,
    type_: Type,
    type_defs: Union[TypeIndex, Iterable[TypeDef]],
    path: str = "value",
) -> Any:
    """Convert a canonical value of ``type_`` back into a host value."""
    return _to_host(value, type_, _index(type_defs), path)


def _index(type_defs: Union[TypeIndex, Iterable[TypeDef]]) -> TypeIndex:
    if isinstance(type_defs, Mapping):
        return type_defs
    return {definition.name: definition for definition in type_defs}


def _actual(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def _scalar(value: Any, type_: Type, path: str) -> Any:
    kind = type_.kind
    if kind is TypeKind.NUMBER:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeMismatchError(path, "number", _actual(value))
        try:
            return float(value)
        except OverflowError:
            raise TypeMismatchError(path, "number", "int out of double range") from None
    if kind is TypeKind.STRING:
        if not isinstance(value, str):
            raise TypeMismatchError(path, "string", _actual(value))
        return value
    if kind is TypeKind.BOOLEAN:
        if not isinstance(value, bool):
            raise TypeMismatchError(path, "boolean", _actual(value))
        return value
    if value is not None:
        raise TypeMismatchError(path, "void", _actual(value))
    return None


def _to_canonical(value: Any, type_: Type, types: TypeIndex, path: str) -> Any:
    kind = type_.kind
    if kind is TypeKind.NULLABLE:
        if value is None:
            return Nullable.absent()
        return Nullable.present(_to_canonical(value, type_.inner, types, path))  # type: ignore[arg-type]
    if kind is TypeKind.ARRAY:
        if not isinstance(value, (list, tuple)):
            raise TypeMismatchError(path, str(type_), _actual(value))
        return [
            _to_canonical(item, type_.inner, types, f"{path}[{index}]")  # type: ignore[arg-type]
            for index, item in enumerate(value)
        ]
    if kind is TypeKind.OBJECT:
        definition = _object_def(type_, types)
        if not isinstance(value, Mapping):
            raise TypeMismatchError(path, definition.name, _actual(value))
        result = {}
        for item in definition.fields:
            field_path = f"{path}.{item.name}"
            if item.name not in value:
                if item.is_mandatory:
                    raise TypeMismatchError(field_path, str(item.type), "missing field")
                result[item.name] = Nullable.absent()
                continue
            result[item.name] = _to_canonical(value[item.name], item.type, types, field_path)
        return result
    if kind is TypeKind.ENUM:
        definition = _enum_def(type_, types)
        if isinstance(value, EnumValue) and value.enum == definition.name:
            if definition.variant_for_label(value.label) is None:
                raise TypeMismatchError(path, f"enum {definition.name}", repr(value.label))
            return value
        variant = definition.variant_for_value(value)
        if variant is None:
            raise TypeMismatchError(path, f"enum {definition.name}", repr(value))
        return EnumValue(definition.name, variant.label, variant.value)
    if kind is TypeKind.PROMISE:
        raise ValueError("promise values are produced by the bridge, not marshaled")
    return _scalar(value, type_, path)


def _to_host(value: Any, type_: Type, types: TypeIndex, path: str) -> Any:
    kind = type_.kind
    if kind is TypeKind.NULLABLE:
        if not isinstance(value, Nullable):
            raise TypeMismatchError(path, str(type_), _actual(value))
        if not value.is_present:
            return None
        return _to_host(value.unwrap(), type_.inner, types, path)  # type: ignore[arg-type]
    if kind is TypeKind.ARRAY:
        if not isinstance(value, (list, tuple)):
            raise TypeMismatchError(path, str(type_), _actual(value))
        return [
            _to_host(item, type_.inner, types, f"{path}[{index}]")  # type: ignore[arg-type]
            for index, item in enumerate(value)
        ]
    if kind is TypeKind.OBJECT:
        definition = _object_def(type_, types)
        if not isinstance(value, Mapping):
            raise TypeMismatchError(path, definition.name, _actual(value))
        result = {}
        for item in definition.fields:
            field_path = f"{path}.{item.name}"
            if item.name not in value:
                if item.is_mandatory:
                    raise TypeMismatchError(field_path, str(item.type), "missing field")
                result[item.name] = None
                continue
            result[item.name] = _to_host(value[item.name], item.type, types, field_path)
        return result
    if kind is TypeKind.ENUM:
        definition = _enum_def(type_, types)
        if isinstance(value, EnumValue):
            variant = definition.variant_for_label(value.label) if value.enum == definition.name else None
            if variant is None or variant.value != value.value:
                raise TypeMismatchError(path, f"enum {definition.name}", repr(value))
            return variant.value
        variant = definition.variant_for_value(value)
        if variant is None:
            raise TypeMismatchError(path, f"enum {definition.name}", repr(value))
        return variant.value
    if kind is TypeKind.PROMISE:
        raise ValueError("promise values are produced by the bridge, not marshaled")
    return _scalar(value, type_, path)


def _object_def(type_: Type, types: TypeIndex) -> ObjectTypeDef:
    definition = types.get(str(type_.name))
    if not isinstance(definition, ObjectTypeDef):
        raise KeyError(f"no object type named '{type_.name}'")
    return definition


def _enum_def(type_: Type, types: TypeIndex) -> EnumTypeDef:
    definition = types.get(str(type_.name))
    if not isinstance(definition, EnumTypeDef):
        raise KeyError(f"no enum type named '{type_.name}'")
    return definition


__all__ = ["EnumValue", "to_canonical", "to_host"]
