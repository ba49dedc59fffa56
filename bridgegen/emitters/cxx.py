"""C++ JSI bridge glue: struct and enum bridging, the TurboModule thunks and the Rust adapter."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

from ..dispatch import DispatchMode, DispatchPlan
from ..models import EnumKind, EnumTypeDef, Method, ModuleSpec, ObjectTypeDef
from ..types import Type, TypeKind
from .base import Emitter
from .naming import NameTable, cxx_identifier, flat_case, pascal_case, raise_name_clashes, snake_case

_SCALARS = {
    TypeKind.NUMBER: "double",
    TypeKind.STRING: "std::string",
    TypeKind.BOOLEAN: "bool",
    TypeKind.VOID: "void",
}


def cxx_type(type_: Type, namespace: str) -> str:
    """Spell a canonical type as a fully qualified C++ type."""
    scalar = _SCALARS.get(type_.kind)
    if scalar is not None:
        return scalar
    if type_.kind in (TypeKind.OBJECT, TypeKind.ENUM):
        return f"bridgegen::{namespace}::{type_.name}"
    inner = cxx_type(type_.inner, namespace)  # type: ignore[arg-type]
    if type_.kind is TypeKind.ARRAY:
        return f"std::vector<{inner}>"
    if type_.kind is TypeKind.NULLABLE:
        return f"bridgegen::Nullable<{inner}>"
    raise ValueError(f"{type_} has no C++ value representation")


def by_value_order(objects: Sequence[ObjectTypeDef]) -> List[ObjectTypeDef]:
    """Order structs so that every struct held by value is defined before its holder."""
    index = {obj.name: obj for obj in objects}
    ordered: List[ObjectTypeDef] = []
    visited = set()

    def visit(obj: ObjectTypeDef) -> None:
        if obj.name in visited:
            return
        visited.add(obj.name)
        for item in obj.fields:
            for name in _held_by_value(item.type):
                if name in index:
                    visit(index[name])
        ordered.append(obj)

    for obj in objects:
        visit(obj)
    return ordered


def _held_by_value(type_: Type) -> Iterable[str]:
    for node in type_.walk():
        if node.kind is TypeKind.NULLABLE:
            return
        if node.kind is TypeKind.OBJECT and node.name is not None:
            yield node.name


class CxxBridgeEmitter(Emitter):
    """Renders the header-only C++ bridge for a module."""

    template_name = "bridge.hpp.j2"
    language = "cxx"

    def filename(self, spec: ModuleSpec) -> str:
        return f"{snake_case(spec.name)}_bridge.hpp"

    def context(self, spec: ModuleSpec) -> Dict[str, Any]:
        raise_name_clashes(cxx_name_tables(spec))
        namespace = flat_case(spec.name)
        prefix = pascal_case(spec.name)
        plan = DispatchPlan.for_module(spec)
        return {
            "module": spec.name,
            "namespace": namespace,
            "class_name": f"Cxx{prefix}Module",
            "impl_name": f"{prefix}Spec",
            "enums": [self._enum(definition, namespace) for definition in spec.enum_defs()],
            "structs": [
                self._struct(definition, namespace)
                for definition in by_value_order(list(spec.object_defs()))
            ],
            "methods": [
                self._method(method, namespace, plan.mode(method.name)) for method in spec.methods
            ],
            "signals": [
                {
                    "js_name": signal.name,
                    "thunk": cxx_identifier(signal.name),
                    "emit_fn": f"emit{pascal_case(signal.name)}",
                }
                for signal in spec.signals
            ],
        }

    @staticmethod
    def _struct(definition: ObjectTypeDef, namespace: str) -> Dict[str, Any]:
        return {
            "name": definition.name,
            "qualified": f"bridgegen::{namespace}::{definition.name}",
            "fields": [
                {
                    "name": cxx_identifier(item.name),
                    "js_name": item.name,
                    "type": cxx_type(item.type, namespace),
                    "mandatory": item.is_mandatory,
                }
                for item in definition.fields
            ],
        }

    @staticmethod
    def _enum(definition: EnumTypeDef, namespace: str) -> Dict[str, Any]:
        numeric = definition.kind is EnumKind.NUMERIC
        return {
            "name": definition.name,
            "qualified": f"bridgegen::{namespace}::{definition.name}",
            "numeric": numeric,
            "variants": [
                {
                    "name": pascal_case(variant.label),
                    "value": variant.value,
                    "literal": str(variant.value) if numeric else None,
                }
                for variant in definition.variants
            ],
        }

    @staticmethod
    def _method(method: Method, namespace: str, mode: DispatchMode) -> Dict[str, Any]:
        result = method.return_type.inner if method.is_async else method.return_type
        assert result is not None
        argc = len(method.params)
        return {
            "name": cxx_identifier(method.name),
            "js_name": method.name,
            "argc": argc,
            "arity_error": f"Expected {argc} argument{'' if argc == 1 else 's'}",
            "args": [
                {
                    "var": f"arg{index}",
                    "type": cxx_type(param.type, namespace),
                    "name": cxx_identifier(param.name),
                }
                for index, param in enumerate(method.params)
            ],
            "returns": cxx_type(result, namespace),
            "void": result.kind is TypeKind.VOID,
            "deferred": mode is DispatchMode.DEFERRED,
        }


class CxxRustAdapterEmitter(CxxBridgeEmitter):
    """Renders the C++ implementation class that forwards to the Rust module."""

    template_name = "rust_adapter.hpp.j2"

    def filename(self, spec: ModuleSpec) -> str:
        return f"{snake_case(spec.name)}_rust.hpp"

    def context(self, spec: ModuleSpec) -> Dict[str, Any]:
        context = super().context(spec)
        snake = snake_case(spec.name)
        for method, rendered in zip(spec.methods, context["methods"]):
            rendered["ffi_fn"] = f"{snake}_{snake_case(method.name)}"
        context.update(
            {
                "adapter_name": f"Rust{pascal_case(spec.name)}Spec",
                "bridge_header": super().filename(spec),
                "ffi_header": f"{snake}_ffi.rs.h",
                "handle": f"{pascal_case(spec.name)}Handle",
                "create_fn": f"create_{snake}",
                "deliver_fn": f"bridgegen_{snake}_deliver",
            }
        )
        return context


def cxx_name_tables(spec: ModuleSpec) -> List[NameTable]:
    """Claim every identifier the C++ headers derive from ``spec``."""
    prefix = pascal_case(spec.name)
    items = NameTable(f"namespace bridgegen::{flat_case(spec.name)}")
    for reserved in (f"{prefix}Spec", f"Cxx{prefix}Module", f"Rust{prefix}Spec", "ffi"):
        items.claim(reserved, f"generated {reserved}")
    for definition in spec.type_defs:
        items.claim(definition.name, definition.name, definition.location)

    # One table covers the implementation class and the Rust adapter deriving from it.
    members = NameTable(f"class {prefix}Spec")
    members.claim("handle_", "generated handle_")
    if spec.signals:
        for reserved in ("deliver", "emit", "emitter_"):
            members.claim(reserved, f"generated {reserved}")
    thunks = NameTable(f"class Cxx{prefix}Module")
    for reserved in ("kModuleName", "callInvoker_", "impl_", "signals_"):
        thunks.claim(reserved, f"generated {reserved}")
    tables = [items, members, thunks]
    for method in spec.methods:
        members.claim(cxx_identifier(method.name), method.name, method.location)
        thunks.claim(cxx_identifier(method.name), method.name, method.location)
        params = NameTable(f"parameters of {prefix}Spec::{method.name}")
        for param in method.params:
            params.claim(cxx_identifier(param.name), param.name, method.location)
        tables.append(params)
    for signal in spec.signals:
        members.claim(f"emit{pascal_case(signal.name)}", signal.name, signal.location)
        thunks.claim(cxx_identifier(signal.name), signal.name, signal.location)

    for definition in spec.type_defs:
        if isinstance(definition, ObjectTypeDef):
            scope = NameTable(f"struct {definition.name}")
            for item in definition.fields:
                scope.claim(cxx_identifier(item.name), item.name, definition.location)
        else:
            scope = NameTable(f"enum class {definition.name}")
            for variant in definition.variants:
                scope.claim(pascal_case(variant.label), variant.label, definition.location)
        tables.append(scope)
    return tables


__all__ = [
    "CxxBridgeEmitter",
    "CxxRustAdapterEmitter",
    "by_value_order",
    "cxx_name_tables",
    "cxx_type",
]
