"""Rust sources for a module: declarations, the cxx bridge and the implementation scaffold."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Union

from ..models import EnumKind, EnumTypeDef, Method, ModuleSpec, ObjectTypeDef, TypeDef
from ..types import Type, TypeKind
from .base import Emitter
from .naming import NameTable, flat_case, pascal_case, raise_name_clashes, rust_identifier, snake_case

_SCALARS = {
    TypeKind.NUMBER: "Number",
    TypeKind.STRING: "String",
    TypeKind.BOOLEAN: "Boolean",
    TypeKind.VOID: "()",
}
_WRAPPERS = {
    TypeKind.ARRAY: "Array",
    TypeKind.NULLABLE: "Nullable",
    TypeKind.PROMISE: "Promise",
}
_SCALAR_NAMES = {name: kind for kind, name in _SCALARS.items()}
_WRAPPER_NAMES = {name: kind for kind, name in _WRAPPERS.items()}


def rust_type(type_: Type) -> str:
    """Spell a canonical type the way the generated Rust module names it."""
    scalar = _SCALARS.get(type_.kind)
    if scalar is not None:
        return scalar
    wrapper = _WRAPPERS.get(type_.kind)
    if wrapper is not None:
        return f"{wrapper}<{rust_type(type_.inner)}>"  # type: ignore[arg-type]
    return str(type_.name)


def type_from_rust(
    text: str, type_defs: Union[Mapping[str, TypeDef], Iterable[TypeDef]]
) -> Type:
    """Parse a type spelled by :func:`rust_type` back into a canonical type."""
    index = type_defs if isinstance(type_defs, Mapping) else {item.name: item for item in type_defs}
    text = text.strip()
    if text in _SCALAR_NAMES:
        return Type(_SCALAR_NAMES[text])
    if text.endswith(">") and "<" in text:
        head, _, rest = text.partition("<")
        kind = _WRAPPER_NAMES.get(head.strip())
        if kind is None:
            raise ValueError(f"unknown generic Rust type '{head}'")
        return Type(kind, inner=type_from_rust(rest[:-1], index))
    definition = index.get(text)
    if isinstance(definition, ObjectTypeDef):
        return Type.object_ref(text)
    if isinstance(definition, EnumTypeDef):
        return Type.enum_ref(text)
    raise ValueError(f"unknown Rust type '{text}'")


# Names the generated Rust files define or import at module level.
_RUST_PRELUDE_NAMES = (
    "Boolean", "Number", "Array", "Nullable", "Promise", "String", "Vec", "Option",
    "Box", "Result", "Send", "Sync", "Serialize", "Deserialize", "Serialize_repr",
    "Deserialize_repr", "ffi",
)


class RustEmitter(Emitter):
    """Renders the Rust side of a module boundary."""

    template_name = "module.rs.j2"
    language = "rust"

    def filename(self, spec: ModuleSpec) -> str:
        return f"{snake_case(spec.name)}.rs"

    def context(self, spec: ModuleSpec) -> Dict[str, Any]:
        raise_name_clashes(rust_name_tables(spec))
        prefix = pascal_case(spec.name)
        definitions: List[Dict[str, Any]] = []
        for definition in spec.type_defs:
            if isinstance(definition, ObjectTypeDef):
                definitions.append(self._struct(definition))
            else:
                definitions.append(self._enum(definition))
        return {
            "module": spec.name,
            "snake": snake_case(spec.name),
            "trait_name": f"{prefix}Spec",
            "signal_enum": f"{prefix}Signal",
            "definitions": definitions,
            "serde_derives": any(not item.get("numeric") for item in definitions),
            "numeric_enums": any(item.get("numeric") for item in definitions),
            "methods": [self._method(method, spec.name) for method in spec.methods],
            "signals": [
                {
                    "variant": pascal_case(signal.name),
                    "js_name": signal.name,
                    "emit_fn": f"emit_{snake_case(signal.name)}",
                }
                for signal in spec.signals
            ],
        }

    @staticmethod
    def _struct(definition: ObjectTypeDef) -> Dict[str, Any]:
        fields = []
        for item in definition.fields:
            name = snake_case(item.name)
            fields.append(
                {
                    "name": rust_identifier(name),
                    "rename": item.name if name != item.name else None,
                    "type": rust_type(item.type),
                    "nullable": item.type.is_nullable,
                }
            )
        return {"kind": "struct", "name": definition.name, "fields": fields}

    @staticmethod
    def _enum(definition: EnumTypeDef) -> Dict[str, Any]:
        numeric = definition.kind is EnumKind.NUMERIC
        variants = []
        for variant in definition.variants:
            variants.append(
                {
                    "name": pascal_case(variant.label),
                    "value": str(variant.value) if numeric else variant.value,
                }
            )
        return {"kind": "enum", "name": definition.name, "numeric": numeric, "variants": variants}

    @staticmethod
    def _method(method: Method, module: str) -> Dict[str, Any]:
        args = [
            {"name": rust_identifier(snake_case(param.name)), "type": rust_type(param.type)}
            for param in method.params
        ]
        name = rust_identifier(snake_case(method.name))
        returns = "" if method.return_type.kind is TypeKind.VOID else f" -> {rust_type(method.return_type)}"
        return {
            "name": name,
            "js_name": method.name,
            "args": args,
            "params": ", ".join(f"{arg['name']}: {arg['type']}" for arg in args),
            "returns": returns,
            "void": method.return_type.kind is TypeKind.VOID,
            "deferred": method.is_async,
            "ffi_fn": f"{snake_case(module)}_{snake_case(method.name)}",
        }


class RustFfiEmitter(RustEmitter):
    """Renders the cxx bridge that connects the C++ adapter to the Rust trait.

    Values cross the boundary as JSON text, using the serde derives of the
    declaration module.
    """

    template_name = "ffi.rs.j2"

    def filename(self, spec: ModuleSpec) -> str:
        return f"{snake_case(spec.name)}_ffi.rs"

    def context(self, spec: ModuleSpec) -> Dict[str, Any]:
        context = super().context(spec)
        context.update(rust_ffi_names(spec))
        context["decodes"] = any(method.params for method in spec.methods)
        return context


class RustImplEmitter(RustEmitter):
    """Renders the implementation scaffold; written once, never overwritten."""

    template_name = "impl.rs.j2"
    overwrite = False

    def filename(self, spec: ModuleSpec) -> str:
        return f"{snake_case(spec.name)}_impl.rs"

    def context(self, spec: ModuleSpec) -> Dict[str, Any]:
        context = super().context(spec)
        context.update(rust_ffi_names(spec))
        return context


def rust_ffi_names(spec: ModuleSpec) -> Dict[str, str]:
    """Identifiers shared by the FFI module, the scaffold and the C++ adapter."""
    prefix = pascal_case(spec.name)
    snake = snake_case(spec.name)
    return {
        "impl_struct": prefix,
        "impl_module": f"{snake}_impl",
        "ffi_module": f"{snake}_ffi",
        "handle": f"{prefix}Handle",
        "context_struct": f"{prefix}Context",
        "create_fn": f"create_{snake}",
        "deliver_fn": f"bridgegen_{snake}_deliver",
        "ffi_namespace": f"bridgegen::{flat_case(spec.name)}::ffi",
    }


def rust_name_tables(spec: ModuleSpec) -> List[NameTable]:
    """Claim every identifier the Rust files derive from ``spec``."""
    prefix = pascal_case(spec.name)
    items = NameTable(f"Rust module '{snake_case(spec.name)}'")
    for reserved in _RUST_PRELUDE_NAMES + (
        prefix,
        f"{prefix}Spec",
        f"{prefix}Signal",
        f"{prefix}Handle",
        f"{prefix}Context",
    ):
        items.claim(reserved, f"generated {reserved}")
    for definition in spec.type_defs:
        items.claim(definition.name, definition.name, definition.location)

    tables = [items]
    trait = NameTable(f"trait {prefix}Spec")
    if spec.signals:
        trait.claim("emit", "generated emit")
    for method in spec.methods:
        trait.claim(rust_identifier(snake_case(method.name)), method.name, method.location)
        params = NameTable(f"parameters of {prefix}Spec::{snake_case(method.name)}")
        for param in method.params:
            params.claim(rust_identifier(snake_case(param.name)), param.name, method.location)
        tables.append(params)
    signals = NameTable(f"enum {prefix}Signal")
    for signal in spec.signals:
        trait.claim(f"emit_{snake_case(signal.name)}", signal.name, signal.location)
        signals.claim(pascal_case(signal.name), signal.name, signal.location)
    tables.extend([trait, signals])

    for definition in spec.type_defs:
        if isinstance(definition, ObjectTypeDef):
            scope = NameTable(f"struct {definition.name}")
            for item in definition.fields:
                scope.claim(rust_identifier(snake_case(item.name)), item.name, definition.location)
        else:
            scope = NameTable(f"enum {definition.name}")
            for variant in definition.variants:
                scope.claim(pascal_case(variant.label), variant.label, definition.location)
        tables.append(scope)
    return tables


__all__ = [
    "RustEmitter",
    "RustFfiEmitter",
    "RustImplEmitter",
    "rust_ffi_names",
    "rust_name_tables",
    "rust_type",
    "type_from_rust",
]
