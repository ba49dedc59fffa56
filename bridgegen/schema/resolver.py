"""Resolution of raw declared types into canonical ``Type`` values."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

from ..errors import CyclicTypeError, SchemaError, SchemaParseError, UnsupportedTypeError
from ..logging import get_logger
from ..models import (
    EnumKind,
    EnumTypeDef,
    EnumVariant,
    Field,
    ObjectTypeDef,
    SourceLocation,
    TypeDef,
)
from ..types import Type, TypeKind
from .syntax import AliasDecl, ClassDecl, Declaration, EnumDecl, InterfaceDecl, TypeExpr

PROMISE_TYPE = "Promise"
SIGNAL_TYPE = "Signal"
MODULE_BASES = frozenset({"NativeModule", "TurboModule"})

_SCALAR_KEYWORDS = {
    "number": Type.number(),
    "string": Type.string(),
    "boolean": Type.boolean(),
}


class TypePosition(str, Enum):
    """Where a type expression appears; decides which constructs are legal."""

    RETURN = "return"
    PROMISE = "promise"
    PARAM = "param"
    FIELD = "field"
    ELEMENT = "element"
    NULLABLE = "nullable"


_VOID_POSITIONS = frozenset({TypePosition.RETURN, TypePosition.PROMISE})


def is_module_interface(declaration: Declaration) -> bool:
    """Return True when an interface extends the native module base type."""
    if not isinstance(declaration, InterfaceDecl):
        return False
    return any(base.split(".")[-1] in MODULE_BASES for base in declaration.extends)


class TypeResolver:
    """Resolves type expressions of one unit against its declarations.

    Object and enum definitions are registered on first reference so that
    forward references between object types work. Object fields are resolved
    by :meth:`finish`, which also runs the whole-graph cycle check. Errors are
    collected in :attr:`errors` rather than raised one by one.
    """

    def __init__(self, declarations: Mapping[str, Declaration]) -> None:
        self._declarations = declarations
        self._order = {name: index for index, name in enumerate(declarations)}
        self._objects: Dict[str, ObjectTypeDef] = {}
        self._enums: Dict[str, EnumTypeDef] = {}
        self._pending: List[str] = []
        self._registered: Set[str] = set()
        self._alias_stack: List[str] = []
        self.errors: List[SchemaError] = []
        self.logger = get_logger("resolver")

    def resolve(self, expr: TypeExpr, position: TypePosition) -> Optional[Type]:
        """Resolve ``expr``; on failure record the error and return None."""
        try:
            return self._resolve(expr, position)
        except SchemaError as exc:
            self.errors.append(exc)
            return None

    def finish(self) -> None:
        """Resolve the fields of every registered object, then check for cycles."""
        while self._pending:
            name = self._pending.pop(0)
            declaration = self._declarations[name]
            assert isinstance(declaration, InterfaceDecl)
            self._objects[name] = self._build_object(declaration)
        self.errors.extend(check_cycles(self._ordered(self._objects)))

    def definitions_for(self, types: Iterable[Type]) -> Tuple[TypeDef, ...]:
        """Return every definition reachable from ``types`` in declaration order."""
        seen: Set[str] = set()
        queue = [name for type_ in types for name in type_.references()]
        while queue:
            name = queue.pop()
            if name in seen:
                continue
            seen.add(name)
            obj = self._objects.get(name)
            if obj is not None:
                for item in obj.fields:
                    queue.extend(item.type.references())
        definitions: List[TypeDef] = []
        for name in sorted(seen, key=lambda key: self._order.get(key, len(self._order))):
            definition = self._objects.get(name) or self._enums.get(name)
            if definition is not None:
                definitions.append(definition)
        return tuple(definitions)

    def _ordered(self, mapping: Mapping[str, ObjectTypeDef]) -> List[ObjectTypeDef]:
        return [mapping[name] for name in sorted(mapping, key=lambda key: self._order[key])]

    def _resolve(self, expr: TypeExpr, position: TypePosition) -> Type:
        kind = expr.kind
        if kind == "keyword":
            return self._keyword(expr, position)
        if kind == "reference":
            return self._reference(expr, position)
        if kind == "generic":
            return self._generic(expr, position)
        if kind == "array":
            element = self._resolve(expr.args[0], TypePosition.ELEMENT)
            return Type.array_of(element)
        if kind == "union":
            return self._union(expr, position)
        if kind == "literal":
            if expr.is_null:
                raise UnsupportedTypeError(
                    "null", expr.location, detail="use `T | null` for optional values"
                )
            raise UnsupportedTypeError(f"literal type {expr.text}", expr.location)
        if kind == "object":
            raise UnsupportedTypeError(
                "type literal", expr.location, detail="declare a named interface instead"
            )
        if kind == "function":
            raise UnsupportedTypeError("function type", expr.location)
        if kind == "tuple":
            raise UnsupportedTypeError("tuple type", expr.location)
        if kind == "intersection":
            raise UnsupportedTypeError("intersection type", expr.location)
        raise UnsupportedTypeError(expr.name or expr.text or "unknown type", expr.location)

    def _keyword(self, expr: TypeExpr, position: TypePosition) -> Type:
        keyword = expr.name or expr.text
        scalar = _SCALAR_KEYWORDS.get(keyword)
        if scalar is not None:
            return scalar
        if keyword == "void":
            if position not in _VOID_POSITIONS:
                raise UnsupportedTypeError(
                    "void", expr.location, detail="only allowed as a method return type"
                )
            return Type.void()
        raise UnsupportedTypeError(keyword, expr.location)

    def _union(self, expr: TypeExpr, position: TypePosition) -> Type:
        arms = list(expr.args)
        nulls = [arm for arm in arms if arm.is_null]
        if len(arms) != 2 or len(nulls) != 1:
            raise UnsupportedTypeError(
                "union type", expr.location, detail="only `T | null` is supported"
            )
        base_expr = arms[0] if arms[1].is_null else arms[1]
        if _names_promise(base_expr):
            raise UnsupportedTypeError(
                PROMISE_TYPE, expr.location, detail="a promise cannot be nullable"
            )
        base = self._resolve(base_expr, TypePosition.NULLABLE)
        if base.is_nullable:
            raise UnsupportedTypeError(
                "nested nullable type", expr.location, detail=f"'{base_expr.text}' is already nullable"
            )
        return Type.nullable(base)

    def _generic(self, expr: TypeExpr, position: TypePosition) -> Type:
        if expr.name != PROMISE_TYPE:
            raise UnsupportedTypeError(f"generic type {expr.text}", expr.location)
        if position is not TypePosition.RETURN:
            raise UnsupportedTypeError(
                PROMISE_TYPE, expr.location, detail="only allowed as a method return type"
            )
        if len(expr.args) != 1:
            raise UnsupportedTypeError(
                expr.text, expr.location, detail="Promise takes exactly one type argument"
            )
        return Type.promise_of(self._resolve(expr.args[0], TypePosition.PROMISE))

    def _reference(self, expr: TypeExpr, position: TypePosition) -> Type:
        name = expr.name or expr.text
        if name == PROMISE_TYPE:
            raise UnsupportedTypeError(
                PROMISE_TYPE, expr.location, detail="a type argument is required"
            )
        if name == SIGNAL_TYPE:
            raise UnsupportedTypeError(
                SIGNAL_TYPE, expr.location, detail="only allowed as a module property"
            )
        declaration = self._declarations.get(name)
        if declaration is None:
            raise UnsupportedTypeError(f"unresolved reference '{name}'", expr.location)
        if isinstance(declaration, ClassDecl):
            raise UnsupportedTypeError(f"class type '{name}'", expr.location)
        if isinstance(declaration, EnumDecl):
            self._register_enum(declaration)
            return Type.enum_ref(name)
        if isinstance(declaration, AliasDecl):
            return self._alias(declaration, expr, position)
        if declaration.generic:
            raise UnsupportedTypeError(f"generic type '{name}'", expr.location)
        if is_module_interface(declaration):
            raise UnsupportedTypeError(
                f"module interface '{name}'", expr.location, detail="modules cannot be passed as values"
            )
        if name not in self._registered:
            self._registered.add(name)
            self._pending.append(name)
        return Type.object_ref(name)

    def _alias(self, declaration: AliasDecl, expr: TypeExpr, position: TypePosition) -> Type:
        if declaration.generic:
            raise UnsupportedTypeError(f"generic type '{declaration.name}'", expr.location)
        if declaration.name in self._alias_stack:
            cycle = self._alias_stack[self._alias_stack.index(declaration.name) :] + [declaration.name]
            raise CyclicTypeError(declaration.name, cycle=cycle, location=declaration.location)
        self._alias_stack.append(declaration.name)
        try:
            return self._resolve(declaration.value, position)
        finally:
            self._alias_stack.pop()

    def _build_object(self, declaration: InterfaceDecl) -> ObjectTypeDef:
        fields: List[Field] = []
        seen: Set[str] = set()
        if declaration.extends:
            self.errors.append(
                UnsupportedTypeError(
                    f"interface inheritance '{declaration.name} extends {', '.join(declaration.extends)}'",
                    declaration.location,
                    detail="object types must declare all of their fields",
                )
            )
        for member in declaration.members:
            if member.kind != "property" or member.name is None:
                self.errors.append(
                    SchemaParseError(
                        f"object type '{declaration.name}' may only declare named properties",
                        member.location,
                    )
                )
                continue
            if member.optional:
                self.errors.append(
                    SchemaParseError(
                        f"optional property '{declaration.name}.{member.name}' is not supported; "
                        "declare it as `T | null`",
                        member.location,
                    )
                )
                continue
            if member.name in seen:
                self.errors.append(
                    SchemaParseError(
                        f"duplicate field '{declaration.name}.{member.name}'", member.location
                    )
                )
                continue
            seen.add(member.name)
            if member.type is None:
                self.errors.append(
                    SchemaParseError(
                        f"field '{declaration.name}.{member.name}' needs a type annotation",
                        member.location,
                    )
                )
                continue
            field_type = self.resolve(member.type, TypePosition.FIELD)
            if field_type is not None:
                fields.append(Field(member.name, field_type))
        self.logger.debug("Registered object type %s (%d fields)", declaration.name, len(fields))
        return ObjectTypeDef(declaration.name, tuple(fields), declaration.location)

    def _register_enum(self, declaration: EnumDecl) -> None:
        if declaration.name in self._registered:
            return
        self._registered.add(declaration.name)
        definition, errors = build_enum(declaration)
        self.errors.extend(errors)
        if definition is not None:
            self._enums[declaration.name] = definition


def build_enum(declaration: EnumDecl) -> Tuple[Optional[EnumTypeDef], List[SchemaError]]:
    """Convert an enum declaration, auto-numbering bare members."""
    errors: List[SchemaError] = []
    kind: Optional[EnumKind] = None
    variants: List[EnumVariant] = []
    next_number = 0
    values: Set[object] = set()
    labels: Set[str] = set()

    for member in declaration.members:
        if member.value_kind is None:
            member_kind, value = EnumKind.NUMERIC, next_number
        elif member.value_kind == "number":
            member_kind, value = EnumKind.NUMERIC, member.value
        elif member.value_kind == "string":
            member_kind, value = EnumKind.STRING, member.value
        elif member.value_kind == "float":
            errors.append(
                SchemaParseError(
                    f"enum '{declaration.name}' member '{member.name}' uses a float value",
                    member.location,
                )
            )
            continue
        else:
            errors.append(
                SchemaParseError(
                    f"enum '{declaration.name}' member '{member.name}' must be a string or integer literal",
                    member.location,
                )
            )
            continue

        if kind is None:
            kind = member_kind
        elif kind is not member_kind:
            errors.append(
                SchemaParseError(
                    f"enum '{declaration.name}' mixes string and numeric members",
                    member.location,
                )
            )
            continue
        if isinstance(value, int):
            next_number = value + 1
        if member.name in labels:
            errors.append(
                SchemaParseError(
                    f"duplicate enum member '{declaration.name}.{member.name}'", member.location
                )
            )
            continue
        if value in values:
            errors.append(
                SchemaParseError(
                    f"enum '{declaration.name}' repeats the value {value!r}", member.location
                )
            )
            continue
        labels.add(member.name)
        values.add(value)
        variants.append(EnumVariant(member.name, value))  # type: ignore[arg-type]

    if not variants and not errors:
        errors.append(SchemaParseError(f"enum '{declaration.name}' has no members", declaration.location))
    if errors or kind is None:
        return None, errors
    return EnumTypeDef(declaration.name, kind, tuple(variants), declaration.location), errors


def check_cycles(objects: Sequence[ObjectTypeDef]) -> List[CyclicTypeError]:
    """Report object types that contain themselves without a nullable indirection.

    Runs over the whole registry at once; each cycle is reported at the field
    that closes it.
    """
    index = {obj.name: obj for obj in objects}
    state: Dict[str, int] = {}
    stack: List[str] = []
    errors: List[CyclicTypeError] = []

    def visit(obj: ObjectTypeDef) -> None:
        state[obj.name] = 1
        stack.append(obj.name)
        for item in obj.fields:
            for target in _contained_objects(item.type):
                if target not in index:
                    continue
                if state.get(target) == 1:
                    cycle = stack[stack.index(target) :] + [target]
                    errors.append(CyclicTypeError(obj.name, item.name, cycle, obj.location))
                elif target not in state:
                    visit(index[target])
        stack.pop()
        state[obj.name] = 2

    for obj in objects:
        if obj.name not in state:
            visit(obj)
    return errors


def _contained_objects(type_: Type) -> Iterable[str]:
    for node in type_.walk():
        if node.kind is TypeKind.NULLABLE:
            return
        if node.kind is TypeKind.OBJECT and node.name is not None:
            yield node.name


def _names_promise(expr: TypeExpr) -> bool:
    return expr.kind in {"generic", "reference"} and expr.name == PROMISE_TYPE


__all__ = [
    "MODULE_BASES",
    "PROMISE_TYPE",
    "SIGNAL_TYPE",
    "TypePosition",
    "TypeResolver",
    "build_enum",
    "check_cycles",
    "is_module_interface",
]
