"""Tree-sitter powered TypeScript front end for interface descriptions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple, Union

import tree_sitter_typescript
from tree_sitter import Language, Node, Parser

from ..errors import SchemaParseError
from ..logging import get_logger
from ..models import InterfaceUnit, SourceLocation

_TS_LANGUAGE = Language(tree_sitter_typescript.language_typescript())

REGISTRY_NAMES = frozenset({"NativeModuleRegistry", "TurboModuleRegistry"})
REGISTRY_METHODS = frozenset({"get", "getEnforcing"})

_UNSUPPORTED_TYPE_NODES = {
    "conditional_type": "conditional type",
    "constructor_type": "constructor type",
    "index_type_query": "keyof type",
    "infer_type": "infer type",
    "lookup_type": "indexed access type",
    "readonly_type": "readonly type",
    "template_literal_type": "template literal type",
    "this_type": "this type",
    "type_query": "typeof type",
}


@dataclass(frozen=True)
class TypeExpr:
    """Raw declared type expression, before canonical resolution.

    ``kind`` is one of ``keyword``, ``reference``, ``array``, ``union``,
    ``intersection``, ``tuple``, ``function``, ``object``, ``literal``,
    ``generic`` or ``unsupported``.
    """

    kind: str
    text: str
    location: SourceLocation
    name: Optional[str] = None
    args: Tuple["TypeExpr", ...] = ()

    @property
    def is_null(self) -> bool:
        return self.kind == "literal" and self.text == "null"


@dataclass(frozen=True)
class ParamDecl:
    name: Optional[str]
    type: Optional[TypeExpr]
    optional: bool
    location: SourceLocation


@dataclass(frozen=True)
class MemberDecl:
    """Interface member: a method signature, a property, or something else."""

    kind: str
    name: Optional[str]
    location: SourceLocation
    type: Optional[TypeExpr] = None
    params: Tuple[ParamDecl, ...] = ()
    optional: bool = False
    generic: bool = False


@dataclass(frozen=True)
class InterfaceDecl:
    """Interface or object type alias."""

    name: str
    members: Tuple[MemberDecl, ...]
    location: SourceLocation
    extends: Tuple[str, ...] = ()
    generic: bool = False


@dataclass(frozen=True)
class AliasDecl:
    """Type alias whose value is not an object type."""

    name: str
    value: TypeExpr
    location: SourceLocation
    generic: bool = False


@dataclass(frozen=True)
class EnumMemberDecl:
    name: str
    value_kind: Optional[str]
    value: Union[str, int, None]
    location: SourceLocation


@dataclass(frozen=True)
class EnumDecl:
    name: str
    members: Tuple[EnumMemberDecl, ...]
    location: SourceLocation


@dataclass(frozen=True)
class ClassDecl:
    name: str
    location: SourceLocation


Declaration = Union[InterfaceDecl, AliasDecl, EnumDecl, ClassDecl]


@dataclass(frozen=True)
class RegistryCall:
    """``NativeModuleRegistry.getEnforcing<Spec>('Name')`` style registration."""

    module_name: Optional[str]
    spec_args: Tuple[TypeExpr, ...]
    location: SourceLocation


@dataclass
class ParsedUnit:
    """Declarations collected from one interface description unit."""

    path: str
    declarations: List[Declaration] = field(default_factory=list)
    registrations: List[RegistryCall] = field(default_factory=list)
    errors: List[SchemaParseError] = field(default_factory=list)


class TypeScriptSyntax:
    """Parses TypeScript units into declaration records with source locations."""

    def __init__(self) -> None:
        self._parser = Parser(_TS_LANGUAGE)
        self.logger = get_logger("syntax")

    def parse(self, unit: InterfaceUnit) -> ParsedUnit:
        source_bytes = unit.source.encode("utf-8")
        tree = self._parser.parse(source_bytes)
        reader = _UnitReader(unit.path, source_bytes)
        parsed = ParsedUnit(path=unit.path)

        root = tree.root_node
        if root.has_error:
            broken = _first_error(root)
            location = reader.location(broken or root)
            snippet = reader.text(broken).strip() if broken is not None else ""
            detail = f" near '{snippet[:40]}'" if snippet else ""
            parsed.errors.append(SchemaParseError(f"syntax error{detail}", location))
            return parsed

        for node in root.named_children:
            reader.collect(node, parsed)
        self.logger.debug(
            "Parsed %s: %d declaration(s), %d registration(s)",
            unit.path,
            len(parsed.declarations),
            len(parsed.registrations),
        )
        return parsed


class _UnitReader:
    def __init__(self, path: str, source_bytes: bytes) -> None:
        self.path = path
        self.source_bytes = source_bytes

    def text(self, node: Node) -> str:
        return self.source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="replace")

    def location(self, node: Node) -> SourceLocation:
        row, column = node.start_point[0], node.start_point[1]
        return SourceLocation(self.path, row + 1, column + 1)

    def collect(self, node: Node, parsed: ParsedUnit) -> None:
        node_type = node.type
        if node_type == "export_statement":
            declaration = node.child_by_field_name("declaration")
            if declaration is not None:
                self.collect(declaration, parsed)
                return
            for child in node.named_children:
                self._scan_registrations(child, parsed)
            return
        if node_type == "interface_declaration":
            parsed.declarations.append(self._interface(node))
        elif node_type == "type_alias_declaration":
            parsed.declarations.append(self._alias(node))
        elif node_type == "enum_declaration":
            parsed.declarations.append(self._enum(node, parsed))
        elif node_type in {"class_declaration", "abstract_class_declaration"}:
            name_node = node.child_by_field_name("name")
            if name_node is not None:
                parsed.declarations.append(ClassDecl(self.text(name_node), self.location(node)))
        elif node_type in {"import_statement", "comment", "ambient_declaration"}:
            return
        else:
            self._scan_registrations(node, parsed)

    def _interface(self, node: Node) -> InterfaceDecl:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        extends: List[str] = []
        for child in node.named_children:
            if child.type in {"extends_type_clause", "extends_clause"}:
                extends.extend(self.text(item) for item in child.named_children)
        return InterfaceDecl(
            name=self.text(name_node) if name_node is not None else "",
            members=tuple(self._members(body)) if body is not None else (),
            location=self.location(node),
            extends=tuple(extends),
            generic=node.child_by_field_name("type_parameters") is not None,
        )

    def _alias(self, node: Node) -> Union[InterfaceDecl, AliasDecl]:
        name = self.text(node.child_by_field_name("name"))
        value = node.child_by_field_name("value")
        generic = node.child_by_field_name("type_parameters") is not None
        if value is not None and value.type == "object_type":
            return InterfaceDecl(
                name=name,
                members=tuple(self._members(value)),
                location=self.location(node),
                generic=generic,
            )
        return AliasDecl(
            name=name,
            value=self.type_expr(value) if value is not None else self._missing_type(node),
            location=self.location(node),
            generic=generic,
        )

    def _members(self, body: Node) -> Iterator[MemberDecl]:
        for member in body.named_children:
            if member.type == "comment":
                continue
            location = self.location(member)
            name_node = member.child_by_field_name("name")
            name = self._member_name(name_node)
            optional = any(child.type == "?" for child in member.children)
            if member.type == "method_signature":
                params_node = member.child_by_field_name("parameters")
                return_node = member.child_by_field_name("return_type")
                yield MemberDecl(
                    kind="method",
                    name=name,
                    location=location,
                    type=self._annotation(return_node),
                    params=tuple(self._params(params_node)) if params_node is not None else (),
                    optional=optional,
                    generic=member.child_by_field_name("type_parameters") is not None,
                )
            elif member.type == "property_signature":
                yield MemberDecl(
                    kind="property",
                    name=name,
                    location=location,
                    type=self._annotation(member.child_by_field_name("type")),
                    optional=optional,
                )
            else:
                yield MemberDecl(kind=member.type, name=name, location=location)

    def _member_name(self, node: Optional[Node]) -> Optional[str]:
        if node is None or node.type != "property_identifier":
            return None
        return self.text(node)

    def _params(self, node: Node) -> Iterator[ParamDecl]:
        for param in node.named_children:
            if param.type == "comment":
                continue
            pattern = param.child_by_field_name("pattern")
            name = self.text(pattern) if pattern is not None and pattern.type == "identifier" else None
            yield ParamDecl(
                name=name,
                type=self._annotation(param.child_by_field_name("type")),
                optional=param.type == "optional_parameter",
                location=self.location(param),
            )

    def _annotation(self, node: Optional[Node]) -> Optional[TypeExpr]:
        if node is None:
            return None
        if node.type != "type_annotation":
            return TypeExpr("unsupported", self.text(node), self.location(node), name=node.type)
        inner = [child for child in node.named_children if child.type != "comment"]
        if not inner:
            return None
        return self.type_expr(inner[0])

    def _missing_type(self, node: Node) -> TypeExpr:
        return TypeExpr("unsupported", "", self.location(node), name="missing type")

    def type_expr(self, node: Node) -> TypeExpr:
        node_type = node.type
        location = self.location(node)
        text = self.text(node)
        if node_type == "parenthesized_type":
            return self.type_expr(node.named_children[0])
        if node_type == "predefined_type":
            return TypeExpr("keyword", text, location, name=text)
        if node_type in {"type_identifier", "nested_type_identifier", "identifier"}:
            return TypeExpr("reference", text, location, name=text)
        if node_type == "generic_type":
            name_node = node.child_by_field_name("name")
            args_node = node.child_by_field_name("type_arguments")
            args = (
                tuple(self.type_expr(arg) for arg in args_node.named_children if arg.type != "comment")
                if args_node is not None
                else ()
            )
            name = self.text(name_node) if name_node is not None else text
            return TypeExpr("generic", text, location, name=name, args=args)
        if node_type == "array_type":
            return TypeExpr("array", text, location, args=(self.type_expr(node.named_children[0]),))
        if node_type == "union_type":
            return TypeExpr("union", text, location, args=tuple(self._union_arms(node)))
        if node_type == "intersection_type":
            return TypeExpr("intersection", text, location)
        if node_type == "tuple_type":
            return TypeExpr("tuple", text, location)
        if node_type == "function_type":
            return TypeExpr("function", text, location)
        if node_type == "object_type":
            return TypeExpr("object", text, location)
        if node_type == "literal_type" or node_type in {"null", "undefined"}:
            return TypeExpr("literal", text, location)
        construct = _UNSUPPORTED_TYPE_NODES.get(node_type, node_type.replace("_", " "))
        return TypeExpr("unsupported", text, location, name=construct)

    def _union_arms(self, node: Node) -> Iterator[TypeExpr]:
        for child in node.named_children:
            if child.type == "union_type":
                yield from self._union_arms(child)
            elif child.type != "comment":
                yield self.type_expr(child)

    def _enum(self, node: Node, parsed: ParsedUnit) -> EnumDecl:
        name_node = node.child_by_field_name("name")
        body = node.child_by_field_name("body")
        members: List[EnumMemberDecl] = []
        for member in body.named_children if body is not None else ():
            if member.type == "comment":
                continue
            location = self.location(member)
            if member.type == "enum_assignment":
                member_name = self._enum_member_name(member.child_by_field_name("name"))
                value_kind, value = self._enum_value(member.child_by_field_name("value"))
                members.append(EnumMemberDecl(member_name, value_kind, value, location))
            else:
                members.append(EnumMemberDecl(self._enum_member_name(member), None, None, location))
        return EnumDecl(
            name=self.text(name_node) if name_node is not None else "",
            members=tuple(members),
            location=self.location(node),
        )

    def _enum_member_name(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        text = self.text(node)
        if node.type == "string":
            return text[1:-1]
        return text

    def _enum_value(self, node: Optional[Node]) -> Tuple[str, Union[str, int, None]]:
        if node is None:
            return "other", None
        text = self.text(node)
        if node.type == "string":
            return "string", text[1:-1]
        sign = 1
        if node.type == "unary_expression" and text.startswith("-"):
            operands = node.named_children
            if len(operands) == 1 and operands[0].type == "number":
                sign = -1
                node = operands[0]
                text = self.text(node)
        if node.type == "number":
            try:
                return "number", sign * int(text, 0)
            except ValueError:
                return "float", text
        return "other", text

    def _scan_registrations(self, node: Node, parsed: ParsedUnit) -> None:
        for call in _iter_nodes(node, "call_expression"):
            registration = self._registration(call, parsed)
            if registration is not None:
                parsed.registrations.append(registration)

    def _registration(self, call: Node, parsed: ParsedUnit) -> Optional[RegistryCall]:
        callee = call.child_by_field_name("function")
        if callee is None or callee.type != "member_expression":
            return None
        target = callee.child_by_field_name("object")
        prop = callee.child_by_field_name("property")
        if target is None or prop is None:
            return None
        registry = self.text(target).split(".")[-1]
        if registry not in REGISTRY_NAMES:
            return None
        location = self.location(call)
        if self.text(prop) not in REGISTRY_METHODS:
            parsed.errors.append(
                SchemaParseError(f"invalid {registry} method '{self.text(prop)}'", location)
            )
            return None

        type_args = call.child_by_field_name("type_arguments")
        spec_args = (
            tuple(self.type_expr(arg) for arg in type_args.named_children if arg.type != "comment")
            if type_args is not None
            else ()
        )
        module_name: Optional[str] = None
        arguments = call.child_by_field_name("arguments")
        values = [arg for arg in arguments.named_children if arg.type != "comment"] if arguments is not None else []
        if values and values[0].type == "string":
            module_name = self.text(values[0])[1:-1]
        return RegistryCall(module_name=module_name, spec_args=spec_args, location=location)


def _iter_nodes(node: Node, node_type: str) -> Iterable[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == node_type:
            yield current
        stack.extend(reversed(current.named_children))


def _first_error(node: Node) -> Optional[Node]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


__all__ = [
    "AliasDecl",
    "ClassDecl",
    "Declaration",
    "EnumDecl",
    "EnumMemberDecl",
    "InterfaceDecl",
    "MemberDecl",
    "ParamDecl",
    "ParsedUnit",
    "RegistryCall",
    "TypeExpr",
    "TypeScriptSyntax",
]
