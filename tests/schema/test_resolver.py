"""Tests for canonical type resolution and the cycle check."""

from __future__ import annotations

from bridgegen.models import Field, ObjectTypeDef, SourceLocation
from bridgegen.schema import TypePosition, TypeResolver, check_cycles
from bridgegen.schema.resolver import build_enum
from bridgegen.schema.syntax import EnumDecl, EnumMemberDecl, TypeExpr
from bridgegen.types import Type

LOC = SourceLocation("src/NativeSample.ts", 1, 1)


def _keyword(name: str) -> TypeExpr:
    return TypeExpr("keyword", name, LOC, name=name)


def _object(name: str, **fields: Type) -> ObjectTypeDef:
    return ObjectTypeDef(name, tuple(Field(key, value) for key, value in fields.items()), LOC)


def test_scalars_resolve_in_every_position() -> None:
    resolver = TypeResolver({})
    for position in TypePosition:
        assert resolver.resolve(_keyword("number"), position) == Type.number()
    assert resolver.errors == []


def test_void_only_resolves_as_a_result() -> None:
    resolver = TypeResolver({})
    assert resolver.resolve(_keyword("void"), TypePosition.RETURN) == Type.void()
    assert resolver.resolve(_keyword("void"), TypePosition.PROMISE) == Type.void()
    assert resolver.resolve(_keyword("void"), TypePosition.FIELD) is None
    assert len(resolver.errors) == 1


def test_unsupported_keyword_is_recorded() -> None:
    resolver = TypeResolver({})
    assert resolver.resolve(_keyword("any"), TypePosition.PARAM) is None
    (error,) = resolver.errors
    assert error.construct == "any"


def test_nullable_fields_break_cycles() -> None:
    node = _object("Node", value=Type.number(), next=Type.nullable(Type.object_ref("Node")))
    assert check_cycles([node]) == []


def test_direct_cycle_names_the_closing_field() -> None:
    node = _object("Node", value=Type.number(), next=Type.object_ref("Node"))
    (error,) = check_cycles([node])
    assert (error.type_name, error.field_name) == ("Node", "next")


def test_array_of_nullable_breaks_the_cycle() -> None:
    tree = _object("Tree", children=Type.array_of(Type.nullable(Type.object_ref("Tree"))))
    assert check_cycles([tree]) == []


def test_diamond_without_cycle_is_accepted() -> None:
    leaf = _object("Leaf", value=Type.string())
    left = _object("Left", leaf=Type.object_ref("Leaf"))
    right = _object("Right", leaf=Type.object_ref("Leaf"))
    root = _object("Root", left=Type.object_ref("Left"), right=Type.object_ref("Right"))
    assert check_cycles([root, left, right, leaf]) == []


def test_bare_enum_members_count_from_the_previous_value() -> None:
    declaration = EnumDecl(
        "Level",
        (
            EnumMemberDecl("Low", None, None, LOC),
            EnumMemberDecl("High", "number", 10, LOC),
            EnumMemberDecl("Higher", None, None, LOC),
        ),
        LOC,
    )
    definition, errors = build_enum(declaration)
    assert errors == []
    assert [variant.value for variant in definition.variants] == [0, 10, 11]


def test_float_enum_values_are_rejected() -> None:
    declaration = EnumDecl("Ratio", (EnumMemberDecl("Half", "float", "0.5", LOC),), LOC)
    definition, errors = build_enum(declaration)
    assert definition is None
    assert "float" in errors[0].message


def test_empty_enum_is_rejected() -> None:
    definition, errors = build_enum(EnumDecl("Empty", (), LOC))
    assert definition is None
    assert "has no members" in errors[0].message
