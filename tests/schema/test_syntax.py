"""Tests for the tree-sitter TypeScript front end."""

from __future__ import annotations

from bridgegen.models import InterfaceUnit
from bridgegen.schema.syntax import AliasDecl, EnumDecl, InterfaceDecl, TypeScriptSyntax
from tests._fixtures.sources import TASK_STORE


def _parse(source: str, path: str = "src/NativeTaskStore.ts"):
    return TypeScriptSyntax().parse(InterfaceUnit(path=path, source=source))


def test_collects_declarations_in_source_order() -> None:
    parsed = _parse(TASK_STORE)
    assert parsed.errors == []
    assert [decl.name for decl in parsed.declarations] == [
        "Priority",
        "Status",
        "Task",
        "Unused",
        "MaybeCount",
        "Spec",
    ]
    assert isinstance(parsed.declarations[0], EnumDecl)
    assert isinstance(parsed.declarations[4], AliasDecl)


def test_interface_members_carry_kinds_and_locations() -> None:
    parsed = _parse(TASK_STORE)
    spec = parsed.declarations[-1]
    assert isinstance(spec, InterfaceDecl)
    assert spec.extends == ("NativeModule",)
    kinds = {member.name: member.kind for member in spec.members}
    assert kinds["onChanged"] == "property"
    assert kinds["add"] == "method"
    add = next(member for member in spec.members if member.name == "add")
    assert [param.name for param in add.params] == ["a", "b"]
    assert add.location.path == "src/NativeTaskStore.ts"
    assert add.location.column == 3


def test_enum_members_keep_literal_values() -> None:
    parsed = _parse(TASK_STORE)
    priority, status = parsed.declarations[0], parsed.declarations[1]
    assert [(m.name, m.value_kind, m.value) for m in priority.members] == [
        ("Low", None, None),
        ("Medium", "number", 5),
        ("High", None, None),
    ]
    assert [(m.name, m.value) for m in status.members] == [
        ("Active", "active"),
        ("Archived", "archived"),
    ]


def test_registry_call_is_recorded() -> None:
    parsed = _parse(TASK_STORE)
    (registration,) = parsed.registrations
    assert registration.module_name == "TaskStore"
    assert [arg.name for arg in registration.spec_args] == ["Spec"]


def test_union_with_null_is_flattened() -> None:
    parsed = _parse(TASK_STORE)
    task = parsed.declarations[2]
    note = next(member for member in task.members if member.name == "note")
    assert note.type.kind == "union"
    assert [arm.text for arm in note.type.args] == ["string", "null"]
    assert note.type.args[1].is_null


def test_syntax_error_is_reported_with_location() -> None:
    parsed = _parse("export interface Spec extends NativeModule {\n  add(a: number: number;\n}\n")
    assert parsed.declarations == []
    (error,) = parsed.errors
    assert error.kind == "SchemaParseError"
    assert "syntax error" in error.message
    assert error.location.path == "src/NativeTaskStore.ts"
