"""Tests for host/canonical value conversion."""

from __future__ import annotations

from typing import Any, Dict

import pytest

from bridgegen.models import ModuleSpec
from bridgegen.runtime import EnumValue, Nullable, TypeMismatchError, to_canonical, to_host
from bridgegen.types import Type

TASK = Type.object_ref("Task")


def _task(**overrides: Any) -> Dict[str, Any]:
    task: Dict[str, Any] = {
        "id": "t-1",
        "title": "Write tests",
        "priority": 5,
        "status": "active",
        "note": None,
        "tags": ["qa"],
        "parent": None,
    }
    task.update(overrides)
    return task


def test_object_converts_every_field(task_store: ModuleSpec) -> None:
    canonical = to_canonical(_task(), TASK, task_store.type_defs)
    assert list(canonical) == ["id", "title", "priority", "status", "note", "tags", "parent"]
    assert canonical["priority"] == EnumValue("Priority", "Medium", 5)
    assert canonical["status"] == EnumValue("Status", "Active", "active")
    assert canonical["note"] == Nullable.absent()
    assert canonical["tags"] == ["qa"]


def test_missing_mandatory_field_names_the_path(task_store: ModuleSpec) -> None:
    value = _task()
    del value["title"]
    with pytest.raises(TypeMismatchError) as excinfo:
        to_canonical(value, TASK, task_store.type_defs, "task")
    assert excinfo.value.path == "task.title"
    assert str(excinfo.value) == "task.title: expected string, got missing field"


def test_missing_nullable_field_becomes_absent(task_store: ModuleSpec) -> None:
    value = _task()
    del value["note"]
    assert to_canonical(value, TASK, task_store.type_defs)["note"] == Nullable.absent()


def test_nested_mismatch_reports_full_path(task_store: ModuleSpec) -> None:
    value = _task(parent=_task(tags=["ok", 3]))
    with pytest.raises(TypeMismatchError, match=r"task\.parent\.tags\[1\]: expected string, got int"):
        to_canonical(value, TASK, task_store.type_defs, "task")


def test_empty_array_is_not_absent() -> None:
    maybe_list = Type.nullable(Type.array_of(Type.string()))
    assert to_canonical([], maybe_list, ()) == Nullable.present([])
    assert to_canonical(None, maybe_list, ()) == Nullable.absent()
    assert to_host(Nullable.present([]), maybe_list, ()) == []
    assert to_host(Nullable.absent(), maybe_list, ()) is None


def test_numbers_reject_booleans() -> None:
    assert to_canonical(2, Type.number(), ()) == 2.0
    with pytest.raises(TypeMismatchError, match="expected number, got bool"):
        to_canonical(True, Type.number(), ())
    with pytest.raises(TypeMismatchError, match="expected boolean, got int"):
        to_canonical(1, Type.boolean(), ())


def test_enum_values_map_one_to_one(task_store: ModuleSpec) -> None:
    priority = Type.enum_ref("Priority")
    for variant in task_store.type_def("Priority").variants:
        canonical = to_canonical(variant.value, priority, task_store.type_defs)
        assert canonical.label == variant.label
        assert to_host(canonical, priority, task_store.type_defs) == variant.value
    with pytest.raises(TypeMismatchError):
        to_canonical(7, priority, task_store.type_defs)
    with pytest.raises(TypeMismatchError):
        to_canonical("Medium", priority, task_store.type_defs)


def test_to_host_requires_canonical_nullables(task_store: ModuleSpec) -> None:
    found = Type.nullable(TASK)
    canonical = to_canonical(_task(), TASK, task_store.type_defs)
    host = to_host(Nullable.present(canonical), found, task_store.type_defs)
    assert host == _task()
    with pytest.raises(TypeMismatchError):
        to_host(None, found, task_store.type_defs, "findTask()")


def test_promises_are_not_marshaled() -> None:
    with pytest.raises(ValueError):
        to_canonical(1, Type.promise_of(Type.number()), ())


def test_integers_beyond_double_range_are_rejected() -> None:
    with pytest.raises(TypeMismatchError, match="int out of double range"):
        to_canonical(10**400, Type.number(), ())
    with pytest.raises(TypeMismatchError, match=r"value\[0\]: expected number"):
        to_canonical([10**400], Type.array_of(Type.number()), ())
