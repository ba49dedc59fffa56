"""Tests for per-method dispatch decisions."""

from __future__ import annotations

import pytest

from bridgegen.dispatch import DispatchMode, DispatchPlan, dispatch_mode
from bridgegen.models import Method, ModuleSpec
from bridgegen.types import Type


def test_promise_methods_are_deferred() -> None:
    assert dispatch_mode(Method("load", (), Type.promise_of(Type.string()))) is DispatchMode.DEFERRED
    assert dispatch_mode(Method("save", (), Type.void())) is DispatchMode.DIRECT


def test_plan_covers_every_method(task_store: ModuleSpec) -> None:
    plan = DispatchPlan.for_module(task_store)
    assert dict(plan) == {
        "add": DispatchMode.DIRECT,
        "findTask": DispatchMode.DIRECT,
        "countTasks": DispatchMode.DIRECT,
        "saveTask": DispatchMode.DEFERRED,
        "loadTasks": DispatchMode.DEFERRED,
        "reset": DispatchMode.DIRECT,
    }
    assert plan.deferred() == ("saveTask", "loadTasks")
    assert plan.is_deferred("loadTasks")


def test_plan_is_read_only(task_store: ModuleSpec) -> None:
    plan = DispatchPlan.for_module(task_store)
    with pytest.raises(TypeError):
        plan.modes["add"] = DispatchMode.DEFERRED  # type: ignore[index]


def test_unknown_method_raises(task_store: ModuleSpec) -> None:
    plan = DispatchPlan.for_module(task_store)
    with pytest.raises(KeyError, match="no method 'missing'"):
        plan.mode("missing")
