"""Tests for the in-process module bridge."""

from __future__ import annotations

import threading
import time
from concurrent.futures import wait
from typing import Any, Dict, List

import pytest

from bridgegen.models import ModuleSpec
from bridgegen.runtime import (
    ArgumentCountError,
    BridgeError,
    DirectCallPanic,
    EnumValue,
    ModuleBridge,
    Nullable,
    Promise,
    PromiseRejection,
    TypeMismatchError,
    UnknownMemberError,
)


class TaskStore:
    """Python implementation of the TaskStore module used by the tests."""

    def __init__(self) -> None:
        self.tasks: Dict[str, Dict[str, Any]] = {}
        self.release = threading.Event()
        self.release.set()
        self.threads: List[str] = []

    def add(self, a: float, b: float) -> float:
        if a < 0:
            raise ValueError("negative input")
        return a + b

    def find_task(self, task_id: str) -> Nullable[Dict[str, Any]]:
        return Nullable.from_optional(self.tasks.get(task_id))

    def count_tasks(self, status: EnumValue) -> Nullable[float]:
        matching = [task for task in self.tasks.values() if task["status"] == status]
        return Nullable.present(float(len(matching))) if matching else Nullable.absent()

    def save_task(self, task: Dict[str, Any]) -> None:
        self.threads.append(threading.current_thread().name)
        if not task["title"]:
            raise ValueError("title must not be empty")
        self.tasks[task["id"]] = task

    def load_tasks(self, ids: List[str]) -> List[Dict[str, Any]]:
        self.release.wait(5)
        return [self.tasks[task_id] for task_id in ids if task_id in self.tasks]

    def reset(self) -> None:
        self.tasks.clear()


def _task(task_id: str = "t-1", title: str = "Ship it") -> Dict[str, Any]:
    return {
        "id": task_id,
        "title": title,
        "priority": 0,
        "status": "active",
        "note": None,
        "tags": [],
        "parent": None,
    }


@pytest.fixture
def store() -> TaskStore:
    return TaskStore()


@pytest.fixture
def bridge(task_store: ModuleSpec, store: TaskStore):
    with ModuleBridge(task_store, store, worker_threads=2) as module_bridge:
        yield module_bridge


def test_direct_call_returns_immediately(bridge: ModuleBridge) -> None:
    assert bridge.call("add", 2, 3) == 5.0


def test_direct_call_failure_surfaces_as_panic(bridge: ModuleBridge) -> None:
    with pytest.raises(DirectCallPanic) as excinfo:
        bridge.call("add", -1, 3)
    assert excinfo.value.method == "add"
    assert isinstance(excinfo.value.cause, ValueError)


def test_deferred_call_resolves_on_a_worker(bridge: ModuleBridge, store: TaskStore) -> None:
    promise = bridge.call("saveTask", _task())
    assert isinstance(promise, Promise)
    assert promise.result(timeout=5) is None
    assert store.threads[0].startswith("task_store-worker")
    assert bridge.call("findTask", "t-1") == _task()
    assert bridge.call("findTask", "missing") is None


def test_deferred_call_does_not_block_the_caller(bridge: ModuleBridge, store: TaskStore) -> None:
    bridge.call("saveTask", _task()).result(timeout=5)
    store.release.clear()
    started = time.monotonic()
    promise = bridge.call("loadTasks", ["t-1"])
    assert time.monotonic() - started < 1
    assert promise.is_pending
    store.release.set()
    assert promise.result(timeout=5) == [_task()]


def test_deferred_failure_rejects_the_promise(bridge: ModuleBridge) -> None:
    promise = bridge.call("saveTask", _task(title=""))
    with pytest.raises(PromiseRejection, match="title must not be empty"):
        promise.result(timeout=5)


def test_argument_errors_are_synchronous(bridge: ModuleBridge) -> None:
    with pytest.raises(ArgumentCountError, match="Expected 1 argument, got 0"):
        bridge.call("saveTask")
    task = _task()
    del task["title"]
    with pytest.raises(TypeMismatchError) as excinfo:
        bridge.call("saveTask", task)
    assert excinfo.value.path == "saveTask(task).title"


def test_enum_arguments_and_nullable_results(bridge: ModuleBridge) -> None:
    bridge.call("saveTask", _task()).result(timeout=5)
    assert bridge.call("countTasks", "active") == 1.0
    assert bridge.call("countTasks", "archived") is None
    with pytest.raises(TypeMismatchError):
        bridge.call("countTasks", "deleted")


def test_void_method_returns_none(bridge: ModuleBridge, store: TaskStore) -> None:
    bridge.call("saveTask", _task()).result(timeout=5)
    assert bridge.call("reset") is None
    assert store.tasks == {}


def test_unknown_members_are_rejected(bridge: ModuleBridge) -> None:
    with pytest.raises(UnknownMemberError):
        bridge.call("dropTable")
    with pytest.raises(UnknownMemberError):
        bridge.subscribe("onDeleted", lambda: None)


def test_signals_reach_subscribers(bridge: ModuleBridge) -> None:
    calls: List[str] = []
    subscription = bridge.subscribe("onChanged", lambda: calls.append("changed"))
    wait(bridge.emit("onChanged"), timeout=5)
    subscription.remove()
    wait(bridge.emit("onChanged"), timeout=5)
    assert calls == ["changed"]


def test_missing_handler_is_reported(task_store: ModuleSpec) -> None:
    class Partial:
        def add(self, a: float, b: float) -> float:
            return a + b

    with pytest.raises(BridgeError, match="expected 'find_task'"):
        ModuleBridge(task_store, Partial())


class Abort(BaseException):
    """Escapes ``except Exception`` the way ``KeyboardInterrupt`` does."""


def test_deferred_base_exception_still_rejects(task_store: ModuleSpec, store: TaskStore) -> None:
    def save_task(task: Dict[str, Any]) -> None:
        raise Abort("worker aborted")

    store.save_task = save_task  # type: ignore[method-assign]
    rebound = ModuleBridge(task_store, store, worker_threads=1)
    try:
        promise = rebound.call("saveTask", _task())
        with pytest.raises(PromiseRejection, match="worker aborted"):
            promise.result(timeout=5)
    finally:
        rebound.close()


def test_deferred_call_after_close_returns_rejected_promise(
    task_store: ModuleSpec, store: TaskStore
) -> None:
    module_bridge = ModuleBridge(task_store, store, worker_threads=1)
    module_bridge.close()
    promise = module_bridge.call("saveTask", _task())
    assert not promise.is_pending
    with pytest.raises(PromiseRejection, match="module 'TaskStore' is closed"):
        promise.result(timeout=1)
    assert store.tasks == {}
