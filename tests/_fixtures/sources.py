"""Interface descriptions shared across tests."""

from __future__ import annotations

import textwrap

TASK_STORE = textwrap.dedent(
    """
    import type { NativeModule, Signal } from 'bridgegen-modules';
    import { NativeModuleRegistry } from 'bridgegen-modules';

    export enum Priority {
      Low,
      Medium = 5,
      High,
    }

    export enum Status {
      Active = 'active',
      Archived = 'archived',
    }

    export interface Task {
      id: string;
      title: string;
      priority: Priority;
      status: Status;
      note: string | null;
      tags: string[];
      parent: Task | null;
    }

    export interface Unused {
      value: number;
    }

    type MaybeCount = number | null;

    export interface Spec extends NativeModule {
      onChanged: Signal;
      add(a: number, b: number): number;
      findTask(id: string): Task | null;
      countTasks(status: Status): MaybeCount;
      saveTask(task: Task): Promise<void>;
      loadTasks(ids: string[]): Promise<Task[]>;
      reset(): void;
    }

    export default NativeModuleRegistry.getEnforcing<Spec>('TaskStore');
    """
).lstrip("\n")

CALCULATOR = textwrap.dedent(
    """
    import type { TurboModule } from 'react-native';
    import { TurboModuleRegistry } from 'react-native';

    export interface Spec extends TurboModule {
      multiply(a: number, b: number): number;
      divide(a: number, b: number): Promise<number>;
    }

    export default TurboModuleRegistry.get<Spec>('Calculator');
    """
).lstrip("\n")


def module_source(members: str, *, prelude: str = "", name: str = "Sample") -> str:
    """Build a one-module unit from interface members and optional declarations."""
    body = textwrap.indent(textwrap.dedent(members).strip("\n"), "  ")
    return (
        "import { NativeModuleRegistry } from 'bridgegen-modules';\n\n"
        f"{textwrap.dedent(prelude).strip()}\n\n"
        "export interface Spec extends NativeModule {\n"
        f"{body}\n"
        "}\n\n"
        f"export default NativeModuleRegistry.getEnforcing<Spec>('{name}');\n"
    )


__all__ = ["CALCULATOR", "TASK_STORE", "module_source"]
