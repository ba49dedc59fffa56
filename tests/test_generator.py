"""Tests for the generation pipeline."""

from __future__ import annotations

import pytest

from bridgegen import generator as generator_module
from bridgegen.config import ConfigError
from bridgegen.errors import BridgegenError, SchemaValidationError
from bridgegen.generator import Generator
from tests._fixtures.project_builder import ProjectBuilder
from tests._fixtures.sources import CALCULATOR, TASK_STORE, module_source


def _project(builder: ProjectBuilder, **sections) -> Generator:
    builder.write_config(**sections)
    builder.write(
        {
            "src/NativeTaskStore.ts": TASK_STORE,
            "src/NativeCalculator.ts": CALCULATOR,
        }
    )
    return Generator(builder.config())


def test_run_writes_both_languages(project_builder: ProjectBuilder) -> None:
    generator = _project(project_builder)
    result = generator.run()
    root = project_builder.path().resolve()
    relative = [path.relative_to(root).as_posix() for path in result.written]
    assert relative == [
        "crates/lib/src/generated/calculator.rs",
        "crates/lib/src/generated/calculator_ffi.rs",
        "crates/lib/src/generated/calculator_impl.rs",
        "cpp/generated/calculator_bridge.hpp",
        "cpp/generated/calculator_rust.hpp",
        "crates/lib/src/generated/task_store.rs",
        "crates/lib/src/generated/task_store_ffi.rs",
        "crates/lib/src/generated/task_store_impl.rs",
        "cpp/generated/task_store_bridge.hpp",
        "cpp/generated/task_store_rust.hpp",
    ]
    assert [module.name for module in result.modules] == ["Calculator", "TaskStore"]
    content = (root / "crates/lib/src/generated/task_store.rs").read_text(encoding="utf-8")
    assert "pub trait TaskStoreSpec" in content
    assert not list(root.rglob("*.tmp"))


def test_second_run_leaves_files_untouched(project_builder: ProjectBuilder) -> None:
    generator = _project(project_builder)
    generator.run()
    target = project_builder.path() / "cpp/generated/calculator_bridge.hpp"
    before = target.stat().st_mtime_ns
    result = generator.run()
    assert result.written == []
    assert len(result.unchanged) == 8
    assert len(result.kept) == 2
    assert target.stat().st_mtime_ns == before


def test_implementation_scaffold_is_never_overwritten(project_builder: ProjectBuilder) -> None:
    generator = _project(project_builder)
    generator.run()
    scaffold = project_builder.path() / "crates/lib/src/generated/calculator_impl.rs"
    assert "unimplemented!()" in scaffold.read_text(encoding="utf-8")
    scaffold.write_text("// hand-written\n", encoding="utf-8")
    result = generator.run()
    assert scaffold in result.kept
    assert scaffold.read_text(encoding="utf-8") == "// hand-written\n"


def test_schema_errors_write_nothing(project_builder: ProjectBuilder) -> None:
    generator = _project(project_builder)
    project_builder.write({"src/NativeBroken.ts": module_source("pick(value: string | number): void;")})
    with pytest.raises(SchemaValidationError) as excinfo:
        generator.run()
    assert excinfo.value.errors[0].location.path == "src/NativeBroken.ts"
    assert not (project_builder.path() / "crates").exists()
    assert not (project_builder.path() / "cpp").exists()


def test_dry_run_renders_without_writing(project_builder: ProjectBuilder) -> None:
    generator = _project(project_builder)
    result = generator.run(dry_run=True)
    assert len(result.files) == 10
    assert result.written == []
    assert not (project_builder.path() / "cpp").exists()


def test_discovery_filters_by_prefix(project_builder: ProjectBuilder) -> None:
    generator = _project(project_builder)
    project_builder.write(
        {
            "src/helpers.ts": "export const answer = 42;\n",
            "src/NativeTypes.d.ts": "declare const x: number;\n",
            "src/node_modules/pkg/NativeVendored.ts": CALCULATOR,
            "src/nested/NativeNested.ts": "export const nothing = 0;\n",
        }
    )
    paths = [unit.path for unit in generator.discover()]
    assert paths == [
        "src/NativeCalculator.ts",
        "src/NativeTaskStore.ts",
        "src/nested/NativeNested.ts",
    ]


def test_missing_source_dir_is_a_config_error(project_builder: ProjectBuilder) -> None:
    project_builder.write_config()
    generator = Generator(project_builder.config())
    with pytest.raises(ConfigError, match="does not exist"):
        generator.discover()


def test_modules_rendering_to_one_file_are_rejected(project_builder: ProjectBuilder) -> None:
    generator = _project(project_builder)
    project_builder.write(
        {"src/NativeTaskStoreCopy.ts": module_source("ping(): void;", name="taskStore")}
    )
    with pytest.raises(BridgegenError, match="both render to task_store.rs"):
        generator.run()
    assert not (project_builder.path() / "crates").exists()


def test_custom_output_dirs_and_templates(project_builder: ProjectBuilder) -> None:
    _project(
        project_builder,
        output={"rust_dir": "native/rust", "cxx_dir": "native/cpp", "templates_dir": "templates"},
    )
    project_builder.write({"templates/module.rs.j2": "{{ banner }}\n// {{ module }}\n"})
    generator = Generator(project_builder.config())
    result = generator.run()
    root = project_builder.path()
    assert (root / "native/cpp/task_store_bridge.hpp").is_file()
    assert (root / "native/rust/calculator.rs").read_text(encoding="utf-8").endswith("// Calculator\n")
    assert len(result.written) == 10


def test_failed_staging_touches_no_target(
    project_builder: ProjectBuilder, monkeypatch: pytest.MonkeyPatch
) -> None:
    generator = _project(project_builder)
    staged = []

    def failing_stage(path, content):
        if staged:
            raise OSError("disk full")
        temp_path = real_stage(path, content)
        staged.append(temp_path)
        return temp_path

    real_stage = generator_module._stage
    monkeypatch.setattr(generator_module, "_stage", failing_stage)
    with pytest.raises(OSError, match="disk full"):
        generator.run()
    assert staged and not staged[0].exists()
    root = project_builder.path()
    leftovers = [path for path in root.rglob("*") if path.is_file() and path.suffix != ".ts"]
    assert leftovers == [root / "bridgegen.yml"]


def test_colliding_generated_names_are_reported(project_builder: ProjectBuilder) -> None:
    generator = _project(project_builder)
    project_builder.write(
        {
            "src/NativeClashes.ts": module_source(
                """
                fooBar(): number;
                foo_bar(): number;
                emitProgress(): void;
                progress: Signal;
                """,
                name="Clashes",
            )
        }
    )
    with pytest.raises(SchemaValidationError) as excinfo:
        generator.run()
    messages = [error.message for error in excinfo.value.errors]
    assert any("'foo_bar'" in message and "trait ClashesSpec" in message for message in messages)
    assert any("'emitProgress'" in message and "class ClashesSpec" in message for message in messages)
    assert not (project_builder.path() / "crates").exists()
