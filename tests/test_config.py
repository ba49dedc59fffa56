"""Tests for bridgegen.yml loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from bridgegen.config import CONFIG_FILENAME, ConfigError, is_valid_project, load_config
from tests._fixtures.project_builder import ProjectBuilder


def test_load_config_applies_defaults(project_builder: ProjectBuilder) -> None:
    project_builder.write_config(name="demo")
    config = load_config(project_builder.path())
    root = project_builder.path().resolve()
    assert config.project.name == "demo"
    assert config.project.spec_prefix == "Native"
    assert config.source_dir == root / "src"
    assert config.rust_dir == root / "crates/lib/src/generated"
    assert config.cxx_dir == root / "cpp/generated"
    assert config.templates_dir is None
    assert config.runtime.worker_threads == 4


def test_load_config_reads_every_section(project_builder: ProjectBuilder) -> None:
    project_builder.write(
        {
            CONFIG_FILENAME: """
            project:
              name: demo
              source_dir: specs
              spec_prefix: Turbo
            output:
              rust_dir: rust/generated
              cxx_dir: cpp/out
              templates_dir: templates
            runtime:
              worker_threads: "8"
            """
        }
    )
    config = load_config(project_builder.path() / CONFIG_FILENAME)
    assert config.project.spec_prefix == "Turbo"
    assert config.source_dir.name == "specs"
    assert config.output.rust_dir == "rust/generated"
    assert config.templates_dir == config.root / "templates"
    assert config.runtime.worker_threads == 8


def test_missing_config_raises(tmp_path: Path) -> None:
    assert not is_valid_project(tmp_path)
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path)


def test_project_name_is_required(project_builder: ProjectBuilder) -> None:
    project_builder.write({CONFIG_FILENAME: "project:\n  source_dir: src\n"})
    with pytest.raises(ConfigError, match="project.name is required"):
        load_config(project_builder.path())


def test_sections_must_be_mappings(project_builder: ProjectBuilder) -> None:
    project_builder.write({CONFIG_FILENAME: "project:\n  name: demo\noutput: nowhere\n"})
    with pytest.raises(ConfigError, match="'output' must be a mapping"):
        load_config(project_builder.path())


@pytest.mark.parametrize("value", ["0", "many", "true"])
def test_worker_threads_must_be_a_positive_integer(project_builder: ProjectBuilder, value: str) -> None:
    project_builder.write(
        {CONFIG_FILENAME: f"project:\n  name: demo\nruntime:\n  worker_threads: {value}\n"}
    )
    with pytest.raises(ConfigError):
        load_config(project_builder.path())


def test_invalid_yaml_raises(project_builder: ProjectBuilder) -> None:
    project_builder.write({CONFIG_FILENAME: "project: [unclosed\n"})
    assert is_valid_project(project_builder.path())
    with pytest.raises(ConfigError, match="Failed to parse"):
        load_config(project_builder.path())
