"""Configuration loading for bridgegen projects (bridgegen.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = "bridgegen.yml"
DEFAULT_SPEC_PREFIX = "Native"
DEFAULT_WORKER_THREADS = 4


class ConfigError(RuntimeError):
    """Raised when the project file is missing or cannot be parsed."""


@dataclass
class ProjectConfig:
    """Project identity and where interface descriptions live."""

    name: str
    source_dir: str = "src"
    spec_prefix: str = DEFAULT_SPEC_PREFIX


@dataclass
class OutputConfig:
    """Destination directories for generated sources, relative to the root."""

    rust_dir: str = "crates/lib/src/generated"
    cxx_dir: str = "cpp/generated"
    templates_dir: Optional[str] = None


@dataclass
class RuntimeConfig:
    """Settings for the in-process runtime bridge."""

    worker_threads: int = DEFAULT_WORKER_THREADS


@dataclass
class BridgegenConfig:
    """Represents the settings defined in bridgegen.yml."""

    root: Path
    project: ProjectConfig
    output: OutputConfig = field(default_factory=OutputConfig)
    runtime: RuntimeConfig = field(default_factory=RuntimeConfig)

    @property
    def source_dir(self) -> Path:
        return self.root / self.project.source_dir

    @property
    def rust_dir(self) -> Path:
        return self.root / self.output.rust_dir

    @property
    def cxx_dir(self) -> Path:
        return self.root / self.output.cxx_dir

    @property
    def templates_dir(self) -> Optional[Path]:
        if not self.output.templates_dir:
            return None
        return self.root / self.output.templates_dir


def is_valid_project(root: Path) -> bool:
    """Return True when ``root`` holds a bridgegen project file."""
    return (Path(root).expanduser() / CONFIG_FILENAME).is_file()


def load_config(config_path: Path) -> BridgegenConfig:
    """Load configuration from a project root or a bridgegen.yml path."""
    config_file = _resolve_config_path(Path(config_path))
    root = config_file.parent

    if not config_file.exists():
        raise ConfigError(f"{CONFIG_FILENAME} not found in {root}; is this a bridgegen project?")

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    project_data = _section(data, "project")
    name = _as_str(project_data.get("name"))
    if not name:
        raise ConfigError(f"{CONFIG_FILENAME}: project.name is required")
    source_dir = _as_str(project_data.get("source_dir")) or "src"
    project = ProjectConfig(
        name=name,
        source_dir=source_dir,
        spec_prefix=_as_str(project_data.get("spec_prefix")) or DEFAULT_SPEC_PREFIX,
    )

    output_data = _section(data, "output")
    defaults = OutputConfig()
    output = OutputConfig(
        rust_dir=_as_str(output_data.get("rust_dir")) or defaults.rust_dir,
        cxx_dir=_as_str(output_data.get("cxx_dir")) or defaults.cxx_dir,
        templates_dir=_as_str(output_data.get("templates_dir")),
    )

    runtime_data = _section(data, "runtime")
    worker_threads = _as_int(runtime_data.get("worker_threads"))
    if worker_threads is None:
        worker_threads = DEFAULT_WORKER_THREADS
    if worker_threads < 1:
        raise ConfigError(f"{CONFIG_FILENAME}: runtime.worker_threads must be at least 1")

    return BridgegenConfig(
        root=root,
        project=project,
        output=output,
        runtime=RuntimeConfig(worker_threads=worker_threads),
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded or {}


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    value = data.get(name)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ConfigError(f"{CONFIG_FILENAME}: '{name}' must be a mapping")
    return value


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        raise ConfigError(f"expected an integer, got {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            raise ConfigError(f"expected an integer, got {value!r}") from None
    if value is None:
        return None
    raise ConfigError(f"expected an integer, got {value!r}")


__all__ = [
    "CONFIG_FILENAME",
    "BridgegenConfig",
    "ConfigError",
    "OutputConfig",
    "ProjectConfig",
    "RuntimeConfig",
    "is_valid_project",
    "load_config",
]
