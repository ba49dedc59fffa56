"""Base class and template environment for code emitters."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import ModuleSpec

GENERATED_BANNER = "// @generated by bridgegen. Do not edit this file by hand."
TEMPLATES_DIR = Path(__file__).with_name("templates")


def create_environment(templates_dir: Path | None = None) -> Environment:
    """Return the Jinja environment used by every emitter.

    A custom ``templates_dir`` is searched before the bundled templates so a
    project can override a single template.
    """
    directories: List[str] = []
    if templates_dir is not None:
        directories.append(str(templates_dir))
    directories.append(str(TEMPLATES_DIR))
    env = Environment(
        loader=FileSystemLoader(directories),
        autoescape=False,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
        undefined=StrictUndefined,
    )
    env.filters["c_string"] = _c_string
    return env


def _c_string(value: object) -> str:
    return json.dumps(str(value), ensure_ascii=False)


class Emitter(ABC):
    """Contract for emitters that render one module spec into one source file."""

    template_name: str
    language: str
    #: False for scaffolds the user edits; an existing file is then kept.
    overwrite = True

    def __init__(self, templates_dir: Path | None = None) -> None:
        self._env = create_environment(templates_dir)

    def render(self, spec: ModuleSpec) -> str:
        """Render ``spec``; identical specs always produce identical text."""
        template = self._env.get_template(self.template_name)
        text = template.render(banner=GENERATED_BANNER, **self.context(spec))
        return text.rstrip() + "\n"

    @abstractmethod
    def filename(self, spec: ModuleSpec) -> str:
        """Return the output file name for ``spec``."""

    @abstractmethod
    def context(self, spec: ModuleSpec) -> Dict[str, Any]:
        """Build the template context for ``spec``."""


__all__ = ["Emitter", "GENERATED_BANNER", "TEMPLATES_DIR", "create_environment"]
