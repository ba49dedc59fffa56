from __future__ import annotations

from pathlib import Path
from typing import Callable, List

import pytest

from bridgegen.models import InterfaceUnit, ModuleSpec
from bridgegen.schema import SchemaExtractor
from tests._fixtures.project_builder import ProjectBuilder
from tests._fixtures.sources import TASK_STORE


@pytest.fixture
def project_builder(tmp_path: Path) -> ProjectBuilder:
    """Provide a reusable project builder rooted at the pytest tmp_path."""
    return ProjectBuilder(tmp_path)


@pytest.fixture(scope="session")
def extractor() -> SchemaExtractor:
    return SchemaExtractor()


@pytest.fixture
def extract(extractor: SchemaExtractor) -> Callable[..., List[ModuleSpec]]:
    """Extract module specs from one in-memory TypeScript source."""

    def _extract(source: str, path: str = "src/NativeSample.ts") -> List[ModuleSpec]:
        return extractor.extract([InterfaceUnit(path=path, source=source)])

    return _extract


@pytest.fixture(scope="session")
def task_store(extractor: SchemaExtractor) -> ModuleSpec:
    """The TaskStore module used across emitter and runtime tests."""
    (spec,) = extractor.extract([InterfaceUnit(path="src/NativeTaskStore.ts", source=TASK_STORE)])
    return spec
