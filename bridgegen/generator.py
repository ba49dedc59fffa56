"""Generation pipeline: discover units, extract specs, render and write sources."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .config import BridgegenConfig, ConfigError
from .emitters import Emitter, default_emitters
from .emitters.cxx import cxx_name_tables
from .emitters.rust import rust_name_tables
from .errors import BridgegenError, SchemaValidationError
from .logging import get_logger
from .models import InterfaceUnit, ModuleSpec
from .schema import SchemaExtractor

_SKIPPED_DIRS = {"node_modules", ".git", "__generated__"}


@dataclass(frozen=True)
class GeneratedFile:
    """One rendered source file and where it belongs."""

    module: str
    language: str
    path: Path
    content: str
    overwrite: bool = True


@dataclass
class GenerationResult:
    """Outcome of a generation run."""

    modules: List[ModuleSpec] = field(default_factory=list)
    files: List[GeneratedFile] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    unchanged: List[Path] = field(default_factory=list)
    kept: List[Path] = field(default_factory=list)


class Generator:
    """Coordinates extraction and both emitters for one project."""

    def __init__(
        self,
        config: BridgegenConfig,
        *,
        extractor: SchemaExtractor | None = None,
        emitters: Optional[Sequence[Emitter]] = None,
    ) -> None:
        self.config = config
        self.extractor = extractor or SchemaExtractor()
        self.emitters: List[Emitter] = (
            list(emitters) if emitters is not None else default_emitters(config.templates_dir)
        )
        self.logger = get_logger("generator")

    def discover(self) -> List[InterfaceUnit]:
        """Return every interface description under the source directory, sorted by path."""
        source_dir = self.config.source_dir
        if not source_dir.is_dir():
            raise ConfigError(f"source directory {source_dir} does not exist")
        prefix = self.config.project.spec_prefix
        paths = sorted(
            path
            for path in source_dir.rglob(f"{prefix}*.ts")
            if path.is_file()
            and not path.name.endswith(".d.ts")
            and not _SKIPPED_DIRS.intersection(path.relative_to(source_dir).parts)
        )
        self.logger.debug("Discovered %d interface description(s) in %s", len(paths), source_dir)
        return [InterfaceUnit.from_file(path, root=self.config.root) for path in paths]

    def render(self, modules: Iterable[ModuleSpec]) -> List[GeneratedFile]:
        """Render every module with every emitter; nothing is written.

        Generated identifiers that clash in any target language are reported
        together, for every module, before anything is rendered.
        """
        modules = list(modules)
        clashes = [
            error
            for module in modules
            for table in rust_name_tables(module) + cxx_name_tables(module)
            for error in table.errors
        ]
        if clashes:
            raise SchemaValidationError(clashes)
        files: List[GeneratedFile] = []
        claimed: Dict[Path, str] = {}
        for module in modules:
            for emitter in self.emitters:
                path = self._output_dir(emitter) / emitter.filename(module)
                owner = claimed.get(path)
                if owner is not None:
                    raise BridgegenError(
                        f"modules '{owner}' and '{module.name}' both render to {path.name}"
                    )
                claimed[path] = module.name
                files.append(
                    GeneratedFile(
                        module=module.name,
                        language=emitter.language,
                        path=path,
                        content=emitter.render(module),
                        overwrite=emitter.overwrite,
                    )
                )
        return files

    def run(self, *, dry_run: bool = False) -> GenerationResult:
        """Extract, render and write; no file is touched unless every step succeeded."""
        self.logger.info("Starting codegen for %s", self.config.project.name)
        units = self.discover()
        if not units:
            self.logger.warning(
                "No %s*.ts interface descriptions found in %s",
                self.config.project.spec_prefix,
                self.config.source_dir,
            )
        modules = self.extractor.extract(units)
        result = GenerationResult(modules=modules, files=self.render(modules))

        if dry_run:
            self.logger.info("Dry-run completed; %d file(s) rendered", len(result.files))
            return result

        self._commit(result)
        self.logger.info(
            "Generated %d module(s): %d file(s) written, %d unchanged, %d kept",
            len(modules),
            len(result.written),
            len(result.unchanged),
            len(result.kept),
        )
        return result

    def _commit(self, result: GenerationResult) -> None:
        """Stage every changed file next to its target, then move them all into place.

        A failure while staging leaves every target untouched and removes the
        staged copies.
        """
        staged: List[Tuple[Path, Path]] = []
        try:
            for generated in result.files:
                path = generated.path
                if not generated.overwrite and path.exists():
                    result.kept.append(path)
                    self.logger.debug("Kept %s", path)
                elif path.exists() and path.read_text(encoding="utf-8") == generated.content:
                    result.unchanged.append(path)
                    self.logger.debug("Unchanged %s", path)
                else:
                    staged.append((_stage(path, generated.content), path))
            for temp_path, path in staged:
                os.replace(temp_path, path)
                result.written.append(path)
                self.logger.debug("Wrote %s", path)
        finally:
            for temp_path, _ in staged:
                if temp_path.exists():
                    temp_path.unlink()

    def _output_dir(self, emitter: Emitter) -> Path:
        if emitter.language == "rust":
            return self.config.rust_dir
        if emitter.language == "cxx":
            return self.config.cxx_dir
        raise BridgegenError(f"no output directory configured for {emitter.language} sources")


def _stage(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    temp_path = path.with_name(f".{path.name}.tmp")
    temp_path.write_text(content, encoding="utf-8")
    return temp_path


__all__ = ["GeneratedFile", "GenerationResult", "Generator"]
