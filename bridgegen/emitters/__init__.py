"""Code emitters for the native and bridge sides of a module."""

from __future__ import annotations

from pathlib import Path
from typing import List

from .base import GENERATED_BANNER, Emitter, create_environment
from .cxx import CxxBridgeEmitter, CxxRustAdapterEmitter
from .rust import RustEmitter, RustFfiEmitter, RustImplEmitter, rust_type, type_from_rust


def default_emitters(templates_dir: Path | None = None) -> List[Emitter]:
    """Return the emitters run for every module, Rust first."""
    return [
        RustEmitter(templates_dir),
        RustFfiEmitter(templates_dir),
        RustImplEmitter(templates_dir),
        CxxBridgeEmitter(templates_dir),
        CxxRustAdapterEmitter(templates_dir),
    ]


__all__ = [
    "CxxBridgeEmitter",
    "CxxRustAdapterEmitter",
    "Emitter",
    "GENERATED_BANNER",
    "RustEmitter",
    "RustFfiEmitter",
    "RustImplEmitter",
    "create_environment",
    "default_emitters",
    "rust_type",
    "type_from_rust",
]
