"""Interface description parsing, type resolution and validation."""

from __future__ import annotations

from .extractor import SchemaExtractor
from .resolver import TypePosition, TypeResolver, check_cycles
from .syntax import TypeScriptSyntax

__all__ = [
    "SchemaExtractor",
    "TypePosition",
    "TypeResolver",
    "TypeScriptSyntax",
    "check_cycles",
]
