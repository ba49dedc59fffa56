"""Identifier case conversion for generated sources."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional

from ..errors import DuplicateDefinitionError, SchemaValidationError
from ..models import SourceLocation

_WORD_PATTERN = re.compile(r"[A-Z]+(?=[A-Z][a-z0-9])|[A-Z]?[a-z0-9]+|[A-Z]+")

RUST_KEYWORDS = frozenset(
    {
        "as", "async", "await", "box", "break", "const", "continue", "dyn", "else", "enum",
        "extern", "false", "fn", "for", "if", "impl", "in", "let", "loop", "match", "mod",
        "move", "mut", "pub", "ref", "return", "static", "struct", "trait", "true", "try",
        "type", "unsafe", "use", "where", "while", "yield",
    }
)
_RUST_UNRAWABLE = frozenset({"self", "Self", "super", "crate"})

CXX_KEYWORDS = frozenset(
    {
        "auto", "bool", "break", "case", "catch", "char", "class", "const", "continue",
        "default", "delete", "do", "double", "else", "enum", "explicit", "export", "extern",
        "false", "float", "for", "friend", "goto", "if", "inline", "int", "long", "mutable",
        "namespace", "new", "operator", "private", "protected", "public", "register",
        "return", "short", "signed", "sizeof", "static", "struct", "switch", "template",
        "this", "throw", "true", "try", "typedef", "typename", "union", "unsigned", "using",
        "virtual", "void", "volatile", "while",
    }
)


def split_words(name: str) -> List[str]:
    """Split camelCase, PascalCase, snake_case and kebab-case names into words."""
    return _WORD_PATTERN.findall(name)


def snake_case(name: str) -> str:
    words = split_words(name)
    if not words:
        return name
    return "_".join(word.lower() for word in words)


def pascal_case(name: str) -> str:
    words = split_words(name)
    if not words:
        return name
    result = "".join(word[0].upper() + word[1:].lower() for word in words)
    if result[0].isdigit():
        result = f"_{result}"
    return result


def flat_case(name: str) -> str:
    words = split_words(name)
    if not words:
        return name
    return "".join(word.lower() for word in words)


def rust_identifier(name: str) -> str:
    if name in _RUST_UNRAWABLE:
        return f"{name}_"
    if name in RUST_KEYWORDS:
        return f"r#{name}"
    return name


def cxx_identifier(name: str) -> str:
    return f"{name}_" if name in CXX_KEYWORDS else name


class NameTable:
    """Generated identifiers of one scope; clashing spellings become errors.

    Two declared names that convert to the same identifier (``fooBar`` and
    ``foo_bar`` in snake_case, say) would produce a duplicate definition in
    the generated source, so each clash is recorded as a
    :class:`DuplicateDefinitionError` at the later declaration.
    """

    def __init__(self, scope: str) -> None:
        self.scope = scope
        self.errors: List[DuplicateDefinitionError] = []
        self._claimed: Dict[str, str] = {}

    def claim(
        self, identifier: str, declared: str, location: Optional[SourceLocation] = None
    ) -> None:
        previous = self._claimed.get(identifier)
        if previous is None:
            self._claimed[identifier] = declared
            return
        self.errors.append(
            DuplicateDefinitionError(
                identifier,
                location,
                what=f"generated name in {self.scope}",
                detail=f"'{declared}' clashes with '{previous}'",
            )
        )


def raise_name_clashes(tables: Iterable[NameTable]) -> None:
    """Raise one :class:`SchemaValidationError` for every clash in ``tables``."""
    errors = [error for table in tables for error in table.errors]
    if errors:
        raise SchemaValidationError(errors)


__all__ = [
    "CXX_KEYWORDS",
    "NameTable",
    "RUST_KEYWORDS",
    "cxx_identifier",
    "flat_case",
    "pascal_case",
    "raise_name_clashes",
    "rust_identifier",
    "snake_case",
    "split_words",
]
