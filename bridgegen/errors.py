"""Generation-time error taxonomy."""

from __future__ import annotations

from typing import Iterable, List, Optional

from .models import SourceLocation


class BridgegenError(RuntimeError):
    """Base class for errors raised while generating bridge code."""


class SchemaError(BridgegenError):
    """A problem attributed to one declaration of an interface description."""

    kind = "SchemaError"

    def __init__(self, message: str, location: Optional[SourceLocation] = None) -> None:
        super().__init__(message)
        self.message = message
        self.location = location

    def format(self) -> str:
        prefix = f"{self.location}: " if self.location is not None else ""
        return f"{prefix}{self.kind}: {self.message}"

    def sort_key(self) -> tuple[str, int, int, str]:
        if self.location is None:
            return ("", 0, 0, self.message)
        return (self.location.path, self.location.line, self.location.column, self.message)


class UnsupportedTypeError(SchemaError):
    """Raised when a declared type uses a construct outside the canonical set."""

    kind = "UnsupportedTypeError"

    def __init__(
        self,
        construct: str,
        location: Optional[SourceLocation] = None,
        *,
        detail: str | None = None,
    ) -> None:
        message = f"unsupported type construct: {construct}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, location)
        self.construct = construct


class DuplicateDefinitionError(SchemaError):
    """Raised when two methods, signals, types or modules share a name."""

    kind = "DuplicateDefinitionError"

    def __init__(
        self,
        name: str,
        location: Optional[SourceLocation] = None,
        *,
        what: str = "definition",
        detail: str | None = None,
    ) -> None:
        message = f"duplicate {what} '{name}'"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, location)
        self.name = name


class CyclicTypeError(SchemaError):
    """Raised when an object contains itself without a nullable indirection."""

    kind = "CyclicTypeError"

    def __init__(
        self,
        type_name: str,
        field_name: Optional[str] = None,
        cycle: Iterable[str] = (),
        location: Optional[SourceLocation] = None,
    ) -> None:
        path = " -> ".join(cycle)
        if field_name is None:
            message = f"type alias '{type_name}' refers to itself"
        else:
            message = f"field '{type_name}.{field_name}' makes '{type_name}' contain itself"
        if path:
            message = f"{message} ({path})"
        super().__init__(message, location)
        self.type_name = type_name
        self.field_name = field_name


class SchemaParseError(SchemaError):
    """Raised for malformed or structurally invalid interface descriptions."""

    kind = "SchemaParseError"


class SchemaValidationError(BridgegenError):
    """Raised once per run when one or more declarations failed validation."""

    def __init__(self, errors: Iterable[SchemaError]) -> None:
        ordered = sorted(errors, key=lambda error: error.sort_key())
        count = len(ordered)
        noun = "error" if count == 1 else "errors"
        super().__init__(f"{count} schema {noun} found")
        self.errors: List[SchemaError] = ordered

    def report(self) -> str:
        return "\n".join(error.format() for error in self.errors)


__all__ = [
    "BridgegenError",
    "CyclicTypeError",
    "DuplicateDefinitionError",
    "SchemaError",
    "SchemaParseError",
    "SchemaValidationError",
    "UnsupportedTypeError",
]
