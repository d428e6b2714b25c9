"""Value types that flow between pipeline stages."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from app.ingest.templates import EntityKind


class RowErrorKind(str, enum.Enum):
    MISSING_FIELD = "MissingField"
    TYPE_MISMATCH = "TypeMismatch"
    INVALID_ENUM = "InvalidEnum"
    UNRESOLVED_REFERENCE = "UnresolvedReference"
    PERSISTENCE_FAILURE = "PersistenceFailure"


@dataclass(frozen=True)
class RawRow:
    """One decoded data row.

    ``index`` is zero-based and excludes the header. ``cell_count`` is the
    number of cells actually present on the line, so the validator can tell
    a short or long row from one with empty values.
    """

    index: int
    values: dict[str, str]
    cell_count: int


@dataclass(frozen=True)
class ValidatedRecord:
    index: int
    kind: EntityKind
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RowError:
    index: int
    message: str
    kind: RowErrorKind
    column: str | None = None

    @property
    def line_number(self) -> int:
        # header is line 1
        return self.index + 2

    def render(self) -> str:
        if self.column:
            return f"Row {self.line_number}: {self.column}: {self.message}"
        return f"Row {self.line_number}: {self.message}"
