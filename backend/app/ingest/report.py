"""Per-batch accounting and the final import report."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from app.ingest.records import RowError
from app.ingest.templates import EntityKind


@dataclass(frozen=True)
class ImportReport:
    kind: EntityKind
    total_rows: int
    success_count: int
    imported: int
    errors: tuple[RowError, ...] = ()

    @property
    def failed_rows(self) -> int:
        return self.total_rows - self.success_count

    def messages(self) -> list[str]:
        return [e.render() for e in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "total_rows": self.total_rows,
            "success_count": self.success_count,
            "imported": self.imported,
            "errors": self.messages(),
        }


class ReportBuilder:
    """Accumulates row outcomes for exactly one batch.

    Errors must be added in row order; the importer drains rows in order
    even when they were checked concurrently.
    """

    def __init__(self, kind: EntityKind):
        self.kind = kind
        self.total_rows = 0
        self.success_count = 0
        self.imported = 0
        self._errors: list[RowError] = []
        self._last_index = -1

    def row_seen(self) -> None:
        self.total_rows += 1

    def row_succeeded(self) -> None:
        self.success_count += 1

    def record_persisted(self) -> None:
        self.imported += 1

    def add_errors(self, index: int, errors: list[RowError]) -> None:
        if index < self._last_index:
            raise ValueError(f"row {index} reported after row {self._last_index}")
        self._last_index = index
        self._errors.extend(errors)

    def build(self) -> ImportReport:
        return ImportReport(
            kind=self.kind,
            total_rows=self.total_rows,
            success_count=self.success_count,
            imported=self.imported,
            errors=tuple(self._errors),
        )
