"""Persistence boundary of the import pipeline."""
from typing import Protocol

from app.ingest.records import ValidatedRecord
from app.ingest.templates import EntityKind


class RecordStore(Protocol):
    """What the importer needs from storage, and nothing more."""

    async def identifiers(self, kind: EntityKind) -> set[str]:
        """All identifier values currently persisted for ``kind``."""
        ...

    async def persist(self, record: ValidatedRecord) -> None:
        """Store one record. Raises on failure; a failure must not undo
        records persisted before it."""
        ...

    async def commit(self) -> None:
        ...
