"""Reference resolution against already-persisted entities."""
import asyncio
import logging
from collections.abc import Awaitable, Callable

from app.ingest.records import RowError, RowErrorKind, ValidatedRecord
from app.ingest.store import RecordStore
from app.ingest.templates import EntityKind, ImportTemplate

logger = logging.getLogger(__name__)

Lookup = Callable[[EntityKind, str], Awaitable[bool]]


class ReferenceIndex:
    """Per-batch cache of persisted identifiers, loaded lazily per entity kind.

    Built fresh for every import so a later batch sees whatever earlier
    batches persisted. Never shared between batches.
    """

    def __init__(self, store: RecordStore):
        self._store = store
        self._known: dict[EntityKind, set[str]] = {}
        self._lock = asyncio.Lock()

    async def lookup(self, kind: EntityKind, identifier: str) -> bool:
        known = self._known.get(kind)
        if known is None:
            async with self._lock:
                known = self._known.get(kind)
                if known is None:
                    known = await self._store.identifiers(kind)
                    self._known[kind] = known
                    logger.info("reference index: loaded %d %s identifiers", len(known), kind.value)
        return identifier in known


async def resolve(
    record: ValidatedRecord,
    template: ImportTemplate,
    lookup: Lookup,
) -> ValidatedRecord | RowError:
    """Return ``record`` if every reference column points at an existing entity.

    Only called for records that already passed validation.
    """
    for column, ref in template.references:
        identifier = record.fields[column]
        if not await lookup(ref.target, identifier):
            return RowError(
                index=record.index,
                message=f"{ref.column} '{identifier}' not found in {ref.target.value}",
                kind=RowErrorKind.UNRESOLVED_REFERENCE,
                column=column,
            )
    return record
