"""Shared fixtures for the backend test suite."""
import os

# must be set before app.core.config is first imported
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("APP_ENV", "test")

import pytest  # noqa: E402
from sqlalchemy.exc import IntegrityError  # noqa: E402

from app.ingest.records import ValidatedRecord  # noqa: E402
from app.ingest.templates import EntityKind, template_for  # noqa: E402


class MemoryStore:
    """In-memory RecordStore.

    Enforces identifier uniqueness the way the database does, by raising
    IntegrityError, so persistence failures can be exercised without Postgres.
    """

    def __init__(self, known: dict[EntityKind, set[str]] | None = None):
        self.known = {kind: set(ids) for kind, ids in (known or {}).items()}
        self.persisted: list[ValidatedRecord] = []
        self.commits = 0
        self.identifier_loads: list[EntityKind] = []

    async def identifiers(self, kind: EntityKind) -> set[str]:
        self.identifier_loads.append(kind)
        return set(self.known.get(kind, set()))

    async def persist(self, record: ValidatedRecord) -> None:
        identifier = template_for(record.kind).identifier
        if identifier:
            value = record.fields[identifier]
            seen = self.known.setdefault(record.kind, set())
            if value in seen:
                raise IntegrityError(
                    "INSERT INTO ...",
                    {},
                    Exception(f'duplicate key value violates unique constraint "ix_{record.kind.value}_{identifier}"'),
                )
            seen.add(value)
        self.persisted.append(record)

    async def commit(self) -> None:
        self.commits += 1


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def store_factory():
    return MemoryStore
