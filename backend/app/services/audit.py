"""Audit log helper: append-only writes to audit_logs table."""
import json
import logging
import uuid
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.audit import AuditLog

logger = logging.getLogger(__name__)


async def log(
    db: AsyncSession,
    action: str,
    entity_type: str,
    entity_id: uuid.UUID | str | None = None,
    actor_id: uuid.UUID | str | None = None,
    actor_email: str | None = None,
    after: Any | None = None,
    ip_address: str | None = None,
    notes: str | None = None,
) -> AuditLog:
    """Write a single audit log entry.

    Args:
        db: Async session; the caller controls the transaction.
        action: Short verb, e.g. 'import.completed', 'user_login'.
        entity_type: Domain name, e.g. 'customers', 'user'.
        entity_id: PK of the affected record, if there is one.
        actor_id: User who performed the action (None for system actions).
        actor_email: Denormalised email (preserved if user is later deleted).
        after: JSON-serialisable snapshot of the outcome.
        ip_address: Caller address when known.
        notes: Free-text annotation.
    """
    entry = AuditLog(
        actor_id=uuid.UUID(str(actor_id)) if actor_id else None,
        actor_email=actor_email,
        action=action,
        entity_type=entity_type,
        entity_id=uuid.UUID(str(entity_id)) if entity_id else None,
        after_state=json.dumps(after, default=str) if after is not None else None,
        ip_address=ip_address,
        notes=notes,
    )
    db.add(entry)
    await db.flush()  # get id without committing
    logger.debug("Audit: %s %s/%s", action, entity_type, entity_id)
    return entry
