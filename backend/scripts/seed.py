"""Seed script: creates the initial users and loads the sample CSVs.

Idempotent: users are matched by email, and sample rows that already exist
come back as row errors rather than duplicates.
Run: python scripts/seed.py
"""
import asyncio
import io
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.session import engine, session_scope
from app.core.security import hash_password
from app.ingest import BatchImporter, EntityKind, ImportActor, sample
from app.models.user import User
from app.services.record_store import SqlRecordStore

USERS = [
    ("admin@example.com", "Admin User", "ADMIN"),
    ("analyst@example.com", "Marketing Analyst", "ANALYST"),
]


async def _upsert_user(db: AsyncSession, email: str, name: str, role: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if user:
        print(f"  [skip] User {email}")
        return user
    user = User(
        email=email, name=name,
        password_hash=hash_password("changeme123"),
        role=role, is_active=True,
    )
    db.add(user)
    await db.flush()
    print(f"  [new]  User {email} ({role})")
    return user


async def seed():
    async with session_scope() as db:
        print("Users:")
        users = [await _upsert_user(db, *user) for user in USERS]
        await db.commit()
        admin = users[0]

        print("Sample data:")
        importer = BatchImporter.from_settings(SqlRecordStore(db, actor_id=admin.id))
        actor = ImportActor(user_id=str(admin.id), email=admin.email)
        # parents first so references resolve
        for kind in EntityKind:
            report = await importer.run(io.BytesIO(sample(kind)), kind, actor)
            print(f"  {kind.value}: {report.imported}/{report.total_rows} imported")
            for message in report.messages():
                print(f"    {message}")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed())
