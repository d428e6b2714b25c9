"""CSV import endpoints: templates, samples, and per-kind uploads."""
import asyncio
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.deps import get_current_user, get_record_store
from app.core.limiter import limiter
from app.db.session import get_session
from app.ingest import (
    GENERAL_GUIDELINES,
    BatchImporter,
    EntityKind,
    ImportActor,
    ImportCancelled,
    TemplateNotFound,
    list_templates,
    sample,
    sample_filename,
)
from app.models.user import User
from app.schemas.imports import ImportFailure, ImportReportOut, TemplatesResponse
from app.services import audit as audit_svc
from app.services.record_store import SqlRecordStore

logger = logging.getLogger(__name__)

router = APIRouter()

# Non-standard "client closed request" status, as used by nginx.
CLIENT_CLOSED_REQUEST = 499


# ─── Helpers ───

def _kind_or_404(kind: str) -> EntityKind:
    try:
        return EntityKind(kind)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(TemplateNotFound(kind)))


def _guidelines() -> list[str]:
    mb = settings.IMPORT_MAX_FILE_BYTES / (1024 * 1024)
    return [
        *GENERAL_GUIDELINES,
        f"Maximum file size: {mb:g}MB",
        f"Maximum rows per import: {settings.IMPORT_MAX_ROWS:,}",
    ]


async def _watch_disconnect(request: Request, cancel: asyncio.Event) -> None:
    while not cancel.is_set():
        if await request.is_disconnected():
            logger.info("import: client disconnected, cancelling")
            cancel.set()
            return
        await asyncio.sleep(settings.IMPORT_DISCONNECT_POLL_SECONDS)


# ─── GET /import/templates ───

@router.get("/templates", response_model=TemplatesResponse, summary="Describe the CSV layout for every import kind")
async def get_templates():
    return {
        "templates": {kind.value: t.describe() for kind, t in list_templates()},
        "general_guidelines": _guidelines(),
    }


# ─── GET /import/sample/{kind} ───

@router.get("/sample/{kind}", summary="Download a one-row sample CSV")
async def get_sample(kind: str):
    entity = _kind_or_404(kind)
    return Response(
        content=sample(entity),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{sample_filename(entity)}"'},
    )


# ─── POST /import/{kind} ───

@router.post(
    "/{kind}",
    response_model=ImportReportOut,
    responses={400: {"model": ImportFailure}, 413: {"model": ImportFailure}, 422: {"model": ImportFailure}},
    summary="Import a CSV file of customers, purchases, campaigns or performance data",
)
@limiter.limit(settings.IMPORT_RATE_LIMIT)
async def import_csv(
    request: Request,
    kind: str,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[SqlRecordStore, Depends(get_record_store)],
    file: UploadFile = File(...),
):
    entity = _kind_or_404(kind)
    if not (file.filename or "").lower().endswith(".csv"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="File must be a CSV")

    cancel = asyncio.Event()
    watcher = asyncio.create_task(_watch_disconnect(request, cancel))
    try:
        importer = BatchImporter.from_settings(store)
        report = await importer.run(
            file.file,
            entity,
            ImportActor(user_id=str(current_user.id), email=current_user.email),
            cancel,
        )
    except ImportCancelled:
        raise HTTPException(status_code=CLIENT_CLOSED_REQUEST, detail="Import cancelled")
    finally:
        watcher.cancel()

    await audit_svc.log(
        db,
        action="import.completed",
        entity_type=entity.value,
        actor_id=current_user.id,
        actor_email=current_user.email,
        after={
            "filename": file.filename,
            "total_rows": report.total_rows,
            "success_count": report.success_count,
            "imported": report.imported,
            "failed_rows": report.failed_rows,
        },
        ip_address=request.client.host if request.client else None,
    )
    await db.commit()

    return ImportReportOut.from_report(report)
