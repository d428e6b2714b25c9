"""Batch importer: one uploaded file, end to end.

Receiving -> Decoding -> (Aborted | RowProcessing) -> Completed

Guards (size, header, row count) run before the first row is touched and
abort the batch by raising. Once rows are flowing, nothing a single row does
can abort the batch: validation, reference and persistence failures become
RowErrors in the report.
"""
import asyncio
import io
import itertools
import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import BinaryIO

from sqlalchemy.exc import SQLAlchemyError

from app.core.config import Settings, settings as default_settings
from app.ingest.decoder import CsvDecoder, count_rows
from app.ingest.errors import FormatError, ImportCancelled, TooLarge, TooManyRows
from app.ingest.records import RawRow, RowError, RowErrorKind, ValidatedRecord
from app.ingest.report import ImportReport, ReportBuilder
from app.ingest.resolver import ReferenceIndex, resolve
from app.ingest.store import RecordStore
from app.ingest.templates import EntityKind, ImportTemplate, template_for
from app.ingest.validator import validate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImportActor:
    """Who is importing. Passed in per request, never looked up here."""

    user_id: str
    email: str | None = None


RowOutcome = ValidatedRecord | list[RowError]

_NOUNS = {
    EntityKind.customers: "customer",
    EntityKind.purchases: "purchase",
    EntityKind.campaigns: "campaign",
    EntityKind.performance: "performance data",
}


def _stream_size(stream: BinaryIO) -> int:
    stream.seek(0, io.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _take(rows: Iterator[RawRow], n: int) -> list[RawRow]:
    return list(itertools.islice(rows, n))


class BatchImporter:
    def __init__(
        self,
        store: RecordStore,
        *,
        max_file_bytes: int,
        max_rows: int,
        workers: int = 8,
        chunk_size: int = 500,
    ):
        self.store = store
        self.max_file_bytes = max_file_bytes
        self.max_rows = max_rows
        self.workers = max(1, workers)
        self.chunk_size = max(1, chunk_size)

    @classmethod
    def from_settings(cls, store: RecordStore, settings: Settings = default_settings) -> "BatchImporter":
        return cls(
            store,
            max_file_bytes=settings.IMPORT_MAX_FILE_BYTES,
            max_rows=settings.IMPORT_MAX_ROWS,
            workers=settings.IMPORT_WORKERS,
            chunk_size=settings.IMPORT_CHUNK_SIZE,
        )

    async def run(
        self,
        stream: BinaryIO,
        kind: EntityKind | str,
        actor: ImportActor,
        cancel_event: asyncio.Event | None = None,
    ) -> ImportReport:
        """Import one CSV stream of ``kind``.

        Raises:
            TemplateNotFound: unknown kind.
            TooLarge, FormatError, TooManyRows: batch rejected, nothing processed.
            ImportCancelled: ``cancel_event`` was set; rows already persisted stay.
        """
        template = template_for(kind)
        logger.info("import %s: receiving (actor=%s)", template.kind.value, actor.user_id)

        size = _stream_size(stream)
        if size > self.max_file_bytes:
            logger.warning("import %s: aborted, %d bytes over limit", template.kind.value, size)
            raise TooLarge(
                f"File is {size} bytes; the limit is {self.max_file_bytes} bytes"
            )

        logger.info("import %s: decoding %d bytes", template.kind.value, size)
        try:
            row_count = await asyncio.to_thread(count_rows, stream)
            decoder = CsvDecoder(stream, template)
            rows = decoder.decode()
        except FormatError as exc:
            logger.warning("import %s: aborted, %s", template.kind.value, exc)
            raise

        if row_count == 0 or row_count > self.max_rows:
            decoder.close()
            if row_count == 0:
                exc = FormatError("CSV file must contain a header and at least one data row")
            else:
                exc = TooManyRows(f"File has {row_count} data rows; the limit is {self.max_rows}")
            logger.warning("import %s: aborted, %s", template.kind.value, exc)
            raise exc

        logger.info("import %s: processing %d rows", template.kind.value, row_count)
        builder = ReportBuilder(template.kind)
        index = ReferenceIndex(self.store)
        await self._process(decoder, rows, template, index, builder, cancel_event)

        report = builder.build()
        logger.info(
            "import %s: completed total=%d success=%d imported=%d errors=%d (actor=%s)",
            template.kind.value,
            report.total_rows,
            report.success_count,
            report.imported,
            len(report.errors),
            actor.user_id,
        )
        return report

    async def _process(
        self,
        decoder: CsvDecoder,
        rows: Iterator[RawRow],
        template: ImportTemplate,
        index: ReferenceIndex,
        builder: ReportBuilder,
        cancel_event: asyncio.Event | None,
    ) -> None:
        semaphore = asyncio.Semaphore(self.workers)

        async def check(raw: RawRow) -> RowOutcome:
            async with semaphore:
                return await self._check_row(raw, template, index)

        # Decode the next chunk in a thread while the current one is checked.
        pending = asyncio.ensure_future(asyncio.to_thread(_take, rows, self.chunk_size))
        try:
            while True:
                chunk = await asyncio.shield(pending)
                if not chunk:
                    break
                await self._raise_if_cancelled(cancel_event, template, builder)

                pending = asyncio.ensure_future(asyncio.to_thread(_take, rows, self.chunk_size))

                # gather keeps input order, so outcomes line up with chunk rows
                outcomes = await asyncio.gather(*(check(raw) for raw in chunk))
                for raw, outcome in zip(chunk, outcomes):
                    await self._drain(raw, outcome, builder)
                await self.store.commit()
            # a cancel that lands during the last chunk still yields no report
            await self._raise_if_cancelled(cancel_event, template, builder)
        finally:
            if not pending.done():
                await asyncio.wait([pending])
            decoder.close()

    async def _raise_if_cancelled(
        self,
        cancel_event: asyncio.Event | None,
        template: ImportTemplate,
        builder: ReportBuilder,
    ) -> None:
        if cancel_event is None or not cancel_event.is_set():
            return
        await self.store.commit()
        logger.warning("import %s: cancelled after %d rows", template.kind.value, builder.total_rows)
        raise ImportCancelled(f"import of {template.kind.value} cancelled by caller")

    async def _check_row(self, raw: RawRow, template: ImportTemplate, index: ReferenceIndex) -> RowOutcome:
        outcome = validate(raw, template)
        if isinstance(outcome, list):
            return outcome
        resolved = await resolve(outcome, template, index.lookup)
        if isinstance(resolved, RowError):
            return [resolved]
        return resolved

    async def _drain(self, raw: RawRow, outcome: RowOutcome, builder: ReportBuilder) -> None:
        builder.row_seen()
        if isinstance(outcome, list):
            builder.add_errors(raw.index, outcome)
            return

        builder.row_succeeded()
        try:
            await self.store.persist(outcome)
        except SQLAlchemyError as exc:
            logger.warning("import %s: row %d not persisted: %s", outcome.kind.value, raw.index, exc)
            builder.add_errors(
                raw.index,
                [
                    RowError(
                        index=raw.index,
                        message=f"failed to save {_NOUNS[outcome.kind]}: {_short(exc)}",
                        kind=RowErrorKind.PERSISTENCE_FAILURE,
                    )
                ],
            )
            return
        builder.record_persisted()


def _short(exc: SQLAlchemyError) -> str:
    orig = getattr(exc, "orig", None)
    text = str(orig if orig is not None else exc)
    return text.splitlines()[0] if text else exc.__class__.__name__
