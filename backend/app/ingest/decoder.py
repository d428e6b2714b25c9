"""Streaming CSV decoder.

Rows come off the underlying binary stream one at a time through a text
wrapper; the file is never loaded whole. A decoder reads its stream once.
"""
import csv
import io
import logging
from collections.abc import Iterator
from typing import BinaryIO

from app.ingest.errors import DecoderExhausted, FormatError
from app.ingest.records import RawRow
from app.ingest.templates import ImportTemplate

logger = logging.getLogger(__name__)

ENCODING = "utf-8-sig"  # tolerate a leading BOM from spreadsheet exports


def _is_blank(record: list[str]) -> bool:
    return not any(cell.strip() for cell in record)


def _text(stream: BinaryIO) -> io.TextIOWrapper:
    return io.TextIOWrapper(stream, encoding=ENCODING, newline="")


def count_rows(stream: BinaryIO) -> int:
    """Count non-blank data rows in one pass, then rewind the stream.

    Also surfaces encoding and quoting problems before any row is processed.
    """
    text = _text(stream)
    try:
        reader = csv.reader(text)
        next(reader, None)
        return sum(1 for record in reader if not _is_blank(record))
    except (UnicodeDecodeError, csv.Error) as exc:
        raise FormatError(f"Failed to parse CSV file: {exc}") from exc
    finally:
        text.detach()
        stream.seek(0)


class CsvDecoder:
    """Decode one CSV stream against one template."""

    def __init__(self, stream: BinaryIO, template: ImportTemplate):
        self.stream = stream
        self.template = template
        self._used = False
        self._text: io.TextIOWrapper | None = None
        self._iter: Iterator[RawRow] | None = None

    def decode(self) -> Iterator[RawRow]:
        """Check the header, then return a lazy iterator over the data rows.

        Raises FormatError immediately (not on first iteration) when the
        header does not match the template.
        """
        if self._used:
            raise DecoderExhausted("this decoder has already read its stream")
        self._used = True

        self._text = _text(self.stream)
        reader = csv.reader(self._text)
        try:
            positions = self._match_header(reader)
        except Exception:
            self._release()
            raise
        self._iter = self._rows(reader, positions)
        return self._iter

    def close(self) -> None:
        """Stop decoding and hand the binary stream back to its owner."""
        if self._iter is not None:
            self._iter.close()
        self._release()

    def _release(self) -> None:
        text, self._text = self._text, None
        if text is not None:
            text.detach()

    def _match_header(self, reader) -> dict[str, int]:
        try:
            header = next(reader, None)
        except (UnicodeDecodeError, csv.Error) as exc:
            raise FormatError(f"Failed to parse CSV file: {exc}") from exc

        if header is None or _is_blank(header):
            raise FormatError("CSV file is empty or has no header row")

        names = [h.strip().lower() for h in header]
        expected = self.template.required_columns
        missing = [c for c in expected if c not in names]
        unexpected = [n for n in names if n not in expected]
        duplicated = sorted({n for n in names if names.count(n) > 1})

        if missing or unexpected or duplicated:
            problems = []
            if missing:
                problems.append(f"missing {', '.join(missing)}")
            if unexpected:
                problems.append(f"unexpected {', '.join(unexpected)}")
            if duplicated:
                problems.append(f"duplicated {', '.join(duplicated)}")
            raise FormatError(
                f"Invalid CSV headers for {self.template.kind.value} ({'; '.join(problems)}). "
                f"Expected: {', '.join(expected)}"
            )
        return {name: names.index(name) for name in expected}

    def _rows(self, reader, positions: dict[str, int]) -> Iterator[RawRow]:
        index = 0
        try:
            for record in reader:
                if _is_blank(record):
                    continue
                values = {
                    name: record[pos].strip() if pos < len(record) else ""
                    for name, pos in positions.items()
                }
                yield RawRow(index=index, values=values, cell_count=len(record))
                index += 1
        except (UnicodeDecodeError, csv.Error) as exc:
            raise FormatError(f"Failed to parse CSV file at data row {index}: {exc}") from exc
        finally:
            self._release()
            logger.debug("decoder: %s rows read for %s", index, self.template.kind.value)
