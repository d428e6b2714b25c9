"""Row validation: raw strings in, typed record or every error out."""
from typing import Any

from app.ingest.records import RawRow, RowError, RowErrorKind, ValidatedRecord
from app.ingest.templates import EntityKind, EnumViolation, ImportTemplate


def validate(raw: RawRow, template: ImportTemplate) -> ValidatedRecord | list[RowError]:
    """Check every column of ``raw`` against ``template``.

    Never stops at the first bad column: a row with three problems yields
    three RowErrors, each tagged with its column. A row with the wrong number
    of cells yields a single structural error with no column.
    """
    width = len(template.columns)
    if raw.cell_count != width:
        kind = RowErrorKind.MISSING_FIELD if raw.cell_count < width else RowErrorKind.TYPE_MISMATCH
        return [
            RowError(
                index=raw.index,
                message=f"expected {width} fields, got {raw.cell_count}",
                kind=kind,
            )
        ]

    fields: dict[str, Any] = {}
    errors: list[RowError] = []

    for column in template.columns:
        value = raw.values.get(column.name, "")
        if not value:
            errors.append(
                RowError(raw.index, f"{column.name} is required", RowErrorKind.MISSING_FIELD, column.name)
            )
            continue
        try:
            fields[column.name] = column.type.parse(value)
        except EnumViolation as exc:
            errors.append(RowError(raw.index, str(exc), RowErrorKind.INVALID_ENUM, column.name))
        except ValueError as exc:
            errors.append(RowError(raw.index, str(exc), RowErrorKind.TYPE_MISMATCH, column.name))

    errors.extend(_cross_field_errors(raw.index, template.kind, fields))

    if errors:
        return errors
    return ValidatedRecord(index=raw.index, kind=template.kind, fields=fields)


def _cross_field_errors(index: int, kind: EntityKind, fields: dict[str, Any]) -> list[RowError]:
    if kind is EntityKind.campaigns:
        start, end = fields.get("start_date"), fields.get("end_date")
        if start is not None and end is not None and end < start:
            return [
                RowError(
                    index,
                    f"end_date {end.isoformat()} is before start_date {start.isoformat()}",
                    RowErrorKind.TYPE_MISMATCH,
                    "end_date",
                )
            ]
    return []
