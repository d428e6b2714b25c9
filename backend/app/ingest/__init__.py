"""CSV import pipeline: templates, decoding, validation, resolution, reporting."""
from app.ingest.errors import (
    DecoderExhausted,
    FormatError,
    ImportAborted,
    ImportCancelled,
    TemplateNotFound,
    TooLarge,
    TooManyRows,
)
from app.ingest.importer import BatchImporter, ImportActor
from app.ingest.records import RawRow, RowError, RowErrorKind, ValidatedRecord
from app.ingest.report import ImportReport, ReportBuilder
from app.ingest.samples import sample, sample_filename
from app.ingest.templates import (
    GENERAL_GUIDELINES,
    EntityKind,
    ImportTemplate,
    list_templates,
    template_for,
)

__all__ = [
    "BatchImporter", "ImportActor",
    "EntityKind", "ImportTemplate", "list_templates", "template_for", "GENERAL_GUIDELINES",
    "RawRow", "ValidatedRecord", "RowError", "RowErrorKind",
    "ImportReport", "ReportBuilder",
    "sample", "sample_filename",
    "ImportAborted", "FormatError", "TooLarge", "TooManyRows",
    "ImportCancelled", "TemplateNotFound", "DecoderExhausted",
]
