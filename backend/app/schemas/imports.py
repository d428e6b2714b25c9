"""Pydantic schemas for CSV import templates and results."""
from pydantic import BaseModel

from app.ingest.report import ImportReport


class ImportReportOut(BaseModel):
    kind: str
    total_rows: int
    success_count: int
    imported: int
    errors: list[str] = []

    @classmethod
    def from_report(cls, report: ImportReport) -> "ImportReportOut":
        return cls(**report.to_dict())


class TemplateOut(BaseModel):
    required_headers: list[str]
    data_types: dict[str, str]
    example_row: str


class TemplatesResponse(BaseModel):
    templates: dict[str, TemplateOut]
    general_guidelines: list[str]


class ImportFailure(BaseModel):
    """Body of a rejected batch (no report is produced)."""

    detail: str
    error: str
