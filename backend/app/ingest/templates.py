"""Import template registry.

One template per entity kind. A template lists the required CSV columns in
order, the semantic type of each column and one example row. Validation,
the templates endpoint and sample files are all derived from here, so the
three can never drift apart.
"""
from __future__ import annotations

import csv
import enum
import io
import re
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from app.ingest.errors import TemplateNotFound

DATE_FORMAT = "%Y-%m-%d"

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")
_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


class EntityKind(str, enum.Enum):
    customers = "customers"
    purchases = "purchases"
    campaigns = "campaigns"
    performance = "performance"


class EnumViolation(ValueError):
    """Value is well-formed text but not one of the allowed choices."""


# ─── Semantic types ───

@dataclass(frozen=True)
class Text:
    """Free text, at most `max_length` characters (the width of its column)."""

    note: str = ""
    max_length: int = 255

    def parse(self, raw: str) -> str:
        if len(raw) > self.max_length:
            raise ValueError(f"{len(raw)} characters is over the limit of {self.max_length}")
        return raw

    def describe(self) -> str:
        return f"string ({self.note})" if self.note else "string"


@dataclass(frozen=True)
class Integer:
    minimum: int | None = None
    maximum: int | None = None
    note: str = ""

    def parse(self, raw: str) -> int:
        if not _INTEGER_RE.fullmatch(raw):
            raise ValueError(f"invalid integer '{raw}' (expected {self.describe()})")
        value = int(raw)
        if self.minimum is not None and value < self.minimum:
            raise ValueError(f"{value} is below the minimum of {self.minimum}")
        if self.maximum is not None and value > self.maximum:
            raise ValueError(f"{value} is above the maximum of {self.maximum}")
        return value

    def describe(self) -> str:
        if self.minimum is not None and self.maximum is not None:
            return f"integer ({self.minimum}-{self.maximum})"
        return f"integer ({self.note})" if self.note else "integer"


@dataclass(frozen=True)
class Number:
    """Decimal with '.' as the only separator."""

    minimum: Decimal | None = None
    note: str = ""

    def parse(self, raw: str) -> Decimal:
        if not _DECIMAL_RE.fullmatch(raw):
            raise ValueError(f"invalid decimal '{raw}' (expected {self.describe()})")
        value = Decimal(raw)
        if self.minimum is not None and value < self.minimum:
            raise ValueError(f"{raw} is below the minimum of {self.minimum}")
        return value

    def describe(self) -> str:
        return f"decimal ({self.note})" if self.note else "decimal"


@dataclass(frozen=True)
class Choice:
    values: tuple[str, ...]

    def parse(self, raw: str) -> str:
        if raw not in self.values:
            raise EnumViolation(f"'{raw}' is not one of {', '.join(self.values)}")
        return raw

    def describe(self) -> str:
        return f"string ({'/'.join(self.values)})"


@dataclass(frozen=True)
class Day:
    def parse(self, raw: str) -> date:
        if not _DATE_RE.fullmatch(raw):
            raise ValueError(f"invalid date '{raw}' (expected YYYY-MM-DD)")
        try:
            return datetime.strptime(raw, DATE_FORMAT).date()
        except ValueError:
            raise ValueError(f"invalid date '{raw}' (expected YYYY-MM-DD)") from None

    def describe(self) -> str:
        return "date (YYYY-MM-DD format)"


@dataclass(frozen=True)
class Reference:
    """Identifier that must already exist among another kind's records."""

    target: EntityKind
    column: str

    def parse(self, raw: str) -> str:
        return raw

    def describe(self) -> str:
        return f"string (must exist in {self.target.value})"


ColumnType = Text | Integer | Number | Choice | Day | Reference


@dataclass(frozen=True)
class Column:
    name: str
    type: ColumnType


@dataclass(frozen=True)
class ImportTemplate:
    kind: EntityKind
    columns: tuple[Column, ...]
    example_row: tuple[str, ...]
    identifier: str | None = None

    @property
    def required_columns(self) -> list[str]:
        return [c.name for c in self.columns]

    @property
    def references(self) -> list[tuple[str, Reference]]:
        return [(c.name, c.type) for c in self.columns if isinstance(c.type, Reference)]

    def data_types(self) -> dict[str, str]:
        return {c.name: c.type.describe() for c in self.columns}

    def example_csv_row(self) -> str:
        buf = io.StringIO()
        csv.writer(buf, lineterminator="").writerow(self.example_row)
        return buf.getvalue()

    def describe(self) -> dict[str, Any]:
        return {
            "required_headers": self.required_columns,
            "data_types": self.data_types(),
            "example_row": self.example_csv_row(),
        }


# ─── Registry ───

_ZERO = Decimal("0")

_TEMPLATES: dict[EntityKind, ImportTemplate] = {
    EntityKind.customers: ImportTemplate(
        kind=EntityKind.customers,
        identifier="customer_id",
        columns=(
            Column("customer_id", Text("unique identifier", max_length=100)),
            Column("age", Integer(minimum=18, maximum=100)),
            Column("gender", Choice(("Male", "Female", "Other"))),
            Column("location", Text("city/state")),
            Column("income_range", Text("e.g., $50k-$75k", max_length=50)),
            Column("registration_date", Day()),
            Column("preferred_category", Text("product category", max_length=100)),
        ),
        example_row=("CUST00001", "25", "Female", "New York", "$50k-$75k", "2024-01-15", "Fashion"),
    ),
    EntityKind.purchases: ImportTemplate(
        kind=EntityKind.purchases,
        columns=(
            Column("customer_id", Reference(EntityKind.customers, "customer_id")),
            Column("product_id", Text("product identifier", max_length=100)),
            Column("category", Text("product category", max_length=100)),
            Column("amount", Number(minimum=_ZERO, note="purchase amount")),
            Column("quantity", Integer(minimum=1, note="number of items")),
            Column("purchase_date", Day()),
            Column("channel", Choice(("online", "store"))),
        ),
        example_row=("CUST00001", "PROD001", "Fashion", "89.99", "1", "2024-01-20", "online"),
    ),
    EntityKind.campaigns: ImportTemplate(
        kind=EntityKind.campaigns,
        identifier="campaign_id",
        columns=(
            Column("campaign_id", Text("unique identifier", max_length=100)),
            Column("name", Text("campaign name")),
            Column("type", Choice(("email", "social", "display", "search"))),
            Column("target_segment", Text("target audience")),
            Column("budget", Number(minimum=_ZERO, note="campaign budget")),
            Column("start_date", Day()),
            Column("end_date", Day()),
            Column("status", Choice(("active", "paused", "completed"))),
        ),
        example_row=(
            "CAMP0001", "Summer Sale", "email", "Fashion Lovers",
            "5000.00", "2024-06-01", "2024-06-30", "completed",
        ),
    ),
    EntityKind.performance: ImportTemplate(
        kind=EntityKind.performance,
        columns=(
            Column("campaign_id", Reference(EntityKind.campaigns, "campaign_id")),
            Column("impressions", Integer(minimum=0, note="ad impressions")),
            Column("clicks", Integer(minimum=0, note="ad clicks")),
            Column("conversions", Integer(minimum=0, note="conversions")),
            Column("revenue", Number(minimum=_ZERO, note="revenue generated")),
            Column("cost", Number(minimum=_ZERO, note="campaign cost")),
            Column("date", Day()),
        ),
        example_row=("CAMP0001", "10000", "500", "25", "2500.00", "1000.00", "2024-06-01"),
    ),
}

GENERAL_GUIDELINES = [
    "CSV files must include headers as the first row",
    "Date format must be YYYY-MM-DD",
    "Decimal numbers use dot (.) as separator",
    "Text fields containing commas must be quoted",
]


def template_for(kind: EntityKind | str) -> ImportTemplate:
    try:
        return _TEMPLATES[EntityKind(kind)]
    except (ValueError, KeyError):
        raise TemplateNotFound(kind) from None


def list_templates() -> list[tuple[EntityKind, ImportTemplate]]:
    return [(kind, _TEMPLATES[kind]) for kind in EntityKind]
