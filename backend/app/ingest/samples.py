"""Sample CSV files, generated from the template registry."""
import csv
import io

from app.ingest.templates import EntityKind, template_for


def sample(kind: EntityKind | str) -> bytes:
    """Header row plus the template's example row, UTF-8, '\\n' line endings."""
    template = template_for(kind)
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(template.required_columns)
    writer.writerow(template.example_row)
    return buf.getvalue().encode("utf-8")


def sample_filename(kind: EntityKind | str) -> str:
    return f"sample_{template_for(kind).kind.value}.csv"
