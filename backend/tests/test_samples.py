"""Sample files must always pass their own template."""
import io

import pytest

from app.ingest.decoder import CsvDecoder
from app.ingest.records import ValidatedRecord
from app.ingest.samples import sample, sample_filename
from app.ingest.templates import EntityKind, template_for
from app.ingest.validator import validate


@pytest.mark.parametrize("kind", list(EntityKind))
def test_sample_validates_against_its_template(kind):
    template = template_for(kind)
    rows = list(CsvDecoder(io.BytesIO(sample(kind)), template).decode())
    assert len(rows) == 1
    assert isinstance(validate(rows[0], template), ValidatedRecord)


def test_sample_layout():
    data = sample("purchases").decode("utf-8")
    assert data == (
        "customer_id,product_id,category,amount,quantity,purchase_date,channel\n"
        "CUST00001,PROD001,Fashion,89.99,1,2024-01-20,online\n"
    )


def test_sample_filename():
    assert sample_filename(EntityKind.performance) == "sample_performance.csv"
