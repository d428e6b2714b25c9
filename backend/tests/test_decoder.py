"""Tests for the streaming CSV decoder."""
import io

import pytest

from app.ingest.decoder import CsvDecoder, count_rows
from app.ingest.errors import DecoderExhausted, FormatError
from app.ingest.templates import template_for

CUSTOMER_HEADER = "customer_id,age,gender,location,income_range,registration_date,preferred_category\n"
CUSTOMER_ROW = "CUST00001,25,Female,New York,$50k-$75k,2024-01-15,Fashion\n"


def _decoder(text: str | bytes, kind: str = "customers") -> CsvDecoder:
    data = text.encode("utf-8") if isinstance(text, str) else text
    return CsvDecoder(io.BytesIO(data), template_for(kind))


# ─── Header handling ──────────────────────────────────────────────────────────

def test_decodes_rows_in_order():
    rows = list(_decoder(CUSTOMER_HEADER + CUSTOMER_ROW + CUSTOMER_ROW.replace("00001", "00002")).decode())
    assert [r.index for r in rows] == [0, 1]
    assert rows[0].values["customer_id"] == "CUST00001"
    assert rows[1].values["customer_id"] == "CUST00002"
    assert rows[0].cell_count == 7


def test_header_is_case_insensitive_and_reorderable():
    header = "AGE, Customer_ID,gender,location,income_range,registration_date,preferred_category\n"
    rows = list(_decoder(header + "25,CUST00001,Female,NYC,$50k-$75k,2024-01-15,Fashion\n").decode())
    assert rows[0].values["customer_id"] == "CUST00001"
    assert rows[0].values["age"] == "25"


def test_missing_header_column_is_a_format_error():
    header = "customer_id,age,gender,location,income_range,registration_date\n"
    with pytest.raises(FormatError) as exc_info:
        _decoder(header + CUSTOMER_ROW).decode()
    assert "missing preferred_category" in exc_info.value.message
    assert "Expected: customer_id, age" in exc_info.value.message


def test_unexpected_header_column_is_a_format_error():
    header = CUSTOMER_HEADER.strip() + ",notes\n"
    with pytest.raises(FormatError) as exc_info:
        _decoder(header + CUSTOMER_ROW).decode()
    assert "unexpected notes" in exc_info.value.message


def test_duplicated_header_column_is_a_format_error():
    header = CUSTOMER_HEADER.strip() + ",age\n"
    with pytest.raises(FormatError) as exc_info:
        _decoder(header).decode()
    assert "duplicated age" in exc_info.value.message


def test_header_is_checked_before_iteration():
    decoder = _decoder("foo,bar\n1,2\n")
    with pytest.raises(FormatError):
        decoder.decode()


def test_empty_file_is_a_format_error():
    with pytest.raises(FormatError) as exc_info:
        _decoder("").decode()
    assert exc_info.value.message == "CSV file is empty or has no header row"


def test_utf8_bom_is_ignored():
    rows = list(_decoder(b"\xef\xbb\xbf" + (CUSTOMER_HEADER + CUSTOMER_ROW).encode()).decode())
    assert rows[0].values["customer_id"] == "CUST00001"


# ─── Rows ─────────────────────────────────────────────────────────────────────

def test_blank_lines_are_skipped_without_consuming_an_index():
    rows = list(_decoder(CUSTOMER_HEADER + "\n" + CUSTOMER_ROW + ",,,,,,\n" + CUSTOMER_ROW).decode())
    assert [r.index for r in rows] == [0, 1]


def test_values_are_trimmed():
    rows = list(_decoder(CUSTOMER_HEADER + " CUST00001 , 25 ,Female,NYC,$50k-$75k,2024-01-15,Fashion\n").decode())
    assert rows[0].values["customer_id"] == "CUST00001"
    assert rows[0].values["age"] == "25"


def test_short_row_keeps_cell_count():
    rows = list(_decoder(CUSTOMER_HEADER + "CUST00001,25,Female\n").decode())
    assert rows[0].cell_count == 3
    assert rows[0].values["preferred_category"] == ""


def test_quoted_commas_stay_in_one_cell():
    row = 'CUST00001,25,Female,"Portland, OR",$50k-$75k,2024-01-15,Fashion\n'
    rows = list(_decoder(CUSTOMER_HEADER + row).decode())
    assert rows[0].values["location"] == "Portland, OR"
    assert rows[0].cell_count == 7


def test_decode_twice_raises():
    decoder = _decoder(CUSTOMER_HEADER + CUSTOMER_ROW)
    list(decoder.decode())
    with pytest.raises(DecoderExhausted):
        decoder.decode()


def test_stream_is_left_open():
    stream = io.BytesIO((CUSTOMER_HEADER + CUSTOMER_ROW).encode())
    decoder = CsvDecoder(stream, template_for("customers"))
    list(decoder.decode())
    assert not stream.closed


def test_close_before_iteration_releases_stream():
    stream = io.BytesIO((CUSTOMER_HEADER + CUSTOMER_ROW).encode())
    decoder = CsvDecoder(stream, template_for("customers"))
    decoder.decode()
    decoder.close()
    assert not stream.closed


def test_invalid_utf8_in_rows_is_a_format_error():
    data = CUSTOMER_HEADER.encode() + b"CUST\xff\xfe,25,Female,NYC,$50k-$75k,2024-01-15,Fashion\n"
    with pytest.raises(FormatError):
        list(_decoder(data).decode())


# ─── count_rows ───────────────────────────────────────────────────────────────

def test_count_rows_skips_header_and_blank_lines():
    stream = io.BytesIO((CUSTOMER_HEADER + CUSTOMER_ROW + "\n" + CUSTOMER_ROW).encode())
    assert count_rows(stream) == 2
    assert stream.tell() == 0
    assert not stream.closed


def test_count_rows_of_header_only_file_is_zero():
    assert count_rows(io.BytesIO(CUSTOMER_HEADER.encode())) == 0


def test_count_rows_rejects_invalid_encoding():
    with pytest.raises(FormatError):
        count_rows(io.BytesIO(CUSTOMER_HEADER.encode() + b"\xff\xfe\xfa\n"))
