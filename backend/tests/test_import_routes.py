"""HTTP tests for the /api/v1/import endpoints."""
import asyncio
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.core.config import settings
from app.core.deps import get_current_user, get_record_store
from app.db.session import get_session
from app.ingest.errors import ImportCancelled

CUSTOMER_HEADER = "customer_id,age,gender,location,income_range,registration_date,preferred_category\n"


# ─── Fixtures ─────────────────────────────────────────────────────────────────

class FakeUser:
    """Minimal user stub for dependency overrides."""

    def __init__(self):
        self.id = uuid.UUID("f96955d0-752f-4e0c-b1dc-d26d8dd1460e")
        self.email = "analyst@example.com"
        self.name = "Marketing Analyst"
        self.role = "ANALYST"
        self.is_active = True
        self.deleted_at = None


def make_mock_session():
    mock_session = MagicMock()
    mock_session.flush = AsyncMock()
    mock_session.commit = AsyncMock()
    return mock_session


@pytest.fixture
def overrides(memory_store):
    """Authenticated user, in-memory store and mocked session."""
    mock_session = make_mock_session()

    async def _session():
        yield mock_session

    async def _user():
        return FakeUser()

    async def _store():
        return memory_store

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_current_user] = _user
    app.dependency_overrides[get_record_store] = _store
    yield mock_session
    app.dependency_overrides.clear()


async def _upload(kind: str, body: str, filename: str = "data.csv"):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        return await client.post(
            f"/api/v1/import/{kind}",
            files={"file": (filename, body.encode("utf-8"), "text/csv")},
        )


# ─── GET /import/templates ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_templates_lists_every_kind():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/import/templates")
    assert response.status_code == 200
    data = response.json()
    assert list(data["templates"]) == ["customers", "purchases", "campaigns", "performance"]
    customers = data["templates"]["customers"]
    assert customers["required_headers"][0] == "customer_id"
    assert customers["data_types"]["age"] == "integer (18-100)"
    assert customers["example_row"] == "CUST00001,25,Female,New York,$50k-$75k,2024-01-15,Fashion"


@pytest.mark.asyncio
async def test_templates_guidelines_include_limits():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/import/templates")
    guidelines = response.json()["general_guidelines"]
    assert "Date format must be YYYY-MM-DD" in guidelines
    assert "Maximum file size: 10MB" in guidelines
    assert "Maximum rows per import: 10,000" in guidelines


# ─── GET /import/sample/{kind} ────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_sample_download():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/import/sample/campaigns")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert response.headers["content-disposition"] == 'attachment; filename="sample_campaigns.csv"'
    assert response.text.startswith("campaign_id,name,type,")


@pytest.mark.asyncio
async def test_sample_unknown_kind_returns_404():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        response = await client.get("/api/v1/import/sample/orders")
    assert response.status_code == 404


# ─── POST /import/{kind} ──────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_import_requires_auth():
    response = await _upload("customers", CUSTOMER_HEADER)
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_import_returns_report(overrides, memory_store):
    body = (
        CUSTOMER_HEADER
        + "CUST00001,25,Female,New York,$50k-$75k,2024-01-15,Fashion\n"
        + "CUST1,abc,Female,NYC,$50k-$75k,2024-01-15,Fashion\n"
    )
    response = await _upload("customers", body)

    assert response.status_code == 200
    assert response.json() == {
        "kind": "customers",
        "total_rows": 2,
        "success_count": 1,
        "imported": 1,
        "errors": ["Row 3: age: invalid integer 'abc' (expected integer (18-100))"],
    }
    assert len(memory_store.persisted) == 1


@pytest.mark.asyncio
async def test_import_writes_audit_entry(overrides):
    body = CUSTOMER_HEADER + "CUST00001,25,Female,New York,$50k-$75k,2024-01-15,Fashion\n"
    await _upload("customers", body)

    entry = overrides.add.call_args.args[0]
    assert entry.action == "import.completed"
    assert entry.entity_type == "customers"
    assert '"imported": 1' in entry.after_state
    overrides.commit.assert_awaited()


@pytest.mark.asyncio
async def test_import_bad_header_returns_400(overrides):
    response = await _upload("customers", "foo,bar\n1,2\n")
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "FormatError"
    assert "Expected: customer_id" in data["detail"]


@pytest.mark.asyncio
async def test_import_non_csv_filename_returns_400(overrides):
    response = await _upload("customers", CUSTOMER_HEADER, filename="data.xlsx")
    assert response.status_code == 400
    assert response.json()["detail"] == "File must be a CSV"


@pytest.mark.asyncio
async def test_import_unknown_kind_returns_404(overrides):
    response = await _upload("orders", CUSTOMER_HEADER)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_import_too_large_returns_413(overrides, monkeypatch):
    monkeypatch.setattr(settings, "IMPORT_MAX_FILE_BYTES", 16)
    response = await _upload("customers", CUSTOMER_HEADER + "CUST00001,25,Female,NYC,$50k-$75k,2024-01-15,Fashion\n")
    assert response.status_code == 413
    assert response.json()["error"] == "TooLarge"


@pytest.mark.asyncio
async def test_import_too_many_rows_returns_422(overrides, monkeypatch, memory_store):
    monkeypatch.setattr(settings, "IMPORT_MAX_ROWS", 2)
    row = "CUST{:05d},25,Female,NYC,$50k-$75k,2024-01-15,Fashion\n"
    response = await _upload("customers", CUSTOMER_HEADER + "".join(row.format(i) for i in range(3)))
    assert response.status_code == 422
    assert response.json()["error"] == "TooManyRows"
    assert memory_store.persisted == []


@pytest.mark.asyncio
async def test_import_cancelled_returns_499(overrides):
    with patch("app.api.v1.import_routes.BatchImporter.run", AsyncMock(side_effect=ImportCancelled("gone"))):
        response = await _upload("customers", CUSTOMER_HEADER)
    assert response.status_code == 499
    assert response.json() == {"detail": "Import cancelled"}


# ─── Disconnect watcher ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_disconnect_sets_cancel_event(monkeypatch):
    from app.api.v1.import_routes import _watch_disconnect

    monkeypatch.setattr(settings, "IMPORT_DISCONNECT_POLL_SECONDS", 0)
    request = MagicMock()
    request.is_disconnected = AsyncMock(side_effect=[False, False, True])
    cancel = asyncio.Event()

    await asyncio.wait_for(_watch_disconnect(request, cancel), timeout=1)

    assert cancel.is_set()
    assert request.is_disconnected.await_count == 3
