"""Tests for the HTTP surface."""

import pytest
from fastapi.testclient import TestClient

from menu_import.api.dependencies import get_storage
from menu_import.api.routes import imports
from menu_import.database import get_db
from menu_import.main import app
from tests.conftest import MERCHANT_ID, OTHER_MERCHANT_ID, STORE_ID

HEADERS = {"X-Merchant-Id": MERCHANT_ID}


@pytest.fixture
def client(seeded, session_factory, storage, mocker):
    def _db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _db
    app.dependency_overrides[get_storage] = lambda: storage
    background = mocker.patch.object(imports, "run_import_job", new=mocker.AsyncMock())
    client = TestClient(app)
    client.background = background
    yield client
    app.dependency_overrides.clear()


def _upload(client, headers=HEADERS, filename="menu.csv", content_type="text/csv"):
    return client.post(
        "/api/imports/upload",
        data={"store_id": STORE_ID},
        files={"file": (filename, b"name,price\nCola,2.50\n", content_type)},
        headers=headers,
    )


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_upload_creates_job_and_schedules_processing(client):
    response = _upload(client)

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "PROCESSING"
    client.background.assert_awaited_once_with(body["jobId"])


def test_upload_requires_merchant_header(client):
    assert _upload(client, headers={}).status_code == 401


def test_upload_rejects_unsupported_type(client):
    response = _upload(client, filename="menu.pdf", content_type="application/pdf")

    assert response.status_code == 400
    assert "Unsupported file type" in response.json()["detail"]
    client.background.assert_not_awaited()


def test_upload_to_foreign_store_is_forbidden(client):
    response = _upload(client, headers={"X-Merchant-Id": OTHER_MERCHANT_ID})

    assert response.status_code == 403


def test_job_status_round_trip(client):
    job_id = _upload(client).json()["jobId"]

    response = client.get(f"/api/imports/{job_id}", headers=HEADERS)

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == job_id
    assert body["storeId"] == STORE_ID
    assert body["originalFilename"] == "menu.csv"
    assert body["fileType"] == "csv"
    assert body["status"] == "PROCESSING"
    assert body["comparisonData"] is None


def test_unknown_job_is_404(client):
    assert client.get("/api/imports/missing", headers=HEADERS).status_code == 404


def test_apply_on_processing_job_is_rejected(client):
    job_id = _upload(client).json()["jobId"]

    response = client.post(
        f"/api/imports/{job_id}/apply",
        json={
            "storeId": STORE_ID,
            "selections": [{"type": "category", "extractedName": "Drinks", "action": "apply"}],
        },
        headers=HEADERS,
    )

    assert response.status_code == 400
    assert "not ready" in response.json()["detail"]
