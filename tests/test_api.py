"""Tests for the export API endpoints."""

import sqlite3

import pytest
from fastapi.testclient import TestClient

from api.main import app
from scripts.init_db import create_database

API_KEY = "test-key"


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "calendar-exports.db"
    create_database(path)
    monkeypatch.setattr("api.logging.DB_PATH", path)
    monkeypatch.setattr("api.routes.health.DB_PATH", path)
    return path


@pytest.fixture
def client(db_path, monkeypatch):
    monkeypatch.setattr("api.dependencies.EXPORT_API_KEY", API_KEY)
    return TestClient(app)


@pytest.fixture
def headers():
    return {"X-API-Key": API_KEY}


def _logged_requests(db_path):
    conn = sqlite3.connect(db_path)
    try:
        return conn.execute(
            "SELECT endpoint, export_type, period_label, status_code, error_code, event_count, page_count "
            "FROM api_requests"
        ).fetchall()
    finally:
        conn.close()


# =============================================================================
# HEALTH
# =============================================================================


def test_health_ok(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_health_unhealthy_without_database(client, tmp_path, monkeypatch):
    monkeypatch.setattr("api.routes.health.DB_PATH", tmp_path / "missing.db")

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["request_log_available"] is False


# =============================================================================
# AUTH
# =============================================================================


def test_wrong_api_key_rejected(client, month_payload):
    response = client.post(
        "/v1/exports/visual",
        json={"year": 2025, "month_index": 2, "payload": month_payload},
        headers={"X-API-Key": "nope"},
    )

    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "UNAUTHORIZED"


def test_missing_api_key_rejected(client):
    response = client.post("/v1/exports/visual", json={"year": 2025, "month_index": 2})
    assert response.status_code == 422


# =============================================================================
# EXPORTS
# =============================================================================


def test_visual_export(client, headers, month_payload, db_path):
    response = client.post(
        "/v1/exports/visual",
        json={"year": 2025, "month_index": 2, "payload": month_payload},
        headers=headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="calendar-march-2025.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")

    [row] = _logged_requests(db_path)
    assert row[:5] == ("/v1/exports/visual", "visual", "March 2025", 200, None)
    assert row[5] == 25
    assert row[6] == 1


def test_workbook_export_with_filters(client, headers, month_payload):
    response = client.post(
        "/v1/exports/workbook",
        json={
            "year": 2025,
            "month_index": 2,
            "organization_name": "BTSC",
            "filters": {"category": "Blood Drive"},
            "payload": month_payload,
        },
        headers=headers,
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert 'filename="calendar-march-2025.xlsx"' in response.headers["content-disposition"]


def test_organized_export_limits_period(client, headers, month_payload, db_path):
    response = client.post(
        "/v1/exports/organized",
        json={
            "label": "March 1-7, 2025",
            "filename": "week-1",
            "start_date": "2025-03-01",
            "end_date": "2025-03-07",
            "payload": month_payload,
        },
        headers=headers,
    )

    assert response.status_code == 200
    assert 'filename="week-1.pdf"' in response.headers["content-disposition"]

    in_period = sum(
        len(records) for key, records in month_payload["data"].items() if "2025-03-01" <= key <= "2025-03-07"
    )
    [row] = _logged_requests(db_path)
    assert row[5] == in_period


def test_invalid_month_index_rejected(client, headers):
    response = client.post("/v1/exports/visual", json={"year": 2025, "month_index": 12}, headers=headers)
    assert response.status_code == 422


def test_invalid_filename_rejected(client, headers):
    response = client.post(
        "/v1/exports/organized",
        json={"label": "March 2025", "filename": "../escape"},
        headers=headers,
    )
    assert response.status_code == 422


def test_unnormalizable_payload_is_validation_error(client, headers, monkeypatch, db_path):
    monkeypatch.setattr("api.routes.exports.normalize_events", lambda payload: payload)

    response = client.post(
        "/v1/exports/visual",
        json={"year": 2025, "month_index": 2, "payload": ["raw"]},
        headers=headers,
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
    [row] = _logged_requests(db_path)
    assert row[3:5] == (422, "VALIDATION_ERROR")


def test_date_keyed_fallback_payload_is_validation_error(client, headers, monkeypatch, db_path):
    # normalize_events hands back a mapping unmodified on a systemic failure
    monkeypatch.setattr("api.routes.exports.normalize_events", lambda payload: payload)

    response = client.post(
        "/v1/exports/visual",
        json={"year": 2025, "month_index": 2, "payload": {"2025-03-15": [{"Event_ID": "E1"}]}},
        headers=headers,
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"
    [row] = _logged_requests(db_path)
    assert row[3:5] == (422, "VALIDATION_ERROR")


def test_render_failure_is_export_failed(client, headers, monkeypatch, db_path):
    def explode(*args, **kwargs):
        raise RuntimeError("renderer crashed")

    monkeypatch.setattr("api.routes.exports.render_visual_pdf", explode)

    response = client.post(
        "/v1/exports/visual",
        json={"year": 2025, "month_index": 2, "payload": {}},
        headers=headers,
    )

    assert response.status_code == 500
    body = response.json()["detail"]
    assert body["code"] == "EXPORT_FAILED"
    assert body["details"] == ["renderer crashed"]
    [row] = _logged_requests(db_path)
    assert row[3:5] == (500, "EXPORT_FAILED")
