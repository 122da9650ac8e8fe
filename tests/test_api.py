"""
Tests for the HTTP API.

Validates:
- KPI, period, view and chart endpoints serve the cached report
- Unknown views are 404, unreadable sources are 503, other failures are 500
- Settings posted with a request are clamped before the report is built
"""

import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from sales_core.errors import SourceDataError
from sales_core.report import build_report
from sales_core.settings import ReportSettings


@pytest.fixture
def client(monkeypatch, scenario_report):
    monkeypatch.setattr(api_main, "load_report", lambda settings=None: scenario_report)
    return TestClient(api_main.app)


@pytest.fixture
def broken_client(monkeypatch):
    def _fail(settings=None):
        raise SourceDataError("Sales export not found: data/ventas.xlsx")

    monkeypatch.setattr(api_main, "load_report", _fail)
    return TestClient(api_main.app)


class TestEndpoints:
    """Test suite for the happy path."""

    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}

    def test_kpis(self, client):
        body = client.get("/kpis").json()
        assert body["kpis"]["gross_value"] == 350.0
        assert body["kpis"]["record_count"] == 3
        assert "$350.00" in body["text"]

    def test_period(self, client):
        body = client.get("/period").json()
        assert body == {"available": True, "start": "2024-01-05", "end": "2024-02-01", "label": "2024-01-05 a 2024-02-01"}

    def test_views(self, client):
        body = client.get("/views").json()
        assert len(body["views"]) == 14
        assert body["unavailable"] == ["unit_price_histogram"]

    def test_single_view(self, client):
        body = client.get("/views/monthly_trend").json()
        assert body["categories"] == ["2024-01", "2024-02"]
        assert body["values"] == [150.0, 200.0]

    def test_unknown_view(self, client):
        resp = client.get("/views/nope")
        assert resp.status_code == 404
        assert resp.json()["type"] == "KeyError"

    def test_chart(self, client):
        body = client.get("/charts/top_dates_by_value").json()
        assert body["available"] is True
        assert body["spec"]["mark"]["type"] == "bar"

    def test_unavailable_chart(self, client):
        body = client.get("/charts/unit_price_histogram").json()
        assert body["available"] is False
        assert body["spec"] is None
        assert body["message"]

    def test_report(self, client):
        body = client.get("/report").json()
        assert body["record_count"] == 3
        assert set(body["views"]) == set(api_main.load_report().views)


@pytest.mark.parametrize("path", ["/kpis", "/period", "/views", "/views/monthly_trend", "/charts/monthly_trend", "/report"])
def test_source_errors_are_503(broken_client, path):
    resp = broken_client.get(path)
    assert resp.status_code == 503
    assert resp.json()["type"] == "SourceDataError"


class TestSettingsBody:
    """Test suite for POST endpoints that accept report settings."""

    @pytest.fixture
    def seen(self, monkeypatch, scenario_rows):
        calls = []

        def _load(settings=None):
            calls.append(settings)
            return build_report(scenario_rows, settings)

        monkeypatch.setattr(api_main, "load_report", _load)
        return calls

    def test_view_settings_are_normalized(self, seen):
        resp = TestClient(api_main.app).post("/views/top_dates_by_value", json={"top_dates": 1, "top_days": 0})
        assert resp.status_code == 200
        assert resp.json()["categories"] == ["2024-02-01"]
        assert seen[-1].top_dates == 1
        assert seen[-1].top_days == 1
        assert seen[-1].histogram_bins == 30

    def test_report_with_empty_body_uses_defaults(self, seen):
        resp = TestClient(api_main.app).post("/report", json={})
        assert resp.status_code == 200
        assert seen[-1] == ReportSettings()

    def test_unknown_view(self, seen):
        assert TestClient(api_main.app).post("/views/nope", json={}).status_code == 404


def test_internal_key_error_is_500(monkeypatch):
    def _broken(settings=None):
        raise KeyError("Total (MXN)")

    monkeypatch.setattr(api_main, "load_report", _broken)
    client = TestClient(api_main.app)
    for path in ("/views/monthly_trend", "/charts/monthly_trend"):
        resp = client.get(path)
        assert resp.status_code == 500
        assert resp.json()["type"] == "KeyError"
