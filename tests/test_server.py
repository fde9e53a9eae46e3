"""
Tests for the FastAPI surface.

Run: pytest tests/test_server.py -v
"""

import importlib
import logging

import pytest
from fastapi.testclient import TestClient

from eco_backend.waste_diversion import server
from eco_backend.waste_diversion.repository import InMemoryWasteRecordRepository, RecordSourceError


@pytest.fixture
def client(monkeypatch, sample_records):
    monkeypatch.setattr(server, "repository", InMemoryWasteRecordRepository(sample_records))
    return TestClient(server.app)


@pytest.fixture
def unconfigured_client(monkeypatch):
    monkeypatch.setattr(server, "repository", None)
    return TestClient(server.app)


class _FailingRepository:
    def load(self, filters=None):
        raise RecordSourceError("database down")


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestDashboardEndpoint:
    def test_from_repository(self, client):
        response = client.post("/dashboard", json={"school": "oak hill elementary", "window_months": 2})

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "database"
        assert [point["key"] for point in body["data"]["impact"]["trend"]] == ["2025-09", "2025-10"]
        assert body["data"]["leaderboard"][0]["school"] == "Barton Creek Middle"

    def test_inline_records(self, unconfigured_client):
        payload = {
            "records": [
                {"school": "A", "district": "D", "year": 2025, "month": 9, "enrollment": 100,
                 "recycle_lbs": "1,000", "compost_lbs": "500"},
                {"school": "B", "district": "D", "year": 2025, "month": 9, "enrollment": 100,
                 "recycle_lbs": 100, "compost_lbs": None},
            ]
        }

        response = unconfigured_client.post("/dashboard", json=payload)

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "inline"
        assert [(entry["school"], entry["score"]) for entry in body["data"]["leaderboard"]] == [
            ("A", 15.0),
            ("B", 1.0),
        ]
        assert body["data"]["impact"] is None

    def test_unknown_school_is_404(self, client):
        response = client.post("/dashboard", json={"school": "Nowhere Academy"})
        assert response.status_code == 404

    def test_blank_school_is_rejected(self, client):
        response = client.post("/dashboard", json={"school": "   "})
        assert response.status_code == 422

    def test_invalid_month_is_rejected(self, unconfigured_client):
        payload = {"records": [{"school": "A", "year": 2025, "month": 13}]}
        response = unconfigured_client.post("/dashboard", json=payload)
        assert response.status_code == 422

    def test_no_records_is_400(self, unconfigured_client):
        response = unconfigured_client.post("/dashboard", json={"records": []})
        assert response.status_code == 400

    def test_no_source_is_500(self, unconfigured_client):
        response = unconfigured_client.post("/dashboard", json={})
        assert response.status_code == 500

    def test_source_failure_is_502(self, monkeypatch):
        monkeypatch.setattr(server, "repository", _FailingRepository())
        response = TestClient(server.app).post("/dashboard", json={})
        assert response.status_code == 502


class TestReadEndpoints:
    def test_leaderboard(self, client):
        response = client.get("/leaderboard", params={"limit": 2})

        assert response.status_code == 200
        assert [entry["rank"] for entry in response.json()] == [1, 2]

    def test_school_impact(self, client):
        response = client.get("/schools/Oak Hill Elementary/impact", params={"window": 1})

        assert response.status_code == 200
        body = response.json()
        assert body["school"] == "Oak Hill Elementary"
        assert body["trend"][0]["label"] == "Oct 2025"
        assert body["allTimeKpis"]["totalDivertedLbs"] == 1695
        assert body["leaderboardEntry"]["rank"] == 2

    def test_school_impact_unknown(self, client):
        response = client.get("/schools/Nowhere/impact")
        assert response.status_code == 404

    def test_directory(self, client):
        response = client.get("/directory")

        assert response.status_code == 200
        assert response.json()["Pflugerville ISD"] == ["Pflugerville High"]

    def test_directory_for_one_district(self, client):
        response = client.get("/directory", params={"district": "Pflugerville ISD"})
        assert response.json() == {"Pflugerville ISD": ["Pflugerville High"]}


class TestLoggingLifespan:
    def test_import_leaves_root_logger_alone_until_startup(self):
        root = logging.getLogger()
        before = list(root.handlers)
        for handler in before:
            if getattr(handler, "_waste_diversion", False):
                root.removeHandler(handler)
        try:
            importlib.reload(server)
            assert not any(getattr(handler, "_waste_diversion", False) for handler in root.handlers)

            with TestClient(server.app) as started:
                started.get("/health")
                assert any(getattr(handler, "_waste_diversion", False) for handler in root.handlers)
        finally:
            for handler in list(root.handlers):
                if getattr(handler, "_waste_diversion", False) and handler not in before:
                    root.removeHandler(handler)
            for handler in before:
                if handler not in root.handlers:
                    root.addHandler(handler)
