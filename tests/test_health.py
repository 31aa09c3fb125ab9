"""
Tests: health endpoint, request timing headers and app factory behaviour.
"""

import importlib
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import OperationalError

from faculty_reporting import create_app


class TestHealth:
    def test_health_reports_counts(self, client):
        client.post("/api/auth/login", json={"username": "newbie", "password": "pw"})
        res = client.get("/api/health")
        assert res.status_code == 200
        body = res.get_json()
        assert body["success"] is True
        assert body["timestamp"]
        assert body["counts"] == {"reports": 0, "users": 1, "courses": 0}

    def test_health_database_failure(self, client, monkeypatch):
        class _BrokenSession:
            def query(self, *args):
                raise OperationalError("SELECT 1", {}, Exception("db down"))

            def rollback(self):
                pass

        health_module = importlib.import_module("faculty_reporting.blueprints.health_bp")
        monkeypatch.setattr(health_module, "db", SimpleNamespace(session=_BrokenSession()))
        res = client.get("/api/health")
        assert res.status_code == 500
        assert res.get_json() == {"success": False, "error": "Database connection failed"}


class TestRequestTiming:
    def test_headers_present(self, client):
        res = client.get("/api/reports/detailed")
        assert res.headers.get("X-Request-ID")
        assert float(res.headers["X-Request-Duration-Ms"]) >= 0

    def test_request_id_is_propagated(self, client):
        res = client.get("/api/reports/detailed", headers={"X-Request-ID": "abc123"})
        assert res.headers["X-Request-ID"] == "abc123"


class TestAppFactory:
    def test_testing_config(self, app):
        assert app.config["TESTING"] is True
        assert app.config["SQLALCHEMY_DATABASE_URI"] == "sqlite:///:memory:"
        assert app.config["RATELIMIT_ENABLED"] is False

    def test_blueprints_registered(self, app):
        assert {"health", "auth", "courses", "reports"} <= set(app.blueprints)

    def test_unreachable_database_is_fatal(self, monkeypatch, tmp_path):
        from faculty_reporting.config import TestingConfig

        # A directory cannot be opened as a SQLite database file
        monkeypatch.setattr(TestingConfig, "SQLALCHEMY_DATABASE_URI", f"sqlite:///{tmp_path}")
        with pytest.raises(RuntimeError, match="Database unavailable"):
            create_app("testing")
