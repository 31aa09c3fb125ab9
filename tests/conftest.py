"""
Shared pytest fixtures for the faculty reporting test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - course: Pre-created DB101 course for the IT degree stream
"""

import pytest

from faculty_reporting import create_app
from faculty_reporting.models import db as _db


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture()
def strict_off(app):
    """Disable strict workflow transitions for one test."""
    app.config["WORKFLOW_STRICT_TRANSITIONS"] = False
    yield
    app.config["WORKFLOW_STRICT_TRANSITIONS"] = True


# ── Convenience fixtures ─────────────────────────────────────────────────


@pytest.fixture()
def course(client):
    """Create and return the DB101 course via the API."""
    res = client.post("/api/courses", json={
        "name": "Databases",
        "code": "DB101",
        "lecturer": "Dr. Molefe",
        "programType": "degree",
        "stream": "IT",
    })
    assert res.status_code == 201
    return res.get_json()["course"]
