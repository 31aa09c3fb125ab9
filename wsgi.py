"""
WSGI and Flask-Migrate / Alembic entry point.

Usage:
    gunicorn wsgi:app
    flask db init       # first time only (creates migrations/)
    flask db migrate -m "description"
    flask db upgrade
    flask import-legacy-json backend/data
"""

from faculty_reporting import create_app

app = create_app()
