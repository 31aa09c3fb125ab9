"""
Faculty Reporting Service
Flask application factory.

Usage:
    from faculty_reporting import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

from flask import Flask
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy.exc import SQLAlchemyError

from faculty_reporting.config import config
from faculty_reporting.models import db
from faculty_reporting.middleware.logging_config import configure_logging
from faculty_reporting.middleware.timing import init_request_timing
from faculty_reporting.middleware.rate_limiter import init_rate_limits

logger = logging.getLogger(__name__)

migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],  # no global limit, applied per blueprint
)


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: "development", "testing" or "production".
                     Defaults to the APP_ENV env var, or "development".

    Raises:
        RuntimeError: the database cannot be reached at startup.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    cfg = config[config_name]
    # ProductionConfig validates required env vars on instantiation
    app.config.from_object(cfg() if config_name == "production" else cfg)

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins and cors_origins != "*":
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])
    else:
        CORS(app)

    init_request_timing(app)

    # ── Models (registered on db.metadata for create_all / Alembic) ─────
    from faculty_reporting.models import auth as _auth_models      # noqa: F401
    from faculty_reporting.models import course as _course_models  # noqa: F401
    from faculty_reporting.models import report as _report_models  # noqa: F401

    db_uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if db_uri.startswith("sqlite:///") and ":memory:" not in db_uri:
        os.makedirs(os.path.dirname(db_uri[len("sqlite:///"):]) or ".", exist_ok=True)

    with app.app_context():
        try:
            db.create_all()
        except SQLAlchemyError as exc:
            logger.critical("Database unavailable at startup: %s", exc)
            raise RuntimeError(f"Database unavailable: {exc}") from exc
        app.logger.info("Database ready (%s)", db.engine.url.render_as_string(hide_password=True))

    # ── Error handlers, blueprints, CLI ──────────────────────────────────
    from faculty_reporting.blueprints import register_blueprints
    from faculty_reporting.cli import register_cli
    from faculty_reporting.utils.errors import register_error_handlers

    register_error_handlers(app)
    register_blueprints(app)
    init_rate_limits(app, limiter)
    register_cli(app)

    return app
