"""
Faculty Reporting Service
Configuration classes for the Flask app factory.

Usage:
    config_name = os.getenv("APP_ENV", "development")
    app.config.from_object(config[config_name])
"""

import os
import secrets

basedir = os.path.abspath(os.path.dirname(os.path.dirname(__file__)))

# SQLite file for local development when DATABASE_URL is unset
_SQLITE_DEV = f"sqlite:///{os.path.join(basedir, 'instance', 'faculty_reporting_dev.db')}"
_SQLITE_TEST = "sqlite:///:memory:"

# Random key for development; production must use a stable env var
_DEV_SECRET = secrets.token_hex(32)


def _env_flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _database_url():
    raw = os.getenv("DATABASE_URL", "")
    # Heroku-style URLs; SQLAlchemy 2.0 requires postgresql://
    return raw.replace("postgres://", "postgresql://", 1) if raw else None


class Config:
    """Base configuration shared across all environments."""

    SECRET_KEY = os.getenv("SECRET_KEY", _DEV_SECRET)
    DEBUG = False
    TESTING = False

    # SQLAlchemy
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {"pool_pre_ping": True}

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL")
    LOG_FORMAT = os.getenv("LOG_FORMAT")

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")

    # Auth
    AUTH_AUTO_PROVISION = _env_flag("AUTH_AUTO_PROVISION", "true")
    BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))
    ROLE_HEADER = "X-User-Role"

    # Workflow: false accepts any feedback/escalation order
    WORKFLOW_STRICT_TRANSITIONS = _env_flag("WORKFLOW_STRICT_TRANSITIONS", "true")

    # Rate limiting (Flask-Limiter)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_AUTH = os.getenv("RATELIMIT_AUTH", "20 per minute")


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = _database_url() or _SQLITE_DEV


class TestingConfig(Config):
    """Testing environment configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", _SQLITE_TEST)
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    AUTH_AUTO_PROVISION = True
    WORKFLOW_STRICT_TRANSITIONS = True
    BCRYPT_ROUNDS = 4


class ProductionConfig(Config):
    """Production environment configuration."""

    DEBUG = False
    SQLALCHEMY_DATABASE_URI = _database_url()
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "")  # Must be set explicitly in production
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 300,
        "pool_timeout": 20,
    }

    def __init__(self):
        if not self.SQLALCHEMY_DATABASE_URI:
            raise RuntimeError("DATABASE_URL environment variable is required in production")
        if not os.getenv("SECRET_KEY"):
            raise RuntimeError("SECRET_KEY environment variable must be set in production")


# Configuration mapping: environment name -> config class
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}
