"""
Rate limiting: applies per-blueprint limits with Flask-Limiter.

The Limiter instance is created in ``faculty_reporting/__init__.py`` with no
default limits; only the auth endpoints (login / register) are limited.
Rate limiting is disabled in testing mode.
"""

import logging

logger = logging.getLogger(__name__)


def init_rate_limits(app, limiter):
    """Attach ``RATELIMIT_AUTH`` to the auth blueprint and exempt health."""
    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    auth_limit = app.config.get("RATELIMIT_AUTH", "20 per minute")
    bp = app.blueprints.get("auth")
    if bp:
        limiter.limit(auth_limit)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: auth=%s", auth_limit)
