"""Standardised API error responses.

Usage
-----
    from faculty_reporting.utils.errors import api_error, E

    return api_error(E.NOT_FOUND, "Report not found")
    return api_error(E.VALIDATION_REQUIRED, "stream and programType are required")

Service exceptions (``core.exceptions``) never reach the views as raw
tracebacks: ``register_error_handlers`` converts them once, app-wide.
"""

from __future__ import annotations

import logging

from flask import jsonify, request
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from faculty_reporting.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    TransitionError,
    ValidationError,
)

logger = logging.getLogger(__name__)


# ── Error code constants ──────────────────────────────────────────────
class E:
    """Machine-readable error code constants."""

    # Validation – HTTP 400
    VALIDATION_REQUIRED = "ERR_VALIDATION_REQUIRED"
    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"

    # Auth – HTTP 401 / 403
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"

    # Not-found – HTTP 404
    NOT_FOUND = "ERR_NOT_FOUND"

    # Conflict – HTTP 409
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"

    # Server – HTTP 500
    DATABASE = "ERR_DATABASE"
    INTERNAL = "ERR_INTERNAL"


# ── Default HTTP status mapping ───────────────────────────────────────
_DEFAULT_STATUS: dict[str, int] = {
    E.VALIDATION_REQUIRED: 400,
    E.VALIDATION_INVALID: 400,
    E.UNAUTHORIZED: 401,
    E.FORBIDDEN: 403,
    E.NOT_FOUND: 404,
    E.CONFLICT_DUPLICATE: 409,
    E.CONFLICT_STATE: 409,
    E.DATABASE: 500,
    E.INTERNAL: 500,
}


def api_error(
    code: str,
    message: str,
    *,
    status: int | None = None,
    details: dict | None = None,
):
    """Return a standard JSON error response.

    Parameters
    ----------
    code : str
        Machine-readable error code (use ``E.*`` constants).
    message : str
        Human-readable explanation for the UI.
    status : int, optional
        HTTP status override.  Falls back to ``_DEFAULT_STATUS[code]``,
        then to ``400``.
    details : dict, optional
        Extra structured payload (field errors, valid values, ...).

    Returns
    -------
    tuple[Response, int]
        ``(jsonify(body), http_status)`` – drop-in for Flask views.
    """

    http_status = status or _DEFAULT_STATUS.get(code, 400)

    body: dict = {
        "success": False,
        "error": message,
        "code": code,
    }
    if details:
        body["details"] = details

    return jsonify(body), http_status


def register_error_handlers(app):
    """Map service exceptions and HTTP errors onto the JSON error envelope."""

    @app.errorhandler(NotFoundError)
    def _handle_not_found(error: NotFoundError):
        logger.info("Not found: %s", error)
        return api_error(E.NOT_FOUND, error.public_message)

    @app.errorhandler(ValidationError)
    def _handle_validation(error: ValidationError):
        return api_error(E.VALIDATION_INVALID, str(error), details=error.details)

    @app.errorhandler(ConflictError)
    def _handle_conflict(error: ConflictError):
        return api_error(E.CONFLICT_DUPLICATE, str(error))

    @app.errorhandler(TransitionError)
    def _handle_transition(error: TransitionError):
        logger.warning("Rejected transition: %s", error)
        return api_error(
            E.CONFLICT_STATE,
            str(error),
            details={"action": error.action, "status": error.current_status},
        )

    @app.errorhandler(AuthenticationError)
    def _handle_unauthorized(error: AuthenticationError):
        logger.info("Authentication failed on %s", request.path)
        return api_error(E.UNAUTHORIZED, str(error))

    @app.errorhandler(PermissionDeniedError)
    def _handle_forbidden(error: PermissionDeniedError):
        logger.warning("Permission denied on %s: %s", request.path, error)
        return api_error(E.FORBIDDEN, str(error))

    @app.errorhandler(SQLAlchemyError)
    def _handle_database(error: SQLAlchemyError):
        from faculty_reporting.models import db

        db.session.rollback()
        logger.exception("Database error on %s %s", request.method, request.path)
        return api_error(E.DATABASE, "Database error")

    @app.errorhandler(HTTPException)
    def _handle_http(error: HTTPException):
        if error.code == 404:
            return api_error(E.NOT_FOUND, "Not found", details={"path": request.path})
        return api_error(
            E.INTERNAL if (error.code or 500) >= 500 else E.VALIDATION_INVALID,
            error.description or error.name,
            status=error.code,
        )

    @app.errorhandler(Exception)
    def _handle_unexpected(error: Exception):
        logger.exception("Unexpected error endpoint=%s", request.endpoint)
        return api_error(E.INTERNAL, "Internal server error")
