"""
Role decorators for route protection.

The caller's role comes from the ``X-User-Role`` header (the SPA stores the
role returned by login). There is no session or token behind it: this gates
the admin/PL-only operations against accidental use, not against a
determined client.

Usage:
    @bp.route("/api/reports/<int:report_id>", methods=["DELETE"])
    @require_role("admin")
    def delete_report(report_id):
        ...
"""

import functools
import logging

from flask import current_app, g, request

from faculty_reporting.core.exceptions import PermissionDeniedError

logger = logging.getLogger(__name__)


def current_role() -> str | None:
    header = current_app.config.get("ROLE_HEADER", "X-User-Role")
    role = request.headers.get(header, "").strip().lower()
    return role or None


def require_role(*roles: str):
    """Decorator: allow the request only when the caller's role is in ``roles``."""
    allowed = tuple(r.lower() for r in roles)

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            role = current_role()
            if role not in allowed:
                logger.warning("Role %r denied on %s", role, f.__name__)
                raise PermissionDeniedError(role, allowed)
            g.user_role = role
            return f(*args, **kwargs)
        return decorated
    return decorator
