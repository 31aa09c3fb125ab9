"""
Health check blueprint.

Endpoints:
    GET /api/health : store connectivity and record counts
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from faculty_reporting.models import db
from faculty_reporting.models.auth import User
from faculty_reporting.models.course import Course
from faculty_reporting.models.report import Report

logger = logging.getLogger(__name__)

health_bp = Blueprint("health", __name__, url_prefix="/api/health")


@health_bp.route("", methods=["GET"])
def health():
    try:
        counts = {
            "reports": db.session.query(Report.id).count(),
            "users": db.session.query(User.id).count(),
            "courses": db.session.query(Course.id).count(),
        }
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.error("Health check: database failed: %s", exc)
        return jsonify({"success": False, "error": "Database connection failed"}), 500

    return jsonify({
        "success": True,
        "message": "Faculty reporting API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "counts": counts,
    }), 200
