"""
Faculty Reporting Service
Blueprint registry and shared request helpers.
"""

from flask import jsonify, request

from faculty_reporting.utils.helpers import filter_value


def json_body() -> dict:
    """Request JSON as a dict; anything else (missing, list, invalid) is ``{}``."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def scope_args():
    """(stream, programType) query filters; missing or ``all`` → None."""
    return (
        filter_value(request.args.get("stream")),
        filter_value(request.args.get("programType")),
    )


def list_response(data: list, **extra):
    """Standard list envelope ``{success, data, total}``."""
    return jsonify({"success": True, "data": data, "total": len(data), **extra}), 200


def register_blueprints(app):
    from faculty_reporting.blueprints.auth_bp import auth_bp
    from faculty_reporting.blueprints.course_bp import course_bp
    from faculty_reporting.blueprints.health_bp import health_bp
    from faculty_reporting.blueprints.report_bp import report_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(course_bp)
    app.register_blueprint(report_bp)
