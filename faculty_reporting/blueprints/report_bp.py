"""
Report blueprint: submission, role views, feedback, escalation and export.

Endpoints (all under /api):
    POST   /reports/student | /reports/lecturer | /reports/prl  : submit
    GET    /reports/student?programType                         : student + rating reports
    GET    /reports/lecturer?programType&lecturerName           : lecturer reports
    GET    /reports/prl?stream&programType                      : every report of a stream
    GET    /reports/pl?programType                              : reports escalated to the PL
    GET    /reports/grouped?stream&programType                  : four buckets + counts
    GET    /reports/prl-specific?stream&programType             : PRL reports only
    GET    /reports/detailed?programType                        : every report of a program
    GET    /reports/all?stream&programType                      : grouped + total
    GET    /reports/<id>                                        : one report
    PUT    /reports/<id>                                        : edit content fields
    DELETE /reports/<id>                                        : admin only
    POST   /reports/<id>/feedback | rating-feedback | pl-feedback
    POST   /reports/group/submit                                : bulk escalate to PL
    POST   /reports/compile                                     : grouped + summary
    POST   /reports/by-courses                                  : reports for course codes
    GET    /reports/prl/assigned-courses?stream&programType
    GET    /prl/dashboard?stream&programType
    GET    /reports/export/<view>?format=csv|xlsx               : pl / prl / lecturer
"""

import logging
from datetime import datetime, timezone

from flask import Blueprint, Response, jsonify, request

from faculty_reporting.blueprints import json_body, list_response, scope_args
from faculty_reporting.core.exceptions import ValidationError
from faculty_reporting.middleware.permission_required import require_role
from faculty_reporting.services import export_service, report_service
from faculty_reporting.services import report_workflow as wf
from faculty_reporting.utils.helpers import filter_value

logger = logging.getLogger(__name__)

report_bp = Blueprint("reports", __name__, url_prefix="/api")

FEEDBACK_ROUTES = {
    "feedback": ("line", "Feedback submitted successfully"),
    "rating-feedback": ("rating", "Rating feedback submitted successfully"),
    "pl-feedback": ("pl", "PL feedback submitted successfully"),
}


def _status_arg():
    return filter_value(request.args.get("status"))


# ── Submission ───────────────────────────────────────────────────────────────


def _created(endpoint, label):
    report = report_service.create_report(json_body(), endpoint)
    return jsonify({
        "success": True,
        "message": f"{label} report submitted successfully",
        "report": report,
    }), 201


@report_bp.route("/reports/student", methods=["POST"])
def submit_student_report():
    return _created("student", "Student")


@report_bp.route("/reports/lecturer", methods=["POST"])
def submit_lecturer_report():
    return _created("lecturer", "Lecturer")


@report_bp.route("/reports/prl", methods=["POST"])
def submit_prl_report():
    return _created("prl", "PRL")


# ── Role views ───────────────────────────────────────────────────────────────


@report_bp.route("/reports/student", methods=["GET"])
def student_reports():
    _, program_type = scope_args()
    return list_response(report_service.list_student_reports(program_type, status=_status_arg()))


@report_bp.route("/reports/lecturer", methods=["GET"])
def lecturer_reports():
    _, program_type = scope_args()
    return list_response(report_service.list_lecturer_reports(
        program_type,
        lecturer_name=filter_value(request.args.get("lecturerName")),
        status=_status_arg(),
    ))


@report_bp.route("/reports/prl", methods=["GET"])
def prl_reports():
    stream, program_type = scope_args()
    return list_response(
        report_service.list_stream_reports(stream, program_type, status=_status_arg())
    )


@report_bp.route("/reports/pl", methods=["GET"])
def pl_reports():
    _, program_type = scope_args()
    return list_response(report_service.list_pl_reports(program_type, status=_status_arg()))


@report_bp.route("/reports/grouped", methods=["GET"])
def grouped_reports():
    stream, program_type = scope_args()
    grouped = report_service.grouped_reports(stream, program_type)
    return jsonify({"success": True, **grouped, "counts": wf.bucket_counts(grouped)}), 200


@report_bp.route("/reports/prl-specific", methods=["GET"])
def prl_specific_reports():
    stream, program_type = scope_args()
    return list_response(report_service.list_prl_reports(stream, program_type))


@report_bp.route("/reports/detailed", methods=["GET"])
def detailed_reports():
    _, program_type = scope_args()
    return list_response(report_service.list_reports(program_type=program_type))


@report_bp.route("/reports/all", methods=["GET"])
def all_reports():
    stream, program_type = scope_args()
    grouped = report_service.grouped_reports(stream, program_type)
    total = sum(wf.bucket_counts(grouped).values())
    return jsonify({"success": True, "data": grouped, "total": total}), 200


@report_bp.route("/reports/by-courses", methods=["POST"])
def reports_by_courses():
    body = json_body()
    codes = body.get("courseCodes") or []
    if not isinstance(codes, list):
        raise ValidationError("courseCodes must be a list", details={"courseCodes": "invalid"})
    program_type = filter_value(body.get("programType") or request.args.get("programType"))
    return list_response(report_service.reports_by_courses(codes, program_type))


@report_bp.route("/reports/prl/assigned-courses", methods=["GET"])
def assigned_course_reports():
    stream, program_type = scope_args()
    result = report_service.assigned_course_reports(stream, program_type)
    return jsonify({"success": True, **result}), 200


@report_bp.route("/prl/dashboard", methods=["GET"])
def prl_dashboard():
    stream, program_type = scope_args()
    return jsonify({"success": True, "data": report_service.prl_dashboard(stream, program_type)}), 200


# ── Single report ────────────────────────────────────────────────────────────


@report_bp.route("/reports/<int:report_id>", methods=["GET"])
def get_report(report_id):
    return jsonify({"success": True, "report": report_service.get_report(report_id)}), 200


@report_bp.route("/reports/<int:report_id>", methods=["PUT"])
def update_report(report_id):
    report = report_service.update_report(report_id, json_body())
    return jsonify({"success": True, "message": "Report updated successfully", "report": report}), 200


@report_bp.route("/reports/<int:report_id>", methods=["DELETE"])
@require_role("admin")
def delete_report(report_id):
    report_service.delete_report(report_id)
    return jsonify({"success": True, "message": "Report deleted successfully"}), 200


# ── Feedback ─────────────────────────────────────────────────────────────────


def _feedback(report_id, route):
    reviewer, message = FEEDBACK_ROUTES[route]
    report = report_service.add_feedback(report_id, reviewer, json_body().get("feedback"))
    return jsonify({"success": True, "message": message, "report": report}), 200


@report_bp.route("/reports/<report_id>/feedback", methods=["POST"])
def add_feedback(report_id):
    return _feedback(report_id, "feedback")


@report_bp.route("/reports/<report_id>/rating-feedback", methods=["POST"])
def add_rating_feedback(report_id):
    return _feedback(report_id, "rating-feedback")


@report_bp.route("/reports/<report_id>/pl-feedback", methods=["POST"])
def add_pl_feedback(report_id):
    return _feedback(report_id, "pl-feedback")


# ── Escalation & compile ─────────────────────────────────────────────────────


@report_bp.route("/reports/group/submit", methods=["POST"])
def submit_group_to_pl():
    body = json_body()
    result = report_service.submit_to_pl(
        filter_value(body.get("stream")),
        filter_value(body.get("programType")),
        body.get("selectedReports"),
    )
    payload = {
        "success": True,
        "message": f"Successfully submitted {result['submittedCount']} reports to Program Leader",
        "submittedCount": result["submittedCount"],
        "alreadySubmittedCount": result["alreadySubmittedCount"],
        "notFoundCount": result["notFoundCount"],
        "rejectedCount": result["rejectedCount"],
        "totalSelected": result["totalSelected"],
        "submittedIds": result["submittedIds"],
    }
    if result["errors"]:
        payload["errors"] = result["errors"]
    return jsonify(payload), 200


@report_bp.route("/reports/compile", methods=["POST"])
def compile_reports():
    program_type = filter_value(json_body().get("programType"))
    compiled = report_service.compile_reports(program_type)
    return jsonify({
        "success": True,
        "message": "Reports compiled successfully",
        "data": compiled["data"],
        "summary": compiled["summary"],
        "compiledAt": datetime.now(timezone.utc).isoformat(),
    }), 200


# ── Export ───────────────────────────────────────────────────────────────────


@report_bp.route("/reports/export/<view>", methods=["GET"])
def export_reports(view):
    """Download a role view as CSV or Excel.

    Query params:
        format: csv | xlsx (default: csv)
        stream, programType, lecturerName: view filters
    """
    fmt = (request.args.get("format") or "csv").lower()
    if view not in export_service.EXPORT_VIEWS:
        raise ValidationError(
            f"Unknown export view: {view}",
            details={"view": f"must be one of: {', '.join(export_service.EXPORT_VIEWS)}"},
        )
    if fmt not in export_service.EXPORT_FORMATS:
        raise ValidationError(
            "Unsupported format. Supported values: csv, xlsx.",
            details={"format": fmt},
        )

    stream, program_type = scope_args()
    grouped = export_service.collect_view(
        view,
        stream=stream,
        program_type=program_type,
        lecturer_name=filter_value(request.args.get("lecturerName")),
    )
    date_str = datetime.now(timezone.utc).strftime("%Y%m%d")
    scope = program_type or "all"
    logger.info("Export view=%s format=%s programType=%s stream=%s", view, fmt, scope, stream)

    if fmt == "xlsx":
        content = export_service.generate_reports_excel(grouped, title=f"{view.upper()} reports ({scope})")
        return Response(
            content,
            mimetype="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
            headers={"Content-Disposition": f"attachment; filename={view}_reports_{scope}_{date_str}.xlsx"},
        )
    return Response(
        export_service.generate_reports_csv(grouped),
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={view}_reports_{scope}_{date_str}.csv"},
    )
