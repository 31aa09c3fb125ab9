"""
Report service layer: submission, role views, feedback and escalation.

Rules:
  - db.session.commit() happens only in service modules.
  - Grouping and transition rules come from ``report_workflow``; this module
    only loads and stores records.
  - Failures are raised as ``core.exceptions`` types; the app-level error
    handlers turn them into JSON responses.
  - No locking: concurrent feedback on one report is last-writer-wins.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable

from flask import current_app

from faculty_reporting.core.exceptions import NotFoundError, TransitionError, ValidationError
from faculty_reporting.models import db
from faculty_reporting.models.course import Course
from faculty_reporting.models.report import (
    CONTENT_FIELDS,
    COUNT_FIELDS,
    DEFAULT_PROGRAM_TYPE,
    DEFAULT_STREAM,
    PROGRAM_TYPES,
    RATING_FIELDS,
    RESERVED_FIELDS,
    STREAMS,
    Report,
    ReportKind,
    ReportStatus,
    rating_scale,
)
from faculty_reporting.services import report_workflow as wf
from faculty_reporting.utils.helpers import commit_session, get_or_raise, utcnow

logger = logging.getLogger(__name__)

# Submission endpoint → (type stamped when the payload has none, kinds accepted)
SUBMISSION_KINDS = {
    "student": (ReportKind.STUDENT.value, {ReportKind.STUDENT.value, ReportKind.RATING.value}),
    "lecturer": (ReportKind.LECTURER.value, {ReportKind.LECTURER.value}),
    "prl": (ReportKind.PRL.value, {ReportKind.PRL.value}),
}

# Reviewer → (workflow action, feedback column, timestamp column)
REVIEWERS = {
    "line": ("review", "feedback", "feedback_at"),
    "rating": ("review", "prl_feedback", "prl_feedback_at"),
    "pl": ("pl_review", "pl_feedback", "pl_feedback_at"),
}

# Present/total pairs checked for attendance; the second pair is the student form
ATTENDANCE_PAIRS = (
    ("actualStudentsPresent", "totalRegisteredStudents"),
    ("numberOfStudentsPresent", "actualNumberOfStudents"),
)

_INT_COLUMNS = {CONTENT_FIELDS[f] for f in COUNT_FIELDS + RATING_FIELDS}


def _strict() -> bool:
    return bool(current_app.config.get("WORKFLOW_STRICT_TRANSITIONS", True))


# ── Validation helpers ───────────────────────────────────────────────────────


def _as_int(value, field: str, errors: dict) -> int | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        errors[field] = "must be an integer"
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().lstrip("-").isdigit():
        return int(value.strip())
    errors[field] = "must be an integer"
    return None


def _validate_content(values: dict[str, Any], kind: str) -> None:
    """Field rules shared by create and update. Raises ValidationError."""
    errors: dict[str, str] = {}

    if kind in (ReportKind.STUDENT.value, ReportKind.LECTURER.value, ReportKind.RATING.value):
        if not str(values.get("courseCode") or "").strip():
            errors["courseCode"] = "required"

    for present_key, total_key in ATTENDANCE_PAIRS:
        present = _as_int(values.get(present_key), present_key, errors)
        total = _as_int(values.get(total_key), total_key, errors)
        for key, val in ((present_key, present), (total_key, total)):
            if val is not None and val < 0:
                errors[key] = "must not be negative"
        if present is not None and total is not None and present > total:
            errors[present_key] = f"cannot exceed {total_key}"

    for field in RATING_FIELDS:
        rating = _as_int(values.get(field), field, errors)
        low, high = rating_scale(kind, field)
        if rating is not None and not low <= rating <= high:
            errors[field] = f"must be between {low} and {high}"

    if errors:
        raise ValidationError("Invalid report fields", details=errors)


def _scope(payload: dict) -> tuple[str, str]:
    stream = str(payload.get("stream") or DEFAULT_STREAM).strip()
    program_type = str(payload.get("programType") or DEFAULT_PROGRAM_TYPE).strip().lower()
    errors = {}
    if stream not in STREAMS:
        errors["stream"] = f"must be one of: {', '.join(STREAMS)}"
    if program_type not in PROGRAM_TYPES:
        errors["programType"] = f"must be one of: {', '.join(PROGRAM_TYPES)}"
    if errors:
        raise ValidationError("Invalid stream or programType", details=errors)
    return stream, program_type


def apply_content(report: Report, payload: dict) -> None:
    """Copy submitter-owned keys onto columns; unknown keys go to ``details``."""
    details = dict(report.details or {})
    for key, value in payload.items():
        if key in RESERVED_FIELDS:
            continue
        attr = CONTENT_FIELDS.get(key)
        if attr is None:
            details[key] = value
        elif attr in _INT_COLUMNS:
            setattr(report, attr, _as_int(value, key, {}))
        else:
            setattr(report, attr, value if value is None or isinstance(value, str) else str(value))
    report.details = details


# ── Queries ──────────────────────────────────────────────────────────────────


def _query(
    *,
    stream: str | None = None,
    program_type: str | None = None,
    kinds: Iterable[str] | None = None,
    status: str | None = None,
    submitted_to_pl: bool | None = None,
    course_codes: Iterable[str] | None = None,
    lecturer_name: str | None = None,
):
    q = Report.query
    if stream:
        q = q.filter(Report.stream == stream)
    if program_type:
        q = q.filter(Report.program_type == program_type)
    if kinds is not None:
        q = q.filter(Report.kind.in_(list(kinds)))
    if status:
        q = q.filter(Report.status == (wf.normalize_status(status) or status))
    if submitted_to_pl is not None:
        q = q.filter(Report.is_submitted_to_pl == submitted_to_pl)
    if course_codes is not None:
        q = q.filter(Report.course_code.in_(list(course_codes)))
    if lecturer_name:
        q = q.filter(Report.lecturer_name == lecturer_name)
    return q.order_by(Report.created_at.desc(), Report.id.desc())


def list_reports(**filters) -> list[dict]:
    return [r.to_dict() for r in _query(**filters).all()]


def list_student_reports(program_type: str | None = None, status: str | None = None) -> list[dict]:
    """Student reports and class ratings (the student view shows both)."""
    return list_reports(
        program_type=program_type,
        status=status,
        kinds=(ReportKind.STUDENT.value, ReportKind.RATING.value),
    )


def list_lecturer_reports(
    program_type: str | None = None,
    lecturer_name: str | None = None,
    status: str | None = None,
) -> list[dict]:
    return list_reports(
        program_type=program_type,
        lecturer_name=lecturer_name,
        status=status,
        kinds=(ReportKind.LECTURER.value,),
    )


def list_stream_reports(stream: str | None = None, program_type: str | None = None,
                        status: str | None = None) -> list[dict]:
    """Every report of a stream: the PRL monitoring view."""
    return list_reports(stream=stream, program_type=program_type, status=status)


def list_prl_reports(stream: str | None = None, program_type: str | None = None) -> list[dict]:
    return list_reports(stream=stream, program_type=program_type, kinds=(ReportKind.PRL.value,))


def list_pl_reports(program_type: str | None = None, status: str | None = None) -> list[dict]:
    """Reports escalated to the Program Leader."""
    return list_reports(program_type=program_type, status=status, submitted_to_pl=True)


def grouped_reports(stream: str | None = None, program_type: str | None = None) -> dict[str, list]:
    return wf.group_reports(list_reports(stream=stream, program_type=program_type))


def reports_by_courses(course_codes: list | None, program_type: str | None = None) -> list[dict]:
    """Reports for a set of course codes; an empty set means no course filter."""
    codes = [str(c) for c in course_codes or [] if c not in (None, "")]
    return list_reports(program_type=program_type, course_codes=codes or None)


def _course_codes(stream: str | None, program_type: str | None) -> tuple[int, list[str]]:
    q = Course.query
    if stream:
        q = q.filter(Course.stream == stream)
    if program_type:
        q = q.filter(Course.program_type == program_type)
    courses = q.all()
    return len(courses), sorted({c.code for c in courses})


def assigned_course_reports(stream: str | None = None, program_type: str | None = None) -> dict:
    """Reports whose course code belongs to a course registered for the stream.

    With no registered courses the result is empty.
    """
    course_count, codes = _course_codes(stream, program_type)
    records = list_reports(program_type=program_type, course_codes=codes) if codes else []
    return {
        "data": wf.group_reports(records),
        "assignedCourses": course_count,
        "totalReports": len(records),
    }


def prl_dashboard(stream: str | None = None, program_type: str | None = None) -> dict:
    """Everything the PRL page needs in one payload."""
    course_count, codes = _course_codes(stream, program_type)
    all_records = list_reports(stream=stream, program_type=program_type)
    assigned = list_reports(program_type=program_type, course_codes=codes) if codes else []
    pending = [r for r in all_records if not r["isSubmittedToPL"]]
    escalated = [r for r in all_records if r["isSubmittedToPL"]]
    return {
        "allReports": wf.group_reports(pending),
        "assignedCourseReports": wf.group_reports(assigned),
        "submittedToPLReports": escalated,
        "statistics": {
            "totalAssignedCourses": course_count,
            "totalAllReports": len(all_records),
            "totalAssignedCourseReports": len(assigned),
            "totalSubmittedToPL": len(escalated),
        },
    }


def compile_reports(program_type: str | None = None) -> dict:
    """Grouped reports plus summary counts for one program type (or all)."""
    records = list_reports(program_type=program_type)
    return {"data": wf.group_reports(records), "summary": wf.summarize(records)}


def get_report(report_id) -> dict:
    return get_or_raise(Report, report_id, "Report").to_dict()


# ── Submission ───────────────────────────────────────────────────────────────


def create_report(payload: dict, endpoint: str) -> dict:
    """Persist a new report submitted through ``/api/reports/<endpoint>``.

    Server stamps id, timestamps and the initial status; stream and program
    type default to IT / degree.

    Raises:
        ValidationError: unknown scope, contradictory flags, bad field values.
    """
    default_type, accepted = SUBMISSION_KINDS[endpoint]
    payload = dict(payload or {})

    candidate = dict(payload)
    if endpoint == "student":
        candidate["type"] = payload.get("type") or default_type
    elif endpoint == "lecturer":
        candidate["type"] = default_type
    else:
        candidate["type"] = default_type
        candidate["isPRLReport"] = True

    kind = wf.resolve_kind(candidate)
    if kind not in accepted:
        raise ValidationError(
            f"Report type {kind or candidate.get('type')!r} cannot be submitted as a {endpoint} report",
            details={"type": f"must be one of: {', '.join(sorted(accepted))}"},
        )
    conflicts = wf.conflicting_flags(payload, kind)
    if conflicts:
        raise ValidationError(
            "Contradictory report flags",
            details={flag: f"conflicts with type {kind!r}" for flag in conflicts},
        )

    stream, program_type = _scope(payload)
    _validate_content(payload, kind)

    report = Report(
        kind=kind,
        stream=stream,
        program_type=program_type,
        status=ReportStatus.SUBMITTED.value,
        is_submitted_to_pl=False,
    )
    apply_content(report, payload)
    db.session.add(report)
    commit_session()
    logger.info(
        "Report %s created kind=%s stream=%s programType=%s course=%s",
        report.id, kind, stream, program_type, report.course_code,
    )
    return report.to_dict()


def update_report(report_id, payload: dict) -> dict:
    """Edit submitter-owned content. Workflow fields are changed only through
    feedback and escalation; stream and program type never change.
    """
    report = get_or_raise(Report, report_id, "Report")
    payload = dict(payload or {})
    current = report.to_dict()

    locked = sorted(
        key for key in payload
        if key in RESERVED_FIELDS and key != "id" and payload[key] != current.get(key)
    )
    if locked:
        raise ValidationError(
            "Workflow fields cannot be edited",
            details={key: "read-only" for key in locked},
        )

    merged = {**current, **payload}
    _validate_content(merged, report.kind)
    apply_content(report, payload)
    commit_session()
    logger.info("Report %s updated fields=%s", report.id, sorted(payload))
    return report.to_dict()


def delete_report(report_id) -> None:
    report = get_or_raise(Report, report_id, "Report")
    db.session.delete(report)
    commit_session()
    logger.warning("Report %s deleted (kind=%s status=%s)", report_id, report.kind, report.status)


# ── Feedback ─────────────────────────────────────────────────────────────────


def add_feedback(report_id, reviewer: str, feedback) -> dict:
    """Attach reviewer feedback, stamp it and advance the status.

    reviewer: "line" (lecturer/PRL review), "rating" (PRL on a rating) or "pl".

    Raises:
        NotFoundError, ValidationError, TransitionError
    """
    action, text_attr, at_attr = REVIEWERS[reviewer]
    report = get_or_raise(Report, report_id, "Report")

    text = feedback.strip() if isinstance(feedback, str) else ""
    if not text:
        raise ValidationError("feedback is required", details={"feedback": "required"})

    check = wf.validate_transition(report.status, action, strict=_strict())
    if not check["valid"]:
        raise TransitionError(report.id, action, check["from"], check["reason"])

    setattr(report, text_attr, text)
    setattr(report, at_attr, utcnow())
    report.status = check["to"]
    commit_session()
    logger.info(
        "Feedback (%s) on report %s: %s -> %s",
        reviewer, report.id, check["from"], check["to"],
    )
    return report.to_dict()


# ── Escalation ───────────────────────────────────────────────────────────────


def submit_to_pl(stream: str | None, program_type: str | None, selected: Any = None) -> dict:
    """Escalate a batch of reports to the Program Leader.

    Best effort and idempotent per record:
      - missing ids are collected as soft errors,
      - already escalated reports are counted and left untouched,
      - reports whose status forbids escalation (strict mode) are counted
        as rejected,
      - every other report gets ``isSubmittedToPL``, a timestamp and
        status ``submitted_to_pl``; these updates are committed together.

    ``selected=None`` (key omitted) escalates every not-yet-escalated PRL
    report of the stream and program type.

    Raises:
        ValidationError: stream / programType missing, or an empty selection.
    """
    if not stream or not program_type:
        raise ValidationError(
            "Missing required fields: stream and programType",
            details={k: "required" for k, v in (("stream", stream), ("programType", program_type)) if not v},
        )

    if selected is None:
        ids = [
            r.id for r in _query(
                stream=stream,
                program_type=program_type,
                kinds=(ReportKind.PRL.value,),
                submitted_to_pl=False,
            ).all()
        ]
    else:
        ids = wf.collect_selected_ids(selected)
        if not ids:
            raise ValidationError("No reports selected for submission")

    strict = _strict()
    now = utcnow()
    submitted, already, missing, rejected, errors = [], [], [], [], []

    for rid in ids:
        try:
            report = get_or_raise(Report, rid, "Report")
        except NotFoundError:
            missing.append(rid)
            errors.append(f"Report with ID {rid} not found")
            continue

        if report.is_submitted_to_pl:
            already.append(report.id)
            continue

        check = wf.validate_transition(report.status, "submit_to_pl", strict=strict)
        if not check["valid"]:
            rejected.append(report.id)
            errors.append(f"Report {report.id}: {check['reason']}")
            continue

        report.is_submitted_to_pl = True
        report.submitted_to_pl_at = now
        report.status = check["to"]
        submitted.append(report.id)

    if submitted:
        commit_session()
    if errors:
        logger.warning("Submit to PL stream=%s programType=%s soft errors: %s",
                       stream, program_type, errors)
    logger.info(
        "Submit to PL stream=%s programType=%s selected=%d submitted=%d already=%d missing=%d rejected=%d",
        stream, program_type, len(ids), len(submitted), len(already), len(missing), len(rejected),
    )
    return {
        "submittedCount": len(submitted),
        "alreadySubmittedCount": len(already),
        "notFoundCount": len(missing),
        "rejectedCount": len(rejected),
        "totalSelected": len(ids),
        "submittedIds": submitted,
        "alreadySubmittedIds": already,
        "notFoundIds": missing,
        "rejectedIds": rejected,
        "errors": errors,
    }
