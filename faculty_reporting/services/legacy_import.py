"""
Import of the file-backed JSON store (reports.json, users.json, courses.json).

Each report's kind is resolved from its legacy ``type`` / ``isPRLReport`` /
``isRating`` flags and its status mapped onto ReportStatus. Legacy ids
(millisecond timestamps) are not reused; they are kept as ``legacyId`` in
the report details. Plain-text legacy passwords are re-hashed with bcrypt.

Usage:
    flask import-legacy-json ./backend/data
"""

import json
import logging
import os
from datetime import datetime, timezone

from flask import current_app

from faculty_reporting.models import db
from faculty_reporting.models.auth import DEFAULT_ROLE, ROLES, User
from faculty_reporting.models.course import DEFAULT_FACULTY, DEFAULT_SCHEDULE, DEFAULT_SEMESTER, Course
from faculty_reporting.models.report import (
    DEFAULT_PROGRAM_TYPE,
    DEFAULT_STREAM,
    PROGRAM_TYPES,
    STREAMS,
    Report,
    ReportStatus,
)
from faculty_reporting.services import report_workflow as wf
from faculty_reporting.services.report_service import apply_content
from faculty_reporting.utils.crypto import BCRYPT_ROUNDS, hash_password
from faculty_reporting.utils.helpers import commit_session

logger = logging.getLogger(__name__)

LEGACY_FILES = ("reports.json", "users.json", "courses.json")
LEGACY_DEFAULT_PASSWORD = "password"

_PRE_ESCALATION = (ReportStatus.SUBMITTED.value, ReportStatus.REVIEWED.value)


def _parse_ts(value):
    """ISO-8601 string (``Z`` suffix allowed) → aware datetime, else None."""
    if not value or not isinstance(value, str):
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def load_json_file(path):
    """Return the parsed list from ``path``; None if the file is missing.

    Raises:
        ValueError: the file is not valid JSON or not a JSON array.
    """
    if not os.path.exists(path):
        return None
    with open(path, encoding="utf-8") as fh:
        try:
            data = json.load(fh)
        except json.JSONDecodeError as exc:
            raise ValueError(f"{os.path.basename(path)}: invalid JSON ({exc.msg} at line {exc.lineno})") from exc
    if not isinstance(data, list):
        raise ValueError(f"{os.path.basename(path)}: expected a JSON array")
    return data


def import_reports(records: list) -> dict:
    imported, skipped = 0, 0
    for raw in records:
        if not isinstance(raw, dict):
            skipped += 1
            continue
        kind = wf.resolve_kind(raw)
        stream = raw.get("stream") or DEFAULT_STREAM
        program_type = raw.get("programType") or DEFAULT_PROGRAM_TYPE
        if kind is None or stream not in STREAMS or program_type not in PROGRAM_TYPES:
            logger.warning("Skipping legacy report id=%s type=%r stream=%r programType=%r",
                           raw.get("id"), raw.get("type"), stream, program_type)
            skipped += 1
            continue

        escalated = bool(raw.get("isSubmittedToPL"))
        status = wf.normalize_status(raw.get("status")) or ReportStatus.SUBMITTED.value
        if escalated and status in _PRE_ESCALATION:
            status = ReportStatus.SUBMITTED_TO_PL.value

        report = Report(
            kind=kind,
            stream=stream,
            program_type=program_type,
            status=status,
            is_submitted_to_pl=escalated,
            submitted_to_pl_at=_parse_ts(raw.get("submittedToPLDate")),
            feedback=raw.get("feedback"),
            feedback_at=_parse_ts(raw.get("feedbackDate")),
            prl_feedback=raw.get("prlFeedback"),
            prl_feedback_at=_parse_ts(raw.get("prlFeedbackDate")),
            pl_feedback=raw.get("plFeedback"),
            pl_feedback_at=_parse_ts(raw.get("plFeedbackDate")),
        )
        created = _parse_ts(raw.get("createdAt"))
        if created:
            report.created_at = created
            report.updated_at = _parse_ts(raw.get("updatedAt")) or created
        apply_content(report, raw)
        if raw.get("id") is not None:
            report.details = {**report.details, "legacyId": raw["id"]}
        db.session.add(report)
        imported += 1

    commit_session()
    return {"imported": imported, "skipped": skipped}


def import_users(records: list) -> dict:
    rounds = current_app.config.get("BCRYPT_ROUNDS", BCRYPT_ROUNDS)
    seen_usernames = {u for (u,) in db.session.query(User.username).all()}
    seen_emails = {e for (e,) in db.session.query(User.email).all()}
    imported, skipped = 0, 0

    for raw in records:
        if not isinstance(raw, dict) or not raw.get("username"):
            skipped += 1
            continue
        username = str(raw["username"]).strip()
        email = str(raw.get("email") or f"{username}@luct.edu").strip().lower()
        if username in seen_usernames or email in seen_emails:
            skipped += 1
            continue

        role = raw.get("role") if raw.get("role") in ROLES else DEFAULT_ROLE
        user = User(
            username=username,
            email=email,
            password_hash=hash_password(str(raw.get("password") or LEGACY_DEFAULT_PASSWORD), rounds=rounds),
            role=role,
            faculty=raw.get("faculty"),
            stream=raw.get("stream"),
            program_type=raw.get("programType") or DEFAULT_PROGRAM_TYPE,
        )
        created = _parse_ts(raw.get("createdAt"))
        if created:
            user.created_at = created
        db.session.add(user)
        seen_usernames.add(username)
        seen_emails.add(email)
        imported += 1

    commit_session()
    return {"imported": imported, "skipped": skipped}


def import_courses(records: list) -> dict:
    seen = {(c, p) for c, p in db.session.query(Course.code, Course.program_type).all()}
    imported, skipped = 0, 0

    for raw in records:
        if not isinstance(raw, dict):
            skipped += 1
            continue
        code, program_type = raw.get("code"), raw.get("programType")
        if not (raw.get("name") and code and raw.get("lecturer") and program_type in PROGRAM_TYPES):
            skipped += 1
            continue
        if (code, program_type) in seen:
            skipped += 1
            continue

        course = Course(
            name=raw["name"],
            code=code,
            lecturer=raw["lecturer"],
            stream=raw.get("stream") or DEFAULT_STREAM,
            faculty=raw.get("faculty") or DEFAULT_FACULTY,
            program_type=program_type,
            semester=raw.get("semester") or DEFAULT_SEMESTER,
            year=str(raw.get("year") or datetime.now(timezone.utc).year),
            schedule=raw.get("schedule") or dict(DEFAULT_SCHEDULE),
        )
        db.session.add(course)
        seen.add((code, program_type))
        imported += 1

    commit_session()
    return {"imported": imported, "skipped": skipped}


_IMPORTERS = {
    "users.json": import_users,
    "courses.json": import_courses,
    "reports.json": import_reports,
}


def import_directory(data_dir: str) -> dict:
    """Import every legacy file found in ``data_dir``.

    Returns a per-file summary: ``{"imported", "skipped"}``, ``{"missing": True}``
    or ``{"error": message}`` for a malformed file.
    """
    summary = {}
    for filename in LEGACY_FILES:
        path = os.path.join(data_dir, filename)
        try:
            records = load_json_file(path)
        except ValueError as exc:
            logger.error("Legacy import: %s", exc)
            summary[filename] = {"error": str(exc)}
            continue
        if records is None:
            logger.info("Legacy import: %s not found, skipped", filename)
            summary[filename] = {"missing": True}
            continue
        summary[filename] = _IMPORTERS[filename](records)
        logger.info("Legacy import: %s imported=%d skipped=%d", filename,
                    summary[filename]["imported"], summary[filename]["skipped"])
    return summary
