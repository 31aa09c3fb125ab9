"""
Report workflow rules: classification, grouping and status transitions.

Pure functions over plain report records (the camelCase dicts produced by
``Report.to_dict()`` or read from the legacy JSON files). Nothing here touches
the database, so the rules are shared by every endpoint that groups and are
unit-tested without an app context.

Bucket predicates, evaluated in this order, first match wins:

    lecturer  type == "lecturer" and not isPRLReport
    student   type == "student"  and not isRating
    prl       isPRLReport, or legacy type == "prl"
    ratings   isRating,    or legacy type == "rating"

A record matching none of them (unknown type, no flags) is malformed and is
left out of every bucket.

Usage:
    from faculty_reporting.services.report_workflow import group_reports

    grouped = group_reports(filter_reports(records, stream="IT", program_type="degree"))
    # -> {"lecturer": [...], "student": [...], "prl": [...], "ratings": [...]}
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Iterable, Mapping

from faculty_reporting.models.report import (
    DEFAULT_STREAM,
    REPORT_STATUSES,
    REPORT_TRANSITIONS,
    STATUS_ALIASES,
    ReportKind,
    ReportStatus,
)

BUCKETS = ("lecturer", "student", "prl", "ratings")

BUCKET_PREDICATES = (
    ("lecturer", lambda r: r.get("type") == "lecturer" and not r.get("isPRLReport")),
    ("student", lambda r: r.get("type") == "student" and not r.get("isRating")),
    ("prl", lambda r: r.get("isPRLReport") is True or r.get("type") == "prl"),
    ("ratings", lambda r: r.get("isRating") is True or r.get("type") == "rating"),
)

BUCKET_KIND = {
    "lecturer": ReportKind.LECTURER.value,
    "student": ReportKind.STUDENT.value,
    "prl": ReportKind.PRL.value,
    "ratings": ReportKind.RATING.value,
}
KIND_BUCKET = {kind: bucket for bucket, kind in BUCKET_KIND.items()}


# ── Classification ───────────────────────────────────────────────────────────


def classify(record: Mapping[str, Any]) -> str | None:
    """Return the bucket name for a record, or None when it matches no bucket."""
    for bucket, predicate in BUCKET_PREDICATES:
        if predicate(record):
            return bucket
    return None


def resolve_kind(payload: Mapping[str, Any]) -> str | None:
    """Collapse legacy ``type`` / ``isPRLReport`` / ``isRating`` into one kind."""
    bucket = classify(payload)
    return BUCKET_KIND[bucket] if bucket else None


def conflicting_flags(payload: Mapping[str, Any], kind: str | None) -> list[str]:
    """Flags set in ``payload`` that disagree with the resolved ``kind``."""
    conflicts = []
    if payload.get("isPRLReport") is True and kind != ReportKind.PRL.value:
        conflicts.append("isPRLReport")
    if payload.get("isRating") is True and kind != ReportKind.RATING.value:
        conflicts.append("isRating")
    return conflicts


# ── Filtering & grouping ─────────────────────────────────────────────────────


def filter_reports(
    records: Iterable[Mapping[str, Any]],
    *,
    stream: str | None = None,
    program_type: str | None = None,
    kinds: Iterable[str] | None = None,
) -> list[Mapping[str, Any]]:
    """Flat filter. None for a parameter means "any"."""
    wanted = set(kinds) if kinds is not None else None
    out = []
    for record in records:
        if stream and record.get("stream") != stream:
            continue
        if program_type and record.get("programType") != program_type:
            continue
        if wanted is not None and resolve_kind(record) not in wanted:
            continue
        out.append(record)
    return out


def group_reports(records: Iterable[Mapping[str, Any]]) -> dict[str, list]:
    """Partition records into the four fixed buckets."""
    grouped: dict[str, list] = {bucket: [] for bucket in BUCKETS}
    for record in records:
        bucket = classify(record)
        if bucket is not None:
            grouped[bucket].append(record)
    return grouped


def bucket_counts(grouped: Mapping[str, list]) -> dict[str, int]:
    return {bucket: len(grouped.get(bucket, [])) for bucket in BUCKETS}


def summarize(records: Iterable[Mapping[str, Any]]) -> dict:
    """Aggregate counts for the PL compile view.

    An empty input yields every count at 0 and empty breakdowns.
    """
    records = list(records)
    grouped = group_reports(records)
    by_stream = Counter(r.get("stream") or DEFAULT_STREAM for r in records)
    by_status = Counter(
        normalize_status(r.get("status")) or ReportStatus.SUBMITTED.value for r in records
    )
    return {
        "totalReports": len(records),
        "studentReports": len(grouped["student"]),
        "lecturerReports": len(grouped["lecturer"]),
        "ratings": len(grouped["ratings"]),
        "prlReports": len(grouped["prl"]),
        "byStream": dict(by_stream),
        "byStatus": dict(by_status),
    }


# ── Status machine ───────────────────────────────────────────────────────────


def normalize_status(value: str | None) -> str | None:
    """Map a status string (canonical or legacy alias) to ReportStatus, else None."""
    if not value:
        return None
    value = str(value).strip().lower()
    if value in REPORT_STATUSES:
        return value
    return STATUS_ALIASES.get(value)


def validate_transition(current: str | None, action: str, *, strict: bool = True) -> dict:
    """
    Validate whether ``action`` is allowed from ``current``.

    With ``strict=False`` every known action is accepted from any status,
    which accepts feedback and escalation in any order.

    Returns:
        {"valid": bool, "from": str|None, "to": str|None, "reason": str|None}
    """
    rule = REPORT_TRANSITIONS.get(action)
    if not rule:
        return {"valid": False, "from": current, "to": None,
                "reason": f"Unknown action: {action}"}

    status = normalize_status(current) or ReportStatus.SUBMITTED.value
    if strict and status not in rule["from"]:
        return {"valid": False, "from": status, "to": rule["to"],
                "reason": f"Cannot '{action}' from status '{status}'"}

    return {"valid": True, "from": status, "to": rule["to"], "reason": None}


def available_actions(current: str | None) -> list[str]:
    status = normalize_status(current) or ReportStatus.SUBMITTED.value
    return [action for action, rule in REPORT_TRANSITIONS.items() if status in rule["from"]]


# ── Escalation selection ─────────────────────────────────────────────────────


def collect_selected_ids(selected: Any) -> list:
    """Flatten ``selectedReports`` into an ordered list of ids.

    Accepts a plain list of ids or an object keyed by bucket
    (``{"student": [...], "lecturer": [...], "prl": [...], "ratings": [...]}``).
    Unknown keys and non-list values are ignored.
    """
    if not selected:
        return []
    if isinstance(selected, (list, tuple)):
        return list(selected)
    ids: list = []
    if isinstance(selected, Mapping):
        for bucket in ("student", "lecturer", "prl", "ratings"):
            values = selected.get(bucket)
            if isinstance(values, (list, tuple)):
                ids.extend(values)
    return ids
