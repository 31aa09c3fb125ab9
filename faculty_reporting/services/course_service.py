"""
Course registry service.

Courses are unique per (code, programType); the check runs before insert or
update so the caller gets a ConflictError instead of a raw IntegrityError.
"""

import logging
from collections import defaultdict
from datetime import datetime, timezone

from faculty_reporting.core.exceptions import ConflictError, ValidationError
from faculty_reporting.models import db
from faculty_reporting.models.course import (
    DEFAULT_FACULTY,
    DEFAULT_SCHEDULE,
    DEFAULT_SEMESTER,
    Course,
)
from faculty_reporting.models.report import DEFAULT_STREAM, PROGRAM_TYPES, STREAMS
from faculty_reporting.utils.helpers import commit_session, get_or_raise

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("name", "code", "lecturer", "programType")

# Wire name → column for fields a PL may edit
EDITABLE_FIELDS = {
    "name": "name",
    "code": "code",
    "lecturer": "lecturer",
    "stream": "stream",
    "faculty": "faculty",
    "programType": "program_type",
    "semester": "semester",
    "year": "year",
    "schedule": "schedule",
}


def _clean(value):
    return value.strip() if isinstance(value, str) else value


def _check_scope(stream, program_type):
    errors = {}
    if stream not in STREAMS:
        errors["stream"] = f"must be one of: {', '.join(STREAMS)}"
    if program_type not in PROGRAM_TYPES:
        errors["programType"] = f"must be one of: {', '.join(PROGRAM_TYPES)}"
    if errors:
        raise ValidationError("Invalid stream or programType", details=errors)


def _check_unique(code, program_type, exclude_id=None):
    q = Course.query.filter(Course.code == code, Course.program_type == program_type)
    if exclude_id is not None:
        q = q.filter(Course.id != exclude_id)
    if q.first() is not None:
        raise ConflictError("Course", "code+programType", f"{code}/{program_type}")


def list_courses(stream=None, program_type=None) -> list[dict]:
    q = Course.query
    if stream:
        q = q.filter(Course.stream == stream)
    if program_type:
        q = q.filter(Course.program_type == program_type)
    return [c.to_dict() for c in q.order_by(Course.code, Course.id).all()]


def get_course(course_id) -> dict:
    return get_or_raise(Course, course_id, "Course").to_dict()


def courses_by_stream(program_type, stream=None) -> dict[str, list]:
    """Courses of a program type keyed by stream."""
    grouped: dict[str, list] = defaultdict(list)
    for course in list_courses(stream=stream, program_type=program_type):
        grouped[course["stream"]].append(course)
    return dict(grouped)


def courses_for_lecturer(lecturer_name, program_type=None) -> list[dict]:
    q = Course.query.filter(Course.lecturer == lecturer_name)
    if program_type:
        q = q.filter(Course.program_type == program_type)
    return [c.to_dict() for c in q.order_by(Course.code).all()]


def create_course(data: dict) -> dict:
    """Register a course assignment.

    Raises:
        ValidationError: a required field is missing or scope is unknown.
        ConflictError: (code, programType) already exists.
    """
    data = data or {}
    missing = [f for f in REQUIRED_FIELDS if not str(data.get(f) or "").strip()]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details={f: "required" for f in missing},
        )

    code = _clean(data["code"])
    program_type = str(data["programType"]).strip().lower()
    stream = _clean(data.get("stream")) or DEFAULT_STREAM
    _check_scope(stream, program_type)
    _check_unique(code, program_type)

    course = Course(
        name=_clean(data["name"]),
        code=code,
        lecturer=_clean(data["lecturer"]),
        stream=stream,
        faculty=_clean(data.get("faculty")) or DEFAULT_FACULTY,
        program_type=program_type,
        semester=data.get("semester") or DEFAULT_SEMESTER,
        year=str(data.get("year") or datetime.now(timezone.utc).year),
        schedule=data.get("schedule") or dict(DEFAULT_SCHEDULE),
    )
    db.session.add(course)
    commit_session()
    logger.info("Course %s created (%s, %s) lecturer=%s",
                course.code, course.program_type, course.stream, course.lecturer)
    return course.to_dict()


def update_course(course_id, data: dict) -> dict:
    course = get_or_raise(Course, course_id, "Course")
    data = data or {}

    for wire in ("name", "code", "lecturer", "programType"):
        if wire in data and not str(data.get(wire) or "").strip():
            raise ValidationError(f"{wire} cannot be empty", details={wire: "required"})

    code = _clean(data.get("code", course.code))
    program_type = str(data.get("programType", course.program_type)).strip().lower()
    stream = _clean(data.get("stream", course.stream)) or DEFAULT_STREAM
    _check_scope(stream, program_type)
    if (code, program_type) != (course.code, course.program_type):
        _check_unique(code, program_type, exclude_id=course.id)

    for wire, attr in EDITABLE_FIELDS.items():
        if wire in data:
            setattr(course, attr, _clean(data[wire]))
    course.code, course.program_type, course.stream = code, program_type, stream
    if course.year is not None:
        course.year = str(course.year)
    commit_session()
    logger.info("Course %s updated fields=%s", course.id, sorted(data))
    return course.to_dict()


def delete_course(course_id) -> None:
    course = get_or_raise(Course, course_id, "Course")
    db.session.delete(course)
    commit_session()
    logger.info("Course %s (%s) deleted", course_id, course.code)
