"""
Faculty Reporting Service
Report domain model.

Models:
    - Report: weekly activity report submitted by a student, lecturer or PRL,
      plus student ratings of a class. One ``kind`` discriminant replaces the
      legacy ``type`` / ``isPRLReport`` / ``isRating`` flag combination.

Approval chain: submitted → reviewed → submitted_to_pl → pl_reviewed
"""

from datetime import datetime, timezone
from enum import Enum

from faculty_reporting.models import db


# ── Constants ────────────────────────────────────────────────────────────────


class ReportKind(str, Enum):
    STUDENT = "student"
    LECTURER = "lecturer"
    PRL = "prl"
    RATING = "rating"


class ReportStatus(str, Enum):
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
    SUBMITTED_TO_PL = "submitted_to_pl"
    PL_REVIEWED = "pl_reviewed"


REPORT_KINDS = {k.value for k in ReportKind}
REPORT_STATUSES = {s.value for s in ReportStatus}

STREAMS = ("IT", "IS", "CS", "SE")
PROGRAM_TYPES = ("degree", "diploma")
DEFAULT_STREAM = "IT"
DEFAULT_PROGRAM_TYPE = "degree"

# Status strings written by older clients and the file-backed store
STATUS_ALIASES = {
    "pending": ReportStatus.SUBMITTED.value,
    "approved": ReportStatus.PL_REVIEWED.value,
    "completed": ReportStatus.PL_REVIEWED.value,
}

REPORT_TRANSITIONS = {
    "review": {
        "from": [ReportStatus.SUBMITTED.value, ReportStatus.REVIEWED.value],
        "to": ReportStatus.REVIEWED.value,
    },
    "submit_to_pl": {
        "from": [ReportStatus.SUBMITTED.value, ReportStatus.REVIEWED.value],
        "to": ReportStatus.SUBMITTED_TO_PL.value,
    },
    "pl_review": {
        "from": [ReportStatus.SUBMITTED_TO_PL.value, ReportStatus.PL_REVIEWED.value],
        "to": ReportStatus.PL_REVIEWED.value,
    },
}

# Wire name (camelCase) → column for submitter-owned content
CONTENT_FIELDS = {
    "facultyName": "faculty_name",
    "className": "class_name",
    "weekOfReporting": "week_of_reporting",
    "dateOfLecture": "date_of_lecture",
    "courseName": "course_name",
    "courseCode": "course_code",
    "lecturerName": "lecturer_name",
    "studentName": "student_name",
    "venue": "venue",
    "scheduledTime": "scheduled_time",
    "topicTaught": "topic_taught",
    "learningOutcomes": "learning_outcomes",
    "challenges": "challenges",
    "recommendations": "recommendations",
    "comments": "comments",
    "actualStudentsPresent": "actual_students_present",
    "totalRegisteredStudents": "total_registered_students",
    "rating": "rating",
    "studentRating": "student_rating",
    "classRating": "class_rating",
    "lecturerRating": "lecturer_rating",
    "submittedBy": "submitted_by",
}

COUNT_FIELDS = ("actualStudentsPresent", "totalRegisteredStudents")
RATING_FIELDS = ("rating", "studentRating", "classRating", "lecturerRating")
RATING_MIN, RATING_MAX = 1, 5

# Lecturers score a session and their students on a 1-10 scale
RATING_SCALES = {
    (ReportKind.LECTURER.value, "rating"): (1, 10),
    (ReportKind.LECTURER.value, "studentRating"): (1, 10),
}


def rating_scale(kind: str, field: str) -> tuple[int, int]:
    """(min, max) accepted for a rating field on a report of ``kind``."""
    return RATING_SCALES.get((kind, field), (RATING_MIN, RATING_MAX))


# Keys set by the server or handled explicitly; never copied into ``details``
RESERVED_FIELDS = frozenset({
    "id", "type", "isPRLReport", "isRating", "status",
    "isSubmittedToPL", "submittedToPLDate",
    "feedback", "feedbackDate", "prlFeedback", "prlFeedbackDate",
    "plFeedback", "plFeedbackDate", "ratingStatus",
    "createdAt", "updatedAt", "stream", "programType",
})


def _iso(value):
    return value.isoformat() if value else None


# ═══════════════════════════════════════════════════════════════════════════
#  REPORT
# ═══════════════════════════════════════════════════════════════════════════


class Report(db.Model):
    """
    A report travelling through the approval chain.

    Submitter identity is the denormalized ``submitted_by`` / name fields;
    course linkage is the ``course_code`` string (no foreign keys).
    Payload keys without a column are kept verbatim in ``details``.
    """

    __tablename__ = "reports"
    __table_args__ = (
        db.Index("idx_report_program_stream", "program_type", "stream"),
        db.Index("idx_report_kind_status", "kind", "status"),
    )

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(20), nullable=False, index=True)
    stream = db.Column(db.String(10), nullable=False, default=DEFAULT_STREAM)
    program_type = db.Column(db.String(20), nullable=False, default=DEFAULT_PROGRAM_TYPE)
    status = db.Column(db.String(30), nullable=False, default=ReportStatus.SUBMITTED.value)

    faculty_name = db.Column(db.String(100))
    class_name = db.Column(db.String(100))
    week_of_reporting = db.Column(db.String(50))
    date_of_lecture = db.Column(db.String(50))
    course_name = db.Column(db.String(255))
    course_code = db.Column(db.String(50), index=True)
    lecturer_name = db.Column(db.String(100))
    student_name = db.Column(db.String(100))
    venue = db.Column(db.String(100))
    scheduled_time = db.Column(db.String(50))
    topic_taught = db.Column(db.Text)
    learning_outcomes = db.Column(db.Text)
    challenges = db.Column(db.Text)
    recommendations = db.Column(db.Text)
    comments = db.Column(db.Text)

    actual_students_present = db.Column(db.Integer)
    total_registered_students = db.Column(db.Integer)
    rating = db.Column(db.Integer)
    student_rating = db.Column(db.Integer)
    class_rating = db.Column(db.Integer)
    lecturer_rating = db.Column(db.Integer)

    submitted_by = db.Column(db.String(100))
    details = db.Column(db.JSON, default=dict)

    # Escalation
    is_submitted_to_pl = db.Column(db.Boolean, nullable=False, default=False)
    submitted_to_pl_at = db.Column(db.DateTime)

    # Downstream reviewers
    feedback = db.Column(db.Text)
    feedback_at = db.Column(db.DateTime)
    prl_feedback = db.Column(db.Text)
    prl_feedback_at = db.Column(db.DateTime)
    pl_feedback = db.Column(db.Text)
    pl_feedback_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        d = dict(self.details or {})
        for wire, attr in CONTENT_FIELDS.items():
            d[wire] = getattr(self, attr)
        d.update({
            "id": self.id,
            "type": self.kind,
            "isPRLReport": self.kind == ReportKind.PRL.value,
            "isRating": self.kind == ReportKind.RATING.value,
            "stream": self.stream,
            "programType": self.program_type,
            "status": self.status,
            "isSubmittedToPL": bool(self.is_submitted_to_pl),
            "submittedToPLDate": _iso(self.submitted_to_pl_at),
            "feedback": self.feedback,
            "feedbackDate": _iso(self.feedback_at),
            "prlFeedback": self.prl_feedback,
            "prlFeedbackDate": _iso(self.prl_feedback_at),
            "plFeedback": self.pl_feedback,
            "plFeedbackDate": _iso(self.pl_feedback_at),
            "createdAt": _iso(self.created_at),
            "updatedAt": _iso(self.updated_at),
        })
        return d

    def __repr__(self):
        return f"<Report {self.id} {self.kind} {self.status}>"
