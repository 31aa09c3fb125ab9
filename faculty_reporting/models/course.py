"""
Faculty Reporting Service
Course registry model.

A course assignment links a lecturer (by name) to a course code inside one
program type and stream. Reports reference courses through ``course_code``.
"""

from datetime import datetime, timezone

from faculty_reporting.models import db

DEFAULT_FACULTY = "FICT"
DEFAULT_SEMESTER = "Semester 1"
DEFAULT_SCHEDULE = {"day": "Monday", "time": "08:00 - 10:00", "room": "Room 201"}


class Course(db.Model):
    __tablename__ = "courses"
    __table_args__ = (
        db.UniqueConstraint("code", "program_type", name="uq_course_code_program"),
        db.Index("idx_course_program_stream", "program_type", "stream"),
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(50), nullable=False)
    lecturer = db.Column(db.String(100), nullable=False, index=True)
    stream = db.Column(db.String(10), nullable=False)
    faculty = db.Column(db.String(100), nullable=False, default=DEFAULT_FACULTY)
    program_type = db.Column(db.String(20), nullable=False)
    semester = db.Column(db.String(50))
    year = db.Column(db.String(10))
    schedule = db.Column(db.JSON)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "code": self.code,
            "lecturer": self.lecturer,
            "stream": self.stream,
            "faculty": self.faculty,
            "programType": self.program_type,
            "semester": self.semester,
            "year": self.year,
            "schedule": self.schedule,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Course {self.code} ({self.program_type})>"
