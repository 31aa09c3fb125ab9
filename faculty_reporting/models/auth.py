"""
Faculty Reporting Service
User accounts.

Roles follow the approval chain: student → lecturer → prl → pl, plus admin.
Passwords are stored as bcrypt hashes (see ``utils.crypto``) and never
serialized.
"""

from datetime import datetime, timezone

from faculty_reporting.models import db

ROLES = ("student", "lecturer", "prl", "pl", "admin")
DEFAULT_ROLE = "student"
DEFAULT_FACULTY = "Computing"
USERNAME_MIN_LEN, USERNAME_MAX_LEN = 3, 50


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    email = db.Column(db.String(100), unique=True, nullable=False)
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=DEFAULT_ROLE)
    faculty = db.Column(db.String(100))
    stream = db.Column(db.String(10))
    program_type = db.Column(db.String(20))
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "faculty": self.faculty,
            "stream": self.stream,
            "programType": self.program_type,
            "isActive": bool(self.is_active),
            "lastLoginAt": self.last_login_at.isoformat() if self.last_login_at else None,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.username} ({self.role})>"
