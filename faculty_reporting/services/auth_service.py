"""
User registration and login.

Login looks a user up by username or email. Unknown usernames are
auto-provisioned as students when ``AUTH_AUTO_PROVISION`` is on; known users
must present the right password (bcrypt).
"""

import logging

from flask import current_app
from sqlalchemy import or_

from faculty_reporting.core.exceptions import AuthenticationError, ConflictError, ValidationError
from faculty_reporting.models import db
from faculty_reporting.models.auth import (
    DEFAULT_FACULTY,
    DEFAULT_ROLE,
    ROLES,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
    User,
)
from faculty_reporting.models.report import DEFAULT_PROGRAM_TYPE, DEFAULT_STREAM, PROGRAM_TYPES
from faculty_reporting.utils.crypto import BCRYPT_ROUNDS, hash_password, verify_password
from faculty_reporting.utils.helpers import commit_session, utcnow

logger = logging.getLogger(__name__)

AUTO_EMAIL_DOMAIN = "luct.edu"


def _hash(password: str) -> str:
    return hash_password(password, rounds=current_app.config.get("BCRYPT_ROUNDS", BCRYPT_ROUNDS))


def _check_username(username: str) -> None:
    if not USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN:
        raise ValidationError(
            f"username must be {USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} characters",
            details={"username": "invalid length"},
        )


def _check_role(role: str) -> None:
    if role not in ROLES:
        raise ValidationError(
            f"Invalid role: {role}", details={"role": f"must be one of: {', '.join(ROLES)}"}
        )


def _check_text_fields(data: dict, fields) -> None:
    """Credential and profile fields must be JSON strings when present."""
    wrong = [f for f in fields if data.get(f) is not None and not isinstance(data[f], str)]
    if wrong:
        raise ValidationError(
            f"Fields must be strings: {', '.join(wrong)}",
            details={f: "must be a string" for f in wrong},
        )


def _find(identifier: str):
    return User.query.filter(
        or_(User.username == identifier, User.email == identifier)
    ).first()


def register_user(data: dict) -> dict:
    """Create an account.

    Raises:
        ValidationError: missing fields, bad username length or role.
        ConflictError: username or email already taken.
    """
    data = data or {}
    required = ("username", "password", "email", "role")
    _check_text_fields(data, required + ("faculty", "stream", "programType"))
    missing = [f for f in required if not str(data.get(f) or "").strip()]
    if missing:
        raise ValidationError(
            f"Missing required fields: {', '.join(required)}",
            details={f: "required" for f in missing},
        )

    username = data["username"].strip()
    email = data["email"].strip().lower()
    role = data["role"].strip().lower()
    _check_username(username)
    _check_role(role)
    program_type = (data.get("programType") or DEFAULT_PROGRAM_TYPE).lower()
    if program_type not in PROGRAM_TYPES:
        raise ValidationError("Invalid programType", details={"programType": "unknown"})

    if User.query.filter_by(username=username).first():
        raise ConflictError("User", "username", username)
    if User.query.filter_by(email=email).first():
        raise ConflictError("User", "email", email)

    user = User(
        username=username,
        email=email,
        password_hash=_hash(data["password"]),
        role=role,
        faculty=data.get("faculty") or None,
        stream=data.get("stream") or None,
        program_type=program_type,
    )
    db.session.add(user)
    commit_session()
    logger.info("User registered: %s role=%s", username, role)
    return user.to_dict()


def login(data: dict) -> dict:
    """Authenticate, auto-provisioning unknown usernames when enabled.

    Raises:
        ValidationError: username or password missing.
        AuthenticationError: wrong password, inactive account, or unknown
            user with auto-provisioning off.
        ConflictError: the auto-provisioned email belongs to another account.
    """
    data = data or {}
    _check_text_fields(data, ("username", "password", "role", "faculty", "stream", "programType"))
    identifier = (data.get("username") or "").strip()
    password = data.get("password")
    if not identifier or not password:
        raise ValidationError(
            "username and password are required",
            details={k: "required" for k in ("username", "password") if not data.get(k)},
        )

    user = _find(identifier)
    if user is None:
        if not current_app.config.get("AUTH_AUTO_PROVISION", True):
            raise AuthenticationError("Invalid username or password")
        _check_username(identifier)
        role = str(data.get("role") or DEFAULT_ROLE).lower()
        _check_role(role)
        program_type = str(data.get("programType") or DEFAULT_PROGRAM_TYPE).lower()
        if program_type not in PROGRAM_TYPES:
            program_type = DEFAULT_PROGRAM_TYPE
        email = f"{identifier}@{AUTO_EMAIL_DOMAIN}".lower()
        if User.query.filter_by(email=email).first():
            logger.info("Auto-provision of %s refused: %s already registered", identifier, email)
            raise ConflictError("User", "email", email)
        user = User(
            username=identifier,
            email=email,
            password_hash=_hash(password),
            role=role,
            faculty=data.get("faculty") or DEFAULT_FACULTY,
            stream=data.get("stream") or DEFAULT_STREAM,
            program_type=program_type,
        )
        db.session.add(user)
        logger.info("Auto-provisioned user %s role=%s programType=%s",
                    identifier, role, program_type)
    else:
        if not user.is_active:
            raise AuthenticationError("Account is disabled")
        if not verify_password(password, user.password_hash):
            logger.info("Invalid password for user %s", user.username)
            raise AuthenticationError("Invalid password")

    user.last_login_at = utcnow()
    commit_session()
    return user.to_dict()
