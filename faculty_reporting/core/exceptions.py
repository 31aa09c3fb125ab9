"""
Service-wide exception hierarchy.

Services raise these; ``utils.errors.register_error_handlers`` maps each type
to one HTTP status and the ``{success: false, error, code}`` envelope, so
blueprints never build error responses for business failures themselves.

Usage:
    from faculty_reporting.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Report", resource_id=42)
    raise ValidationError("courseCode is required", details={"courseCode": "required"})
"""


class NotFoundError(Exception):
    """Raised when a requested record does not exist.

    The public message is ``"<resource> not found"``; the id only goes to logs.

    Args:
        resource: Human-readable entity name (e.g. "Report", "Course").
        resource_id: The key that was looked up.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        msg = f"{resource}"
        if resource_id is not None:
            msg += f" id={resource_id}"
        msg += " not found"
        super().__init__(msg)

    @property
    def public_message(self) -> str:
        return f"{self.resource} not found"


class ValidationError(Exception):
    """Raised when input is missing or violates a field rule. Maps to HTTP 400.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown; keys are wire field names.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class ConflictError(Exception):
    """Raised when an operation would duplicate a unique value. Maps to HTTP 409.

    Args:
        resource: Model name.
        field: The unique field (or field combination) that would be duplicated.
        value: The conflicting value.
    """

    def __init__(self, resource: str, field: str, value: str | None = None) -> None:
        self.resource = resource
        self.field = field
        self.value = value
        msg = f"{resource} with {field}={value!r} already exists"
        super().__init__(msg)


class TransitionError(Exception):
    """Raised when a workflow action is not allowed from the current status.

    Maps to HTTP 409.
    """

    def __init__(self, report_id, action: str, current: str, reason: str | None = None) -> None:
        msg = f"Cannot '{action}' report {report_id} (status={current})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
        self.report_id = report_id
        self.action = action
        self.current_status = current
        self.reason = reason


class PermissionDeniedError(Exception):
    """Raised when the caller's role may not perform an operation. Maps to HTTP 403."""

    def __init__(self, role: str | None, allowed: tuple[str, ...]) -> None:
        self.role = role
        self.allowed = allowed
        super().__init__(
            f"Role {role or 'anonymous'!r} is not allowed; requires one of {', '.join(allowed)}"
        )


class AuthenticationError(Exception):
    """Raised when credentials do not match a known account. Maps to HTTP 401."""
