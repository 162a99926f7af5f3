"""Error taxonomy for attendance operations.

Every error carries the HTTP status it maps to so the API layer can render
it through a single handler. Services raise these; only the scan verifier
folds them into a plain success/failure result for students.
"""


class AttendanceError(Exception):
    """Base class for all domain errors."""

    status_code = 400

    def __init__(self, message: str, detail: str = None):
        super().__init__(message)
        self.message = message
        self.detail = detail


class ValidationError(AttendanceError):
    """Malformed input, raised before any storage access."""
    status_code = 400


class AuthorizationError(AttendanceError):
    """Caller lacks the role or ownership required."""
    status_code = 403


class NotFoundError(AttendanceError):
    """Referenced entity does not exist."""
    status_code = 404


class InvalidStateError(AttendanceError):
    """Operation not legal in the current lifecycle state."""
    status_code = 409


class ConflictError(AttendanceError):
    """A uniqueness constraint was violated by a concurrent writer."""
    status_code = 409


class InfrastructureError(AttendanceError):
    """Storage or network unavailable."""
    status_code = 503

    def __init__(self, detail: str = None):
        super().__init__('Service temporarily unavailable. Please try again.', detail)


class AuthenticationError(AuthorizationError):
    """Credentials missing or wrong."""
    status_code = 401
