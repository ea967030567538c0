"""Domain error taxonomy.

Services raise these; routers translate them into HTTP responses using
``status_code``. The message is user-facing.
"""


class SchedulingError(Exception):
    """Base exception for domain errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SchedulingError):
    """Missing or malformed input."""

    status_code = 400


class AuthError(SchedulingError):
    """Missing, unknown, inactive or expired credential."""

    status_code = 401


class AuthorizationError(SchedulingError):
    """Credential is valid but lacks the required scope."""

    status_code = 403


class NotFoundError(SchedulingError):
    """Resource is absent or belongs to another organization."""

    status_code = 404


class ConflictError(SchedulingError):
    """Interval overlap or uniqueness violation."""

    status_code = 409


class UnexpectedError(SchedulingError):
    """Any other failure."""

    status_code = 500
