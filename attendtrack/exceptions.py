"""Domain error taxonomy.

Services raise these; the handlers registered in ``attendtrack.main`` turn
them into ``{"message": ...}`` JSON responses with the matching status code.
"""


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400
    default_message = "Validation error"


class AuthenticationError(DomainError):
    """Raised when credentials are missing or invalid."""

    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Not found"


class InvalidTokenError(NotFoundError):
    """A QR token that does not resolve to an active class session.

    Unknown and ended sessions are reported the same way.
    """

    default_message = "Invalid or expired QR code"


class NotEnrolledError(AuthorizationError):
    default_message = "You are not enrolled in this class"


class DuplicateCheckInError(DomainError):
    status_code = 400
    default_message = "Attendance already recorded"


class InternalError(DomainError):
    status_code = 500
    default_message = "Internal server error"
