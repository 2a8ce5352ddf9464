"""Custom exception classes for the Attendance Access Service.

Every failure surfaced to a caller carries a stable ``kind`` and a
human-readable message. The HTTP layer maps each kind to a status code.
"""


class AccessServiceError(Exception):
    """Base exception for all Attendance Access Service errors."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str):
        """Initialize the exception.

        Args:
            message: Human-readable description of the failure.
        """
        self.message = message
        super().__init__(message)


class UnauthenticatedError(AccessServiceError):
    """Raised when no caller identity is present."""

    kind = "unauthenticated"
    status_code = 401


class PermissionDeniedError(AccessServiceError):
    """Raised when the caller lacks the role, permission or scope."""

    kind = "permission-denied"
    status_code = 403


class InvalidArgumentError(AccessServiceError):
    """Raised when a required field is missing or malformed."""

    kind = "invalid-argument"
    status_code = 400


class NotFoundError(AccessServiceError):
    """Raised when a referenced entity does not exist."""

    kind = "not-found"
    status_code = 404


class FailedPreconditionError(AccessServiceError):
    """Raised when an invite was already used or revoked."""

    kind = "failed-precondition"
    status_code = 409


class DeadlineExceededError(AccessServiceError):
    """Raised when an invite has expired."""

    kind = "deadline-exceeded"
    status_code = 410


class InternalError(AccessServiceError):
    """Raised when a collaborator (store, transport) fails."""

    kind = "internal"
    status_code = 500


class AlreadyExistsError(AccessServiceError):
    """Raised when creating an entity whose unique key is taken."""

    kind = "already-exists"
    status_code = 409
