"""Error taxonomy shared by services and the HTTP layer.

Services raise these; the HTTP layer translates them once, in
``eventhub.main``, into JSON responses with the carried status code.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable error codes returned to API clients."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    CONFLICT = "CONFLICT"
    ALREADY_JOINED = "ALREADY_JOINED"
    SEATS_FULL = "SEATS_FULL"
    EVENT_ENDED = "EVENT_ENDED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"


class EventHubError(Exception):
    """Base error with code, user-safe message and HTTP status."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(EventHubError):
    """Missing or malformed input. Not retryable."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class NotFoundError(EventHubError):
    code = ErrorCode.NOT_FOUND
    status_code = 404


class NotAuthorizedError(EventHubError):
    """Caller is not authenticated or lacks the identity the action needs."""

    code = ErrorCode.NOT_AUTHORIZED
    status_code = 401


class ForbiddenError(EventHubError):
    code = ErrorCode.FORBIDDEN
    status_code = 403


class ConflictError(EventHubError):
    code = ErrorCode.CONFLICT
    status_code = 409


class AlreadyJoinedError(ConflictError):
    code = ErrorCode.ALREADY_JOINED

    def __init__(self, message: str = "Already joined"):
        super().__init__(message)


class SeatsFullError(EventHubError):
    code = ErrorCode.SEATS_FULL
    status_code = 400

    def __init__(self, message: str = "No seats available"):
        super().__init__(message)


class EventEndedError(EventHubError):
    code = ErrorCode.EVENT_ENDED
    status_code = 400

    def __init__(self, message: str = "Event already finished"):
        super().__init__(message)


class TokenExpiredError(EventHubError):
    code = ErrorCode.TOKEN_EXPIRED
    status_code = 410


class TransientDependencyError(EventHubError):
    """An external collaborator (email, storage) is unavailable."""

    code = ErrorCode.DEPENDENCY_UNAVAILABLE
    status_code = 503
