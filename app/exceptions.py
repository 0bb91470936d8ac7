"""Custom exceptions for the StoryNest application.

Services raise these instead of ``HTTPException`` so the same code can be
driven from routes, scripts and tests. ``app.main`` decodes ``kind`` into an
HTTP status exactly once.
"""
import enum
from typing import Optional


class ErrorKind(str, enum.Enum):
    VALIDATION = "validation_error"
    AUTH = "auth_error"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    LIMIT_EXCEEDED = "limit_exceeded"
    UPSTREAM = "upstream_error"


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTH: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.LIMIT_EXCEEDED: 429,
    ErrorKind.UPSTREAM: 500,
}


class AppError(Exception):
    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, message: str, status_code: Optional[int] = None, **extra):
        super().__init__(message)
        self.message = message
        self._status_code = status_code
        self.extra = extra

    @property
    def status_code(self) -> int:
        return self._status_code or STATUS_BY_KIND[self.kind]


class InvalidRequestError(AppError):
    kind = ErrorKind.VALIDATION


class EmptyContentError(InvalidRequestError):
    def __init__(self, message: str = "Comment cannot be empty"):
        super().__init__(message)


class AuthError(AppError):
    kind = ErrorKind.AUTH


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND


class ConflictError(AppError):
    kind = ErrorKind.CONFLICT


class LimitExceededError(AppError):
    kind = ErrorKind.LIMIT_EXCEEDED


class DailyShareLimitError(LimitExceededError):
    def __init__(self, message: str = "You can only share 1 story per day"):
        super().__init__(message)


class UpstreamError(AppError):
    kind = ErrorKind.UPSTREAM

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message)
        self.cause = cause


class AIServiceError(UpstreamError):
    """Raised when the text-completion provider fails with a non-recoverable error."""


class BillingError(UpstreamError):
    """Raised when the checkout provider rejects or fails a request."""
