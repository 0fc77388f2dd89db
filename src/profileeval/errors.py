"""Error kinds shared by stages, collaborators and the request boundary."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification tag attached where a failure is raised."""

    VALIDATION = "validation"
    TRANSIENT = "transient"
    RATE_LIMIT = "rate_limit"
    NOT_FOUND = "not_found"
    MALFORMED = "malformed"
    CACHE_CORRUPTION = "cache_corruption"
    UNEXPECTED = "unexpected"


class ProfileEvalError(Exception):
    """Base class for classified pipeline errors."""

    kind: ErrorKind = ErrorKind.UNEXPECTED

    @property
    def critical(self) -> bool:
        return self.kind is ErrorKind.RATE_LIMIT


class ValidationError(ProfileEvalError):
    """Raised when a request, filter set or weight vector is malformed."""

    kind = ErrorKind.VALIDATION

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:
        if not self.errors:
            return self.args[0]
        return f"{self.args[0]}: {'; '.join(self.errors)}"


class ExternalServiceError(ProfileEvalError):
    """Failure reported by an external collaborator."""

    def __init__(self, message: str, *, service: str | None = None, status: int | None = None):
        super().__init__(message)
        self.service = service
        self.status = status


class TransientExternalError(ExternalServiceError):
    """Network failure or timeout; retried once by the stage."""

    kind = ErrorKind.TRANSIENT


class RateLimitError(ExternalServiceError):
    """Collaborator quota or rate limit exhausted. Never retried."""

    kind = ErrorKind.RATE_LIMIT

    def __init__(
        self,
        message: str,
        *,
        service: str | None = None,
        status: int | None = None,
        paused: bool = False,
    ):
        super().__init__(message, service=service, status=status)
        self.paused = paused


class NotFoundError(ExternalServiceError):
    """The collaborator has no data for the profile."""

    kind = ErrorKind.NOT_FOUND


class MalformedResponseError(ExternalServiceError):
    """The collaborator answered with something that is not usable data."""

    kind = ErrorKind.MALFORMED


class CacheCorruptionError(ProfileEvalError):
    """A stored cache entry could not be decoded."""

    kind = ErrorKind.CACHE_CORRUPTION


def classify(exc: BaseException) -> ErrorKind:
    """Return the error kind of ``exc`` based on its type only."""

    if isinstance(exc, ProfileEvalError):
        return exc.kind
    if isinstance(exc, (TimeoutError, ConnectionError)):
        return ErrorKind.TRANSIENT
    return ErrorKind.UNEXPECTED


__all__ = [
    "ErrorKind",
    "ProfileEvalError",
    "ValidationError",
    "ExternalServiceError",
    "TransientExternalError",
    "RateLimitError",
    "NotFoundError",
    "MalformedResponseError",
    "CacheCorruptionError",
    "classify",
]
