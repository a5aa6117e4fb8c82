"""
Exception hierarchy for racq.

RacQError
├── NotAuthenticatedError   — operation needs a token and none is held
├── TokenStorageError       — token storage I/O failure (wraps original exception)
└── QueueServiceError       — queue service answered with a failure status
    ├── AuthenticationError
    ├── PermissionDeniedError
    ├── RateLimitError
    ├── ValidationError
    ├── NotFoundError
    │   ├── QueueNotFoundError
    │   ├── MessageNotFoundError
    │   └── ClaimNotFoundError
    ├── ServiceUnavailableError
    └── UnexpectedStatusError

Transport failures (DNS, refused connections, timeouts) are not part of this
hierarchy: they surface as the original httpx exception.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Classification of a failed queue service response."""

    AUTHENTICATION = "authentication"
    PERMISSION_DENIED = "permission_denied"
    RATE_LIMITED = "rate_limited"
    VALIDATION = "validation"
    QUEUE_NOT_FOUND = "queue_not_found"
    MESSAGE_NOT_FOUND = "message_not_found"
    CLAIM_NOT_FOUND = "claim_not_found"
    SERVICE_UNAVAILABLE = "service_unavailable"
    UNEXPECTED_STATUS = "unexpected_status"


class RacQError(Exception):
    """Base class for all racq exceptions."""


class NotAuthenticatedError(RacQError):
    """Raised when an operation is issued before a token has been obtained."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"{operation}: not authenticated, call authenticate() first")


class TokenStorageError(RacQError):
    """
    Wraps an underlying I/O failure from a token storage adapter.

    Attributes
    ----------
    cause : Exception
        The original exception from the storage backend.
    """

    def __init__(self, message: str, cause: Exception) -> None:
        self.cause = cause
        super().__init__(f"{message}: {cause}")


class QueueServiceError(RacQError):
    """
    The queue service rejected a request.

    Attributes
    ----------
    operation   : name of the client operation that failed (e.g. "claimMessages")
    status_code : HTTP status code returned by the service
    kind        : ErrorKind the status code was classified as
    """

    kind: ErrorKind = ErrorKind.UNEXPECTED_STATUS

    def __init__(self, message: str, operation: str, status_code: int) -> None:
        self.operation = operation
        self.status_code = status_code
        super().__init__(message)


class AuthenticationError(QueueServiceError):
    kind = ErrorKind.AUTHENTICATION


class PermissionDeniedError(QueueServiceError):
    kind = ErrorKind.PERMISSION_DENIED


class RateLimitError(QueueServiceError):
    kind = ErrorKind.RATE_LIMITED


class ValidationError(QueueServiceError):
    """Payload or parameters rejected by the service (batch size, ttl bounds...)."""

    kind = ErrorKind.VALIDATION


class NotFoundError(QueueServiceError):
    """Base for the resource-not-found family."""


class QueueNotFoundError(NotFoundError):
    kind = ErrorKind.QUEUE_NOT_FOUND


class MessageNotFoundError(NotFoundError):
    kind = ErrorKind.MESSAGE_NOT_FOUND


class ClaimNotFoundError(NotFoundError):
    """The claim expired or was released. This is the only signal of expiry."""

    kind = ErrorKind.CLAIM_NOT_FOUND


class ServiceUnavailableError(QueueServiceError):
    kind = ErrorKind.SERVICE_UNAVAILABLE


class UnexpectedStatusError(QueueServiceError):
    kind = ErrorKind.UNEXPECTED_STATUS


ERROR_TYPES: dict[ErrorKind, type[QueueServiceError]] = {
    cls.kind: cls
    for cls in (
        AuthenticationError,
        PermissionDeniedError,
        RateLimitError,
        ValidationError,
        QueueNotFoundError,
        MessageNotFoundError,
        ClaimNotFoundError,
        ServiceUnavailableError,
        UnexpectedStatusError,
    )
}
