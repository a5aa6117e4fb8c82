"""
Error classifier — map (operation, HTTP status) to a typed QueueServiceError.

Lookup order
------------
1. SHARED_ERRORS: statuses that mean the same thing for every operation
   (bad or expired token, throttling, service outage).
2. OPERATION_ERRORS[operation]: statuses whose meaning depends on the
   resource being addressed (a 404 is "queue not found" for getQueueStats
   but "claim not found" for queryClaims).
3. Fallback: UnexpectedStatusError("Status code: N").

classify() is pure: the same (operation, status) always yields an equal error.
"""
from __future__ import annotations

from enum import Enum

from racq.domain.errors import ERROR_TYPES, ErrorKind, QueueServiceError


class Operation(str, Enum):
    """Client operations that can fail with a classified status."""

    AUTHENTICATE = "authenticate"
    LIST_QUEUES = "listQueues"
    CREATE_QUEUE = "createQueue"
    DELETE_QUEUE = "deleteQueue"
    QUEUE_EXISTS = "queueExists"
    GET_QUEUE_STATS = "getQueueStats"
    SET_QUEUE_METADATA = "setQueueMetadata"
    GET_QUEUE_METADATA = "getQueueMetadata"
    POST_MESSAGES = "postMessages"
    GET_MESSAGES = "getMessages"
    GET_MESSAGES_BY_ID = "getMessagesById"
    DELETE_MESSAGES = "deleteMessages"
    CLAIM_MESSAGES = "claimMessages"
    QUERY_CLAIMS = "queryClaims"
    UPDATE_CLAIMS = "updateClaims"
    RELEASE_CLAIMS = "releaseClaims"


ErrorEntry = tuple[ErrorKind, str]

SHARED_ERRORS: dict[int, ErrorEntry] = {
    401: (ErrorKind.AUTHENTICATION, "Unauthorized: the auth token is missing, invalid or expired"),
    429: (ErrorKind.RATE_LIMITED, "Too many requests: rate limit exceeded"),
    500: (ErrorKind.SERVICE_UNAVAILABLE, "Internal server error"),
    503: (ErrorKind.SERVICE_UNAVAILABLE, "Service unavailable"),
}

_QUEUE_NOT_FOUND: ErrorEntry = (ErrorKind.QUEUE_NOT_FOUND, "Queue not found")
_CLAIM_NOT_FOUND: ErrorEntry = (
    ErrorKind.CLAIM_NOT_FOUND,
    "Claim not found: it has expired or been released",
)

OPERATION_ERRORS: dict[Operation, dict[int, ErrorEntry]] = {
    Operation.AUTHENTICATE: {
        400: (ErrorKind.AUTHENTICATION, "Bad request: malformed credentials"),
        403: (ErrorKind.AUTHENTICATION, "Forbidden: user is disabled"),
        404: (ErrorKind.AUTHENTICATION, "Identity endpoint not found"),
    },
    Operation.LIST_QUEUES: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid list parameters"),
    },
    Operation.CREATE_QUEUE: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid queue name"),
    },
    Operation.DELETE_QUEUE: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid queue name"),
    },
    Operation.QUEUE_EXISTS: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid queue name"),
    },
    Operation.GET_QUEUE_STATS: {
        404: _QUEUE_NOT_FOUND,
    },
    Operation.SET_QUEUE_METADATA: {
        400: (ErrorKind.VALIDATION, "Bad request: malformed metadata"),
        404: _QUEUE_NOT_FOUND,
        413: (ErrorKind.VALIDATION, "Metadata too large"),
    },
    Operation.GET_QUEUE_METADATA: {
        404: _QUEUE_NOT_FOUND,
    },
    Operation.POST_MESSAGES: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid messages (batch of 1-10, ttl of at least 60)"),
        404: _QUEUE_NOT_FOUND,
        413: (ErrorKind.VALIDATION, "Messages too large"),
    },
    Operation.GET_MESSAGES: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid query parameters"),
        404: _QUEUE_NOT_FOUND,
    },
    Operation.GET_MESSAGES_BY_ID: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid message ids"),
        404: (ErrorKind.MESSAGE_NOT_FOUND, "Message not found"),
    },
    Operation.DELETE_MESSAGES: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid message ids"),
        403: (ErrorKind.PERMISSION_DENIED, "Forbidden: message is claimed, a matching claim id is required"),
        404: (ErrorKind.MESSAGE_NOT_FOUND, "Message not found"),
    },
    Operation.CLAIM_MESSAGES: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid claim parameters (limit 1-20, ttl and grace 60-43200)"),
        404: _QUEUE_NOT_FOUND,
    },
    Operation.QUERY_CLAIMS: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid claim id"),
        404: _CLAIM_NOT_FOUND,
    },
    Operation.UPDATE_CLAIMS: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid claim parameters (ttl and grace 60-43200)"),
        404: _CLAIM_NOT_FOUND,
    },
    Operation.RELEASE_CLAIMS: {
        400: (ErrorKind.VALIDATION, "Bad request: invalid claim id"),
    },
}


def lookup(operation: Operation, status_code: int) -> ErrorEntry:
    """Resolve (operation, status) to an (ErrorKind, message) pair."""
    entry = SHARED_ERRORS.get(status_code)
    if entry is None:
        entry = OPERATION_ERRORS.get(operation, {}).get(status_code)
    if entry is None:
        entry = (ErrorKind.UNEXPECTED_STATUS, f"Status code: {status_code}")
    return entry


def classify(operation: Operation, status_code: int) -> QueueServiceError:
    """Build the typed error for a failed response."""
    kind, message = lookup(operation, status_code)
    return ERROR_TYPES[kind](message, operation.value, status_code)
