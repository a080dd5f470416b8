"""
Domain-specific exceptions for the SchoolHub API.

These exceptions represent persistence and validation failures raised by
the core and are mapped to appropriate HTTP status codes in the API layer.
"""

from typing import Any


class SchoolHubError(Exception):
    """Base exception for all SchoolHub domain errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationFailedError(SchoolHubError):
    """
    Raised when the validation gate rejects a transport model.

    Carries the single reason of the first rule that failed.

    HTTP Status: 400 Bad Request
    """

    pass


class NotFoundError(SchoolHubError):
    """
    Raised by the API layer when a record addressed by id does not exist.

    The repositories themselves report absence as None.

    HTTP Status: 404 Not Found
    """

    pass


class DuplicateKeyError(SchoolHubError):
    """
    Raised when an insert targets an id (or unique value) that already exists.

    HTTP Status: 409 Conflict
    """

    pass


class ReferentialViolationError(SchoolHubError):
    """
    Raised when a referenced foreign id does not exist.

    Examples:
    - Teacher saved with an unknown customer_id
    - Customer saved with an unknown branch_id

    HTTP Status: 400 Bad Request
    """

    pass


class StorageFailureError(SchoolHubError):
    """
    Raised when the underlying store fails.

    Examples:
    - Database unreachable or connection dropped
    - Commit rejected by the database

    Always causes the active transaction scope to roll back.

    HTTP Status: 500 Internal Server Error
    """

    pass


class StorageTimeoutError(StorageFailureError):
    """
    Raised when the store gives up on an operation because it ran too long.

    Examples:
    - PostgreSQL statement_timeout or lock_timeout cancelled the statement
    - SQLite stayed locked past its busy timeout
    - No pooled connection became available in time

    The operation was abandoned, so the transaction scope rolls back as for
    any other storage failure.

    HTTP Status: 408 Request Timeout
    """

    pass


# HTTP Status Code Mapping
ERROR_STATUS_MAP = {
    ValidationFailedError: 400,
    NotFoundError: 404,
    DuplicateKeyError: 409,
    ReferentialViolationError: 400,
    StorageTimeoutError: 408,
    StorageFailureError: 500,
}


def get_status_code(error: Exception) -> int:
    """
    Get the HTTP status code for a given exception.

    Subclasses resolve to the status of their nearest mapped ancestor.

    Args:
        error: The exception instance

    Returns:
        HTTP status code (defaults to 500 for unknown errors)
    """
    for klass in type(error).__mro__:
        if klass in ERROR_STATUS_MAP:
            return ERROR_STATUS_MAP[klass]
    return 500
