"""
Unit tests for domain errors and their HTTP status mapping.
"""

import pytest

from schoolhub.core.errors import (
    DuplicateKeyError,
    NotFoundError,
    ReferentialViolationError,
    SchoolHubError,
    StorageFailureError,
    StorageTimeoutError,
    ValidationFailedError,
    get_status_code,
)


class TestSchoolHubError:
    """Tests for the base error."""

    def test_message_and_details(self):
        """Test that message and details are exposed."""
        error = SchoolHubError("Something failed", details={"table": "teachers"})

        assert str(error) == "Something failed"
        assert error.message == "Something failed"
        assert error.details == {"table": "teachers"}

    def test_details_default_to_empty_dict(self):
        """Test that details are never None."""
        assert SchoolHubError("x").details == {}


class TestGetStatusCode:
    """Tests for the exception -> status code mapping."""

    @pytest.mark.parametrize(
        "error_class,status_code",
        [
            (ValidationFailedError, 400),
            (NotFoundError, 404),
            (DuplicateKeyError, 409),
            (ReferentialViolationError, 400),
            (StorageTimeoutError, 408),
            (StorageFailureError, 500),
        ],
    )
    def test_mapped_errors(self, error_class, status_code):
        """Test each domain error's status code."""
        assert get_status_code(error_class("x")) == status_code

    def test_subclass_uses_parent_status(self):
        """Test that subclasses inherit their ancestor's status."""

        class CommitRejectedError(StorageFailureError):
            pass

        assert get_status_code(CommitRejectedError("x")) == 500

    def test_timeout_is_a_storage_failure(self):
        """Test that timeouts are still caught as storage failures."""
        assert isinstance(StorageTimeoutError("x"), StorageFailureError)

    def test_unknown_errors_default_to_500(self):
        """Test that unmapped errors are server errors."""
        assert get_status_code(SchoolHubError("x")) == 500
        assert get_status_code(RuntimeError("x")) == 500
