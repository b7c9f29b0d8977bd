import pytest

from core.exceptions import (
    ConflictError,
    DashboardAPIException,
    ForbiddenError,
    IdentityMismatchError,
    InvalidInputError,
    LinkIntegrityError,
    NotFoundError,
    TransactionFailureError,
    UnauthorizedError,
    UpstreamError,
    ValidationError,
)


class TestCustomExceptions:
    """Test custom exception classes."""

    @pytest.mark.parametrize(
        "error,status_code,error_code",
        [
            (UnauthorizedError("Invalid credentials"), 401, "UNAUTHORIZED"),
            (ForbiddenError(), 403, "FORBIDDEN"),
            (InvalidInputError("driveFileId", "too short"), 400, "INVALID_INPUT"),
            (ValidationError("tone", "unknown tone"), 400, "VALIDATION_ERROR"),
            (NotFoundError("Caption", "abc"), 404, "NOT_FOUND"),
            (IdentityMismatchError("abc", "gdrive123456789"), 409, "IDENTITY_MISMATCH"),
            (LinkIntegrityError("abc", "gdrive123456789", "gdrive987654321"), 409, "INTEGRITY_ERROR"),
            (ConflictError("stale version"), 409, "CONFLICT"),
            (TransactionFailureError("store_generated_captions"), 500, "TRANSACTION_FAILURE"),
        ],
    )
    def test_status_and_code(self, error, status_code, error_code):
        assert isinstance(error, DashboardAPIException)
        assert error.status_code == status_code
        assert error.error_code == error_code
        assert str(error) == error.message

    def test_invalid_input_details(self):
        error = InvalidInputError("captions", "Captions array is required", {"received": 0})

        assert error.details == {
            "field": "captions",
            "reason": "Captions array is required",
            "received": 0,
        }

    def test_not_found_uses_field_name(self):
        error = NotFoundError("ContentItem", "gdrive123456789", field="driveFileId")

        assert error.details == {"entity": "ContentItem", "driveFileId": "gdrive123456789"}
        assert "driveFileId" in error.message

    def test_identity_mismatch_carries_both_ids(self):
        error = IdentityMismatchError("abc", "gdrive123456789")

        assert error.details == {"contentItemId": "abc", "driveFileId": "gdrive123456789"}
        assert "captions were not linked" in error.message

    def test_link_integrity_carries_provided_and_actual(self):
        error = LinkIntegrityError("abc", "gdrive123456789", "gdrive987654321")

        assert error.details["providedDriveFileId"] == "gdrive123456789"
        assert error.details["actualDriveFileId"] == "gdrive987654321"

    def test_conflict_without_details(self):
        assert ConflictError("duplicate").details == {}


class TestUpstreamError:
    """Provider failures map to the provider's 4xx or to 502."""

    def test_client_error_passes_through(self):
        error = UpstreamError("google_drive", "API key not valid", 403)

        assert error.status_code == 403
        assert error.details == {"service": "google_drive", "providerStatus": 403}

    @pytest.mark.parametrize("provider_status", [None, 500, 503, 302])
    def test_everything_else_is_bad_gateway(self, provider_status):
        assert UpstreamError("facebook", "boom", provider_status).status_code == 502

