"""
Custom Exception Classes for the Content Review API.

This module defines the exception hierarchy used across the content review
backend. Every failure a request can end in is one of these classes, so the
error handlers registered in `core.middleware` can render a consistent JSON
body and pick the right HTTP status without inspecting messages.

Key Components:
- `DashboardAPIException`: The base class. It carries a human-readable message,
  a stable `error_code` and an optional `details` dictionary with the context a
  caller needs to self-correct (expected identifiers, counts, field names).
- Specific Exception Classes: One class per failure kind of the caption and
  content workflow (`UnauthorizedError`, `InvalidInputError`, `ValidationError`,
  `NotFoundError`, `IdentityMismatchError`, `LinkIntegrityError`,
  `ConflictError`, `TransactionFailureError`, `UpstreamError`).

Architectural Design:
- Status on the class: each subclass declares its own `status_code`, so the
  mapping from failure kind to HTTP status lives next to the failure kind.
- Safe details: `details` never contains secrets or raw database errors; the
  root cause of server-side failures is logged, not returned.
"""

from typing import Optional, Dict, Any


class DashboardAPIException(Exception):
    """Base exception class for the Content Review API"""

    status_code = 500

    def __init__(
        self,
        message: str,
        error_code: str = "DASHBOARD_API_ERROR",
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class UnauthorizedError(DashboardAPIException):
    """Raised when a secret or bearer token is missing or invalid"""

    status_code = 401

    def __init__(self, reason: str):
        super().__init__(reason, "UNAUTHORIZED", {"reason": reason})


class ForbiddenError(DashboardAPIException):
    """Raised when an authenticated user lacks the required role"""

    status_code = 403

    def __init__(self, reason: str = "Admin privileges required"):
        super().__init__(reason, "FORBIDDEN", {"reason": reason})


class InvalidInputError(DashboardAPIException):
    """Raised for malformed identifiers, missing fields or out-of-range batches"""

    status_code = 400

    def __init__(self, field: str, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Invalid input for '{field}': {reason}",
            "INVALID_INPUT",
            {"field": field, "reason": reason, **(details or {})},
        )


class ValidationError(DashboardAPIException):
    """Raised when caption tone or content fails domain rules"""

    status_code = 400

    def __init__(self, field: str, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            f"Validation failed for field '{field}': {reason}",
            "VALIDATION_ERROR",
            {"field": field, "reason": reason, **(details or {})},
        )


class NotFoundError(DashboardAPIException):
    """Raised when a referenced entity does not exist"""

    status_code = 404

    def __init__(self, entity: str, identifier: str, field: str = "id"):
        super().__init__(
            f"{entity} not found for {field}: {identifier}",
            "NOT_FOUND",
            {"entity": entity, field: identifier},
        )


class IdentityMismatchError(DashboardAPIException):
    """Raised when an internal id and a drive file id do not name the same item"""

    status_code = 409

    def __init__(self, content_item_id: str, drive_file_id: str):
        super().__init__(
            f"contentItemId {content_item_id} does not match driveFileId "
            f"{drive_file_id}; captions were not linked",
            "IDENTITY_MISMATCH",
            {"contentItemId": content_item_id, "driveFileId": drive_file_id},
        )


class LinkIntegrityError(DashboardAPIException):
    """Raised when a resolved item drifts before a write and the write is refused"""

    status_code = 409

    def __init__(self, content_item_id: str, provided: str, actual: Optional[str]):
        super().__init__(
            f"driveFileId {provided} no longer matches content item "
            f"{content_item_id}; captions were not stored",
            "INTEGRITY_ERROR",
            {
                "contentItemId": content_item_id,
                "providedDriveFileId": provided,
                "actualDriveFileId": actual,
            },
        )


class ConflictError(DashboardAPIException):
    """Raised on unique violations, stale versions and illegal status transitions"""

    status_code = 409

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(reason, "CONFLICT", details)


class TransactionFailureError(DashboardAPIException):
    """Raised when a multi-row write was rolled back"""

    status_code = 500

    def __init__(self, operation: str):
        super().__init__(
            f"Operation '{operation}' failed and was rolled back",
            "TRANSACTION_FAILURE",
            {"operation": operation},
        )


class UpstreamError(DashboardAPIException):
    """Raised when the drive or social provider answers with a non-2xx status"""

    def __init__(self, service: str, reason: str, provider_status: Optional[int] = None):
        super().__init__(
            f"Service '{service}' request failed: {reason}",
            "UPSTREAM_ERROR",
            {"service": service, "providerStatus": provider_status},
        )
        # Client errors from the provider are safe to pass through
        if provider_status is not None and 400 <= provider_status < 500:
            self.status_code = provider_status
        else:
            self.status_code = 502

