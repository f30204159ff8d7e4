"""
Domain errors raised by the bottling services.

Each error carries the HTTP status it maps to at the request boundary, so
routes can let them propagate and the application-level handler renders a
``{"detail", "code"}`` body.
"""
from fastapi import status


class BottlingError(Exception):
    """Base class for errors raised by the conversion engine."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "bottling_error"
    default_detail = "Bottling request failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(BottlingError):
    """Malformed or missing input."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"
    default_detail = "Invalid request"


class NotFound(BottlingError):
    """A lot, component, shop or product is absent or inactive."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_detail = "Resource not found"


class InsufficientStock(BottlingError):
    status_code = status.HTTP_409_CONFLICT
    code = "insufficient_stock"
    default_detail = "Insufficient stock"


class InsufficientBulkVolume(InsufficientStock):
    code = "insufficient_bulk_volume"
    default_detail = "Insufficient bulk quantity"


class InsufficientComponentStock(InsufficientStock):
    code = "insufficient_component_stock"
    default_detail = "Insufficient bottle stock"


class InvalidConfiguration(BottlingError):
    """No pricing entry, or a component size outside the configured allow-list."""

    # Starlette renamed the 422 constant; the literal works on every release.
    status_code = 422
    code = "invalid_configuration"
    default_detail = "Invalid category or bottle size combination"


class TransactionFailure(BottlingError):
    """Unexpected database error inside an atomic conversion; the transaction was rolled back."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "transaction_failure"
    default_detail = "Server error during bottling"
