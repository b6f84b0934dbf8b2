# catalog_engine/core/errors.py
"""
Error taxonomy for catalog mutations.

Services raise these; the API layer translates them into HTTP responses
with a single handler registered in main.py. Every failure a caller can
observe is exactly one of these kinds.
"""

from fastapi import status


class CatalogError(Exception):
    """Base class for all catalog mutation errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Malformed or missing input. Raised before anything is written."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(CatalogError):
    """A referenced category, product, variant or change request is absent."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(CatalogError):
    """Uniqueness violation, dependent-inventory block or non-pending transition."""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenError(CatalogError):
    """The actor is not allowed to perform a privileged-only operation."""

    status_code = status.HTTP_403_FORBIDDEN


class InternalError(CatalogError):
    """Unexpected store or media failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
