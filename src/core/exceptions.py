"""Domain exceptions and their HTTP mapping."""

from typing import Optional
from fastapi import status


class AppError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_SERVER_ERROR"

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(AppError):
    """Invalid input, rejected before any store call."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"


class AuthenticationError(AppError):
    """Missing or invalid bearer token."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"


class NotFoundError(AppError):
    """Unknown file or chunk, or one the caller does not own."""

    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(AppError):
    """Operation not valid for the upload's current state."""

    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class StorageUnavailableError(AppError):
    """Blob store or metadata store call failed. Retryable."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "STORAGE_UNAVAILABLE"
