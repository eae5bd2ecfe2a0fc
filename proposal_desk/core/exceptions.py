"""Application exceptions shared by the API, services and REST client."""

from typing import List, Optional

from pydantic import BaseModel


class FieldError(BaseModel):
    """A validation problem tied to one field."""
    field: str
    message: str


class AppError(Exception):
    """Base exception for application errors carrying an HTTP status."""
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class BadRequestError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ForbiddenError(AppError):
    status_code = 403


class ValidationError(AppError):
    """Raised when request data fails validation; carries per-field errors."""
    status_code = 422

    def __init__(self, message: str, errors: Optional[List[FieldError]] = None):
        super().__init__(message)
        self.errors = errors or []


class UnsupportedMediaError(AppError):
    status_code = 415


class PayloadTooLargeError(AppError):
    status_code = 413


class StorageError(AppError):
    """Raised when a database or storage operation fails."""
    status_code = 502


# ===========================================
# Client-side (REST client) errors
# ===========================================

class ApiError(Exception):
    """Raised by the REST client when a call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ServerValidationError(ApiError):
    """The backend rejected the request with structured field errors."""

    def __init__(self, message: str, errors: List[FieldError]):
        super().__init__(message, status_code=422)
        self.errors = errors
