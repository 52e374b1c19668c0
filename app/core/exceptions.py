"""
Application Error Taxonomy

Every service raises one of these; the API layer turns them into the
standard ``{"success": false, "error": ...}`` envelope with the status
code carried by the exception.
"""

from typing import Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Missing or malformed input, including uniqueness conflicts."""
    status_code = 400
    default_message = "Invalid request"


class DuplicateIdentity(ValidationError):
    default_message = "Restaurant with this email already exists"


class DuplicateOrderCode(ValidationError):
    default_message = "Could not allocate a unique order code"


class NotFound(AppError):
    status_code = 404
    default_message = "Resource not found"


class InvalidCredential(AppError):
    status_code = 401
    default_message = "Invalid password"


class RenderError(AppError):
    status_code = 500
    default_message = "Failed to generate bill"
