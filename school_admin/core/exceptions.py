"""Custom exception classes for the school admin API.

Each error carries the HTTP status it is surfaced as; the translation to a
response happens once, in the application's exception handler.
"""

from typing import Any

from fastapi import status


class SchoolAdminError(Exception):
    """Base exception for the school admin API."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred", **details: Any):
        self.message = message
        self.details = details
        super().__init__(self.message)


class AuthenticationError(SchoolAdminError):
    """Raised when no valid credential accompanies the request."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(SchoolAdminError):
    """Raised when a valid principal lacks a permission, page or role."""
    status_code = status.HTTP_403_FORBIDDEN


class ResourceNotFoundError(SchoolAdminError):
    """Raised when a requested resource is not found."""
    status_code = status.HTTP_404_NOT_FOUND


class ResourceConflictError(SchoolAdminError):
    """Raised when a resource already exists."""
    status_code = status.HTTP_409_CONFLICT


class ValidationError(SchoolAdminError):
    """Raised when a write payload references missing or inconsistent data."""
    status_code = status.HTTP_400_BAD_REQUEST
