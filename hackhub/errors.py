"""
Error taxonomy shared by the domain services and the routers.

Every expected failure is one of these; the app registers a single handler
that maps them to a JSON ``{"detail": ...}`` response with the status code
carried by the class. Not-found and permission-denied stay distinct so a
client can tell "this doesn't exist" from "you can't do this".
"""

from typing import Optional

from fastapi import status


class HackHubError(Exception):
    """Base class for expected, client-facing failures."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotFoundError(HackHubError):
    """The requested resource id does not resolve to a stored row."""

    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, resource: str, message: Optional[str] = None) -> None:
        self.resource = resource
        super().__init__(message or f"{resource} not found")


class PermissionDeniedError(HackHubError):
    """The resource exists but the caller may not perform the operation."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class ConflictError(HackHubError):
    """The operation would break a uniqueness or single-occurrence rule."""

    status_code = status.HTTP_409_CONFLICT


class ValidationError(HackHubError):
    """Malformed or out-of-range input."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(HackHubError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)
