"""
Canonical error taxonomy of the tasks service.

Every failure surfaced to a caller is one of the five ServiceError subclasses
below. The HTTP layer turns them into a JSON body of the form
``{"error": <code>, "message": <text>}`` with the matching status code.
"""
from __future__ import annotations

from fastapi import status


class ServiceError(Exception):
    """Base class for errors reported to callers."""

    code: str = "Internal"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class Unauthenticated(ServiceError):
    code = "Unauthenticated"
    status_code = status.HTTP_401_UNAUTHORIZED


class PermissionDenied(ServiceError):
    code = "PermissionDenied"
    status_code = status.HTTP_403_FORBIDDEN


class InvalidArgument(ServiceError):
    code = "InvalidArgument"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ServiceError):
    code = "NotFound"
    status_code = status.HTTP_404_NOT_FOUND


class Internal(ServiceError):
    code = "Internal"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
