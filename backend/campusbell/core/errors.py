"""
Centralized error handling for notification service failures.
Exception types raised by services plus a rule table so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

from fastapi import HTTPException

# ---------------------------------------------------------------------------
# Service exceptions
# ---------------------------------------------------------------------------


class CampusbellError(Exception):
    """Base class for errors raised by campusbell services."""


class InvalidNotificationError(CampusbellError):
    """Bad input when creating a notification (unknown type/priority, no recipients, ...)."""


class NotificationNotFoundError(CampusbellError):
    """No notification with the given id."""


# ---------------------------------------------------------------------------
# Constants: status codes
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_UNAUTHORIZED = 401
STATUS_NOT_FOUND = 404
STATUS_INTERNAL_ERROR = 500

MSG_MISSING_USER = "Missing X-User-Id header"


# ---------------------------------------------------------------------------
# Error rules: (exception type, status_code). First match wins.
# Add new rules here instead of scattering checks in routes.
# ---------------------------------------------------------------------------

SERVICE_ERROR_RULES: list[tuple[type[Exception], int]] = [
    (InvalidNotificationError, STATUS_BAD_REQUEST),
    (NotificationNotFoundError, STATUS_NOT_FOUND),
]


def service_error_to_http(exc: Exception) -> HTTPException:
    """
    Map an exception from a service call into an HTTPException.
    Uses SERVICE_ERROR_RULES for known error types; otherwise returns 500 with the exception message.
    """
    for exc_type, status_code in SERVICE_ERROR_RULES:
        if isinstance(exc, exc_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=STATUS_INTERNAL_ERROR, detail=str(exc))
