"""
PlaceShare Backend — Custom Exception Hierarchy
=================================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by services, the entity store and the auth dependency;
       caught by global handlers.

Exception Hierarchy:
    PlaceShareError (base)
    ├── ValidationError          → 422 Unprocessable Entity
    ├── NotFoundError            → 404 Not Found
    ├── AuthenticationError      → 401 Unauthorized (no valid token)
    ├── AuthorizationError       → 401 Unauthorized (not the owner)
    ├── PersistenceError         → 500 Internal Server Error
    └── FileStorageError         → 500 Internal Server Error

None of these are retried. A failed store transaction is rolled back and
the whole operation fails.
"""

from typing import Any, Dict, Optional


class PlaceShareError(Exception):
    """
    Base exception for all PlaceShare application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PlaceShareError):
    """
    Raised when client input has the wrong shape.

    When:    Malformed or missing coordinates, unsupported upload type,
             empty or oversized upload.
    HTTP:    422 Unprocessable Entity

    Example response:
        {
            "error": "validation_error",
            "message": "Invalid coordinates data.",
            "details": {"field": "coordinates"}
        }
    """

    def __init__(
        self,
        message: str = "Invalid inputs passed, please check your data.",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(PlaceShareError):
    """
    Raised when a referenced place or user does not exist.

    HTTP:    404 Not Found

    The store returns None for missing records; services convert that
    into NotFoundError so HTTP concerns stay out of the service logic.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"Could not find {resource} for the provided id '{resource_id}'"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class AuthenticationError(PlaceShareError):
    """
    Raised when a mutating request carries no usable bearer token.

    HTTP:    401 Unauthorized (with WWW-Authenticate: Bearer)
    """

    def __init__(
        self,
        message: str = "Authentication failed.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthorizationError(PlaceShareError):
    """
    Raised when an authenticated requester is not allowed to mutate a place.

    What:    Single-owner model: only the place's creator may update or delete it.
    HTTP:    401 Unauthorized (distinct error code from not_authenticated)
    """

    def __init__(
        self,
        action: str = "modify",
        resource: str = "place",
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"You are not allowed to {action} this {resource}."
        ctx = context or {}
        ctx["action"] = action
        super().__init__(message=message, context=ctx)
        self.action = action


class PersistenceError(PlaceShareError):
    """
    Raised when a store operation or transaction fails.

    When:    Connection lost mid-query, constraint violation, deadlock,
             failed commit.
    HTTP:    500 Internal Server Error

    Security Note:
        The message returned to the client is always generic.
        Driver errors are kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "Something went wrong, please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(PlaceShareError):
    """
    Raised when writing an uploaded image to disk fails.

    When:    Disk full, permission denied, directory not writable.
    HTTP:    500 Internal Server Error

    Removing images never raises this; cleanup failures are only logged.
    """

    def __init__(
        self,
        message: str = "Failed to save uploaded image. Please try again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
