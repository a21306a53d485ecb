"""
Inkwell Backend - Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions for every error a handler can report.
How:   Each exception carries a message, an optional context dict and a
       class-level `kind`. Services raise them; the exception handlers
       registered in main.py map `kind` to an HTTP status and render the
       JSON error body. Nothing below this module knows about status codes.

Exception Hierarchy:
    BlogError (base, kind=internal)
    ├── BadRequestError      kind=bad_request     (malformed identifier)
    ├── AuthenticationError  kind=unauthorized    (missing/invalid token)
    ├── ForbiddenError       kind=forbidden       (authenticated, not owner)
    ├── NotFoundError        kind=not_found       (entity absent)
    ├── ValidationError      kind=unprocessable   (missing fields, size limits,
    │                                              business-rule violations)
    ├── FileStorageError     kind=internal        (filesystem failure)
    └── DatabaseError        kind=internal        (unexpected DB failure)
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Transport-neutral classification of an application error."""

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    UNPROCESSABLE = "unprocessable"
    INTERNAL = "internal"


class BlogError(Exception):
    """
    Base exception for all Inkwell application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class BadRequestError(BlogError):
    """Raised for a malformed or empty identifier."""

    kind = ErrorKind.BAD_REQUEST


class AuthenticationError(BlogError):
    """
    Raised by the auth dependency when a protected route is called without a
    usable bearer token.
    """

    kind = ErrorKind.UNAUTHORIZED

    def __init__(
        self,
        message: str = "Unauthorized. Invalid token.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ForbiddenError(BlogError):
    """Raised when the caller is authenticated but does not own the resource."""

    kind = ErrorKind.FORBIDDEN


class NotFoundError(BlogError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing rows; the service layer converts that
    None into this exception.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: str = "The requested resource was not found",
        resource: Optional[str] = None,
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource:
            ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ValidationError(BlogError):
    """
    Raised when client input fails validation.

    When:  Missing fields, upload size exceeded, duplicate email, password
           rules, wrong credentials.
    """

    kind = ErrorKind.UNPROCESSABLE

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class FileStorageError(BlogError):
    """
    Raised when file system operations fail.

    When:  Disk full, permission denied, or an old avatar that exists but
           cannot be removed.
    """

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(BlogError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the original error
    is kept in `context` for the server log.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
