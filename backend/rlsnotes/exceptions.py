"""
RLS Notes: Custom Exception Hierarchy
=======================================

What:  Application-specific exceptions for the error scenarios of the notes routes.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured responses with the correct HTTP status codes.
Who:   Raised by the session provider, services and HTTP helpers.

Exception Hierarchy:
    RlsNotesError (base)
    ├── AuthenticationError       → 401 Unauthorized (session cookie cleared)
    ├── MethodNotAllowedError     → 405 Method Not Allowed
    ├── DatabaseError             → 500 Internal Server Error
    ├── InvariantError            → 500 (programming/routing defect)
    └── UnexpectedResponseError   → 500 (boundary saw a status it does not handle)

Expected alternate outcomes of the note operations (found, not found, deleted,
delete failed) are NOT exceptions; they are returned as `NoteViewOutcome`
and `NoteDeleteOutcome` values. See schemas/note.py.
"""

from typing import Any, Dict, Optional


class RlsNotesError(Exception):
    """
    Base exception for all application errors.

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


class AuthenticationError(RlsNotesError):
    """
    Raised when the request carries no usable auth session.

    When:    Cookie missing, signature invalid/expired, or the refresh token
             was rejected by the session store.
    HTTP:    401 Unauthorized. The handler also clears the session cookie so
             the browser stops replaying a dead session.
    """

    def __init__(
        self,
        message: str = "Authentication required",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class MethodNotAllowedError(RlsNotesError):
    """
    Raised when a request reaches an action with the wrong method.

    HTTP:    405 Method Not Allowed, with an `Allow` header listing `allowed`.
    Raised before any session or data access happens.
    """

    def __init__(
        self,
        method: str,
        allowed: str = "DELETE",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["method"] = method
        ctx["allowed"] = allowed
        super().__init__(
            message=f"Method {method} is not allowed here. Expected {allowed}.",
            context=ctx,
        )
        self.method = method
        self.allowed = allowed


class DatabaseError(RlsNotesError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic.
        SQL, constraint names and tokens are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class InvariantError(RlsNotesError):
    """A precondition that routing guarantees did not hold (e.g. empty note id)."""

    def __init__(self, message: str = "Invariant failed"):
        super().__init__(message=message)


class UnexpectedResponseError(RlsNotesError):
    """
    Raised by the catch boundary for a status it was not built to render.

    Escalates to the generic error boundary instead of rendering something wrong.
    """

    def __init__(self, status_code: int):
        super().__init__(
            message=f"Unexpected caught response with status: {status_code}",
            context={"status_code": status_code},
        )
        self.status_code = status_code
