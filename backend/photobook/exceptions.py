"""
Photobook Backend — Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the moderation workflow.
Why:   Each error kind maps to one HTTP status and one machine-readable code,
       so services raise and the global handlers in main.py format.
How:   Every exception carries a user-facing message and a context dict.
       Context is logged server-side and only exposed where noted.

Exception Hierarchy:
    PhotobookError (base)
    ├── ValidationError          → 400 validation_error
    ├── InvalidActionError       → 400 invalid_action
    ├── PermissionDeniedError    → 403 permission_denied
    ├── NotFoundError            → 404 not_found
    ├── ConflictError            → 409 conflict
    ├── RateLimitExceededError   → 429 rate_limit_exceeded
    └── UnexpectedError          → 500 server_error
"""

from typing import Any, Dict, Optional


class PhotobookError(Exception):
    """
    Base exception for all Photobook application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PhotobookError):
    """
    Raised when client input is missing or malformed.

    Example response:
        {
            "success": false,
            "error": "email is required for photographer registrations",
            "code": "validation_error",
            "details": {"field": "email"}
        }
    """

    status_code = 400
    code = "validation_error"

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


class InvalidActionError(PhotobookError):
    """
    Raised when an action is not legal from the submission's current status.

    When:  `approve` on an already approved or deleted submission, `unblock`
           on something that was never suspended, placement requests on
           registrations, and so on.
    HTTP:  400, the client asked for an impossible state change.
    """

    status_code = 400
    code = "invalid_action"

    def __init__(
        self,
        action: str,
        current_status: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"Action '{action}' is not allowed"
            if current_status:
                message = f"Action '{action}' is not allowed from status '{current_status}'"
        ctx = context or {}
        ctx["action"] = action
        if current_status:
            ctx["current_status"] = current_status
        super().__init__(message=message, context=ctx)
        self.action = action
        self.current_status = current_status


class PermissionDeniedError(PhotobookError):
    """
    Raised when the caller's AuthContext lacks the capability for an operation.

    The AuthContext itself is populated upstream; this error only reports
    that the claims it carries are insufficient.
    """

    status_code = 403
    code = "permission_denied"

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(PhotobookError):
    """
    Raised when a requested submission or notification does not exist.

    SQLAlchemy returns None for missing rows; services convert that None into
    this exception so routes never deal with it.
    """

    status_code = 404
    code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class ConflictError(PhotobookError):
    """
    Raised when a unique key is already taken.

    When:  A photographer registers with an email or mobile number that an
           existing registration already uses.
    """

    status_code = 409
    code = "conflict"

    def __init__(
        self,
        message: str = "A record with the same unique key already exists",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class RateLimitExceededError(PhotobookError):
    """Raised when a client exceeds the per-IP write rate limit."""

    status_code = 429
    code = "rate_limit_exceeded"

    def __init__(
        self,
        retry_after: int = 60,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = (
            f"Rate limit exceeded. Please wait {retry_after} seconds before making more requests."
        )
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(message=message, context=ctx)
        self.retry_after = retry_after


class UnexpectedError(PhotobookError):
    """
    Raised when the store is unavailable or a write fails unexpectedly.

    Security Note:
        The client always gets a generic message. The original exception type
        and identifiers go to the server log through `context`.
    """

    status_code = 500
    code = "server_error"

    def __init__(
        self,
        message: str = "An internal error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
