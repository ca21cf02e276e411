"""
Scan Barang Backend — Custom Exception Hierarchy
==================================================

What:  Application-specific exceptions for every failure the API reports.
Why:   Services raise typed errors; one global handler (main.py) turns them
       into `{"error": ..., "details": ...}` bodies with the right status.
How:   Each class carries an HTTP status, a client-safe message, an optional
       `details` string returned to the client, and a `context` dict that is
       logged but never returned.

Exception Hierarchy:
    ScanBarangError (base)                  → 500
    ├── ValidationError                     → 400 Bad Request
    │   └── DuplicateEmailError             → 400
    ├── UnauthenticatedError                → 401 Unauthorized (no bearer token)
    ├── InvalidCredentialsError             → 401 (wrong password)
    ├── InvalidTokenError                   → 403 Forbidden (token rejected)
    ├── EmailNotVerifiedError               → 403
    ├── NotFoundError                       → 404 (also "exists but not yours")
    ├── ConflictError                       → 409 (duplicate scan in an event)
    ├── UpstreamError                       → mapped status, default 500
    ├── DatabaseError                       → 500
    ├── FileStorageError                    → 500
    └── RenderError                         → 500 (label/QR composition)
"""

from typing import Any, Dict, Optional


class ScanBarangError(Exception):
    """
    Base exception for all Scan Barang application errors.

    Attributes:
        status_code: HTTP status the global handler responds with
        message:     User-facing error description (safe to return)
        details:     Optional raw detail string returned alongside the message
        context:     Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.details = details
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ScanBarangError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, malformed dates, bad uploads.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, details=details, context=ctx)
        self.field = field


class DuplicateEmailError(ValidationError):
    """The identity provider already has an account for this email."""

    def __init__(self, email: Optional[str] = None):
        super().__init__(
            message="Email is already registered.",
            field="email",
            context={"email": email} if email else None,
        )


class UnauthenticatedError(ScanBarangError):
    """No bearer token on a protected route. HTTP 401."""

    status_code = 401

    def __init__(self, message: str = "Authorization token not found"):
        super().__init__(message=message)


class InvalidCredentialsError(ScanBarangError):
    """The identity provider rejected the email/password pair. HTTP 401."""

    status_code = 401

    def __init__(self, message: str = "Incorrect password."):
        super().__init__(message=message)


class InvalidTokenError(ScanBarangError):
    """
    The identity provider rejected the bearer token.

    HTTP:    403 Forbidden (the client sent a token, it just isn't valid)
    """

    status_code = 403

    def __init__(self, message: str = "Invalid token", context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class EmailNotVerifiedError(ScanBarangError):
    """Login attempted before the email address was verified. HTTP 403."""

    status_code = 403

    def __init__(self):
        super().__init__(message="Please verify your email address first.")


class NotFoundError(ScanBarangError):
    """
    Raised when an ownership-scoped lookup finds nothing.

    What:    The row doesn't exist OR belongs to someone else.
    HTTP:    404 Not Found
    Note:    Both cases deliberately produce the same response so that the
             existence of other users' rows never leaks.
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource[:1].upper()}{resource[1:]} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource


class ConflictError(ScanBarangError):
    """
    Raised when a write would duplicate a unique business key.

    When:    The same QR code is scanned twice under one event.
    HTTP:    409 Conflict
    """

    status_code = 409

    def __init__(
        self,
        message: str = "Resource already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamError(ScanBarangError):
    """
    Raised when the identity or mail provider fails.

    The caller maps known provider codes to a specific status (e.g. 404 for
    an unknown email); anything unmapped stays a 500. The provider's raw
    message travels in `details`.
    """

    def __init__(
        self,
        message: str = "External service request failed",
        status_code: int = 500,
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)
        self.status_code = status_code


class DatabaseError(ScanBarangError):
    """
    Raised when database operations fail unexpectedly.

    Security Note:
        The message returned to the client is always generic. The SQL error
        is logged server-side only.
    """

    status_code = 500

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class FileStorageError(ScanBarangError):
    """
    Raised when file system operations fail.

    When:    Disk full, permission denied, staging/finalize failure.
    HTTP:    500 Internal Server Error
    """

    status_code = 500

    def __init__(
        self,
        message: str = "File storage operation failed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class RenderError(ScanBarangError):
    """Raised when the QR payload cannot be encoded or the label drawn. HTTP 500."""

    status_code = 500

    def __init__(
        self,
        message: str = "Failed to generate QR code label",
        details: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, details=details, context=context)
