"""
Natours Backend — Application Error Hierarchy
==============================================

What:  Defines the operational errors raised by guards, route groups and the
       fallback handler.
Why:   The global error responder distinguishes expected, user-facing
       failures (instances of AppError) from programming defects (anything
       else). Only the former may reach a production client verbatim.
How:   Each error carries a message, an HTTP status code, the derived
       "fail"/"error" status and is_operational=True.
Who:   Raised by security guards, the fallback route and domain handlers;
       consumed once by natours.error_handler.ErrorResponder.

Exception Hierarchy:
    AppError (base, operational)
    ├── InvalidInputError         → 400 Bad Request
    ├── MalformedBodyError        → 400 Bad Request
    ├── CorsOriginError           → 403 Forbidden
    ├── NotFoundError             → 404 Not Found
    ├── PayloadTooLargeError      → 413 Payload Too Large
    └── RateLimitExceededError    → 429 Too Many Requests
"""

from typing import Dict, Optional


class AppError(Exception):
    """
    Base class for every operational error.

    Attributes:
        message:        User-facing description (safe to return to clients)
        status_code:    3-digit HTTP status code
        status:         "fail" for 4xx, "error" for everything else
        is_operational: Always True; unexpected exceptions lack this flag
        headers:        Extra response headers the responder must send
    """

    is_operational = True

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        headers: Optional[Dict[str, str]] = None,
    ):
        if not 100 <= status_code <= 599:
            raise ValueError(f"status_code must be a 3-digit HTTP code, got {status_code}")
        self.message = message
        self.status_code = status_code
        self.status = "fail" if str(status_code).startswith("4") else "error"
        self.headers = dict(headers or {})
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, status_code={self.status_code})"


class InvalidInputError(AppError):
    """Raised when request data fails validation (e.g. pydantic errors in handlers)."""

    def __init__(self, message: str = "Invalid input data."):
        super().__init__(message, 400)


class MalformedBodyError(AppError):
    """Raised when a JSON body cannot be parsed or is not an object/array."""

    def __init__(self, message: str = "Request body could not be parsed."):
        super().__init__(message, 400)


class CorsOriginError(AppError):
    """Raised when the request Origin is outside the configured allow-list."""

    def __init__(self, origin: str):
        super().__init__(f"Origin {origin} is not allowed by the CORS policy.", 403)
        self.origin = origin


class NotFoundError(AppError):
    """Raised when no route group claims the request, or a resource is missing."""

    def __init__(self, message: str = "The requested resource was not found."):
        super().__init__(message, 404)


class PayloadTooLargeError(AppError):
    """Raised before parsing when a body exceeds the configured size ceiling."""

    def __init__(self, limit_bytes: int):
        limit = f"{limit_bytes // 1024}kb" if limit_bytes % 1024 == 0 else f"{limit_bytes}b"
        super().__init__(f"Request body is larger than the {limit} limit.", 413)
        self.limit_bytes = limit_bytes


class RateLimitExceededError(AppError):
    """
    Raised when a client exceeds the request ceiling inside its window.

    The responder sends `Retry-After` so HTTP-compliant clients can back off.
    """

    def __init__(self, message: str, retry_after: int):
        super().__init__(message, 429, headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after
