"""
Base exception classes for the PixelPerfect backend.

Each module should define its own exceptions that inherit from these bases.
Every exception carries an ErrorKind tag; the API layer derives the HTTP
status from the kind alone (see STATUS_BY_KIND), never from the concrete
exception class.
"""

from enum import Enum
from typing import Optional, Any


class ErrorKind(str, Enum):
    """Closed set of error categories surfaced by the backend."""

    VALIDATION = "validation"
    UNAUTHORIZED = "unauthorized"
    INSUFFICIENT_CREDITS = "insufficient_credits"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BUSINESS_RULE = "business_rule"
    RATE_LIMITED = "rate_limited"
    PROVIDER = "provider"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    NO_PROVIDER = "no_provider"
    INTERNAL = "internal"


STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.UNAUTHORIZED: 401,
    ErrorKind.INSUFFICIENT_CREDITS: 402,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.BUSINESS_RULE: 400,
    ErrorKind.RATE_LIMITED: 429,
    ErrorKind.PROVIDER: 502,
    ErrorKind.PROVIDER_UNAVAILABLE: 503,
    ErrorKind.NO_PROVIDER: 500,
    ErrorKind.INTERNAL: 500,
}


def status_for_kind(kind: ErrorKind) -> int:
    """Get the HTTP status code for an error kind."""
    return STATUS_BY_KIND[kind]


class PixelPerfectError(Exception):
    """
    Base exception for all PixelPerfect errors.

    All custom exceptions should inherit from this class and set `kind`.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        self.headers = headers or {}

    @property
    def status_code(self) -> int:
        """HTTP status derived from the error kind."""
        return status_for_kind(self.kind)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to a dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFoundError(PixelPerfectError):
    """Resource not found."""

    kind = ErrorKind.NOT_FOUND


class ValidationError(PixelPerfectError):
    """Input validation failed."""

    kind = ErrorKind.VALIDATION

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ):
        super().__init__(message, code or "VALIDATION_ERROR", details)


class AuthenticationError(PixelPerfectError):
    """Authentication failed (invalid or missing credentials)."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Authentication required"):
        super().__init__(
            message,
            code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"},
        )


class AuthorizationError(PixelPerfectError):
    """Authorization failed (insufficient permissions)."""

    kind = ErrorKind.FORBIDDEN

    def __init__(self, message: str = "Access denied", code: Optional[str] = None):
        super().__init__(message, code or "FORBIDDEN")


class BusinessRuleError(PixelPerfectError):
    """A request is well-formed but violates a business rule."""

    kind = ErrorKind.BUSINESS_RULE


class ConflictError(PixelPerfectError):
    """The request was based on state that has since changed."""

    kind = ErrorKind.CONFLICT


class ProviderError(PixelPerfectError):
    """
    Error communicating with an external vendor.

    The vendor's own error code (if any) is preserved in details so
    support can diagnose the failure.
    """

    kind = ErrorKind.PROVIDER

    def __init__(
        self,
        message: str,
        service: str,
        vendor_code: Optional[str] = None,
        code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        unavailable: bool = False,
    ):
        super().__init__(message, code or "PROVIDER_ERROR", details)
        self.service = service
        self.vendor_code = vendor_code
        self.details["service"] = service
        if vendor_code:
            self.details["vendor_code"] = vendor_code
        if unavailable:
            self.kind = ErrorKind.PROVIDER_UNAVAILABLE


class InternalError(PixelPerfectError):
    """Catch-all for unexpected failures."""

    kind = ErrorKind.INTERNAL

    def __init__(self, message: str = "An unexpected error occurred"):
        super().__init__(message, code="INTERNAL_ERROR")
