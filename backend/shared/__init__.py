"""
Shared infrastructure for the PixelPerfect backend.

This package contains cross-cutting concerns that are used by multiple modules:
- config: Centralized settings management
- database: Supabase client factory
- exceptions: Base exception classes and error kinds
- logging: Process-wide logging setup

Note: Business logic should NOT go here. This is for infrastructure only.
"""

from .config import Settings, get_settings
from .database import create_supabase_client
from .exceptions import (
    ErrorKind,
    STATUS_BY_KIND,
    status_for_kind,
    PixelPerfectError,
    NotFoundError,
    ValidationError,
    AuthenticationError,
    AuthorizationError,
    BusinessRuleError,
    ConflictError,
    ProviderError,
    InternalError,
)
from .logging import configure_logging
from .models import AuthenticatedUser, SuccessResponse, ErrorBody, ErrorResponse

__all__ = [
    "Settings",
    "get_settings",
    "create_supabase_client",
    "ErrorKind",
    "STATUS_BY_KIND",
    "status_for_kind",
    "PixelPerfectError",
    "NotFoundError",
    "ValidationError",
    "AuthenticationError",
    "AuthorizationError",
    "BusinessRuleError",
    "ConflictError",
    "ProviderError",
    "InternalError",
    "configure_logging",
    "AuthenticatedUser",
    "SuccessResponse",
    "ErrorBody",
    "ErrorResponse",
]
