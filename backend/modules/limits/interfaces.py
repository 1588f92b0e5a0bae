"""
Request limit interfaces.
"""

from typing import Protocol, runtime_checkable

from .models import BatchLimitResult, RateLimitResult


@runtime_checkable
class IRateLimiter(Protocol):
    """Per-key sliding-window request limiter."""

    async def check(self, key: str) -> RateLimitResult:
        """
        Count a request against the key's window.

        Args:
            key: Limiter key (usually the user id)

        Returns:
            RateLimitResult; success is False when the window is full
            (a rejected request is not counted)
        """
        ...

    async def enforce(self, key: str) -> RateLimitResult:
        """
        Like check(), but raise when the window is full.

        Raises:
            RateLimitedError: With Retry-After and X-RateLimit-* headers
        """
        ...


@runtime_checkable
class IBatchLimiter(Protocol):
    """Hourly cap on billable operations per user."""

    async def check_and_increment(self, user_id: str, limit: int) -> BatchLimitResult:
        """
        Atomically count one operation if the user is under the limit.

        Args:
            user_id: User to count against
            limit: Operations allowed per hour for the user's tier

        Returns:
            BatchLimitResult with the count after this call
        """
        ...

    async def enforce(self, user_id: str, limit: int) -> BatchLimitResult:
        """
        Like check_and_increment(), but raise when the cap is reached.

        Raises:
            BatchLimitExceededError: With current/limit/reset metadata
        """
        ...
