"""
Request limits module.

Per-user sliding-window rate limiting and hourly per-tier batch caps
for the credit-charging endpoint.

Public API:
- IRateLimiter / IBatchLimiter: Limiter interfaces
- SlidingWindowRateLimiter: Per-minute request limiter
- InMemoryBatchLimiter / SupabaseBatchLimiter: Hourly operation caps
"""

from .interfaces import IRateLimiter, IBatchLimiter
from .models import RateLimitResult, BatchLimitResult
from .exceptions import RateLimitedError, BatchLimitExceededError
from .service import (
    BATCH_WINDOW,
    SlidingWindow,
    SlidingWindowRateLimiter,
    InMemoryBatchLimiter,
    SupabaseBatchLimiter,
)

__all__ = [
    # Interfaces
    "IRateLimiter",
    "IBatchLimiter",
    # Models
    "RateLimitResult",
    "BatchLimitResult",
    # Exceptions
    "RateLimitedError",
    "BatchLimitExceededError",
    # Limiters
    "BATCH_WINDOW",
    "SlidingWindow",
    "SlidingWindowRateLimiter",
    "InMemoryBatchLimiter",
    "SupabaseBatchLimiter",
]
