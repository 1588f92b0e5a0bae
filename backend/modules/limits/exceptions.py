"""
Request limit exceptions.

Both carry the response headers the API layer should attach.
"""

from datetime import datetime

from shared.exceptions import ErrorKind, PixelPerfectError


class RateLimitedError(PixelPerfectError):
    """Raised when a user exceeds the per-minute request limit."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, limit: int, reset_at: datetime, retry_after: int):
        super().__init__(
            "Too many requests. Please try again later.",
            code="RATE_LIMITED",
            details={"retry_after": retry_after},
            headers={
                "Retry-After": str(retry_after),
                "X-RateLimit-Limit": str(limit),
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": reset_at.isoformat(),
            },
        )


class BatchLimitExceededError(PixelPerfectError):
    """Raised when a user exceeds their tier's hourly operation cap."""

    kind = ErrorKind.RATE_LIMITED

    def __init__(self, current: int, limit: int, reset_at: datetime, retry_after: int):
        super().__init__(
            f"Batch limit reached: {current}/{limit} operations this hour",
            code="BATCH_LIMIT_EXCEEDED",
            details={
                "current": current,
                "limit": limit,
                "reset_at": reset_at.isoformat(),
            },
            headers={
                "Retry-After": str(retry_after),
                "X-Batch-Limit": str(limit),
                "X-Batch-Current": str(current),
                "X-Batch-Reset": reset_at.isoformat(),
            },
        )
