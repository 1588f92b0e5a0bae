"""
Request limit data models.
"""

import math
from datetime import datetime

from pydantic import BaseModel, Field


class RateLimitResult(BaseModel):
    """Outcome of a sliding-window rate limit check."""

    success: bool
    limit: int
    remaining: int = Field(..., ge=0)
    reset_at: datetime = Field(..., description="When the oldest request leaves the window")

    model_config = {"frozen": True}

    def retry_after_seconds(self, now: datetime) -> int:
        return max(1, math.ceil((self.reset_at - now).total_seconds()))


class BatchLimitResult(BaseModel):
    """Outcome of an hourly batch check-and-increment."""

    allowed: bool
    current: int = Field(..., ge=0, description="Operations counted in the window")
    limit: int
    reset_at: datetime

    model_config = {"frozen": True}
