"""
Rate and batch limiter implementations.
"""

import logging
from abc import ABC, abstractmethod
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from supabase import Client

from shared.exceptions import InternalError
from shared.repository import BaseRepository

from .exceptions import BatchLimitExceededError, RateLimitedError
from .models import BatchLimitResult, RateLimitResult

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

BATCH_WINDOW = timedelta(hours=1)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SlidingWindow:
    """Timestamps per key within a rolling window."""

    def __init__(self, window: timedelta):
        self._window = window
        self._hits: dict[str, deque[datetime]] = {}
        self._last_sweep: Optional[datetime] = None

    def _prune(self, key: str, now: datetime) -> deque[datetime]:
        hits = self._hits.pop(key, None) or deque()
        cutoff = now - self._window
        while hits and hits[0] <= cutoff:
            hits.popleft()
        return hits

    def __len__(self) -> int:
        return len(self._hits)

    def _sweep(self, now: datetime) -> None:
        """Drop keys whose newest hit has left the window, at most once per window."""
        if self._last_sweep is not None and now - self._last_sweep < self._window:
            return
        self._last_sweep = now
        cutoff = now - self._window
        for key in [k for k, hits in self._hits.items() if hits[-1] <= cutoff]:
            del self._hits[key]

    def try_add(self, key: str, limit: int, now: datetime) -> tuple[bool, int, datetime]:
        """
        Add a hit if fewer than `limit` are in the window.

        Returns:
            (accepted, hits in window after the call, when the oldest hit expires)
        """
        self._sweep(now)
        hits = self._prune(key, now)
        accepted = len(hits) < limit
        if accepted:
            hits.append(now)
        if hits:
            self._hits[key] = hits
        reset_at = (hits[0] if hits else now) + self._window
        return accepted, len(hits), reset_at


class SlidingWindowRateLimiter:
    """
    In-process sliding-window limiter.

    Default is 5 requests per 60 seconds per key.
    """

    def __init__(
        self,
        limit: int = 5,
        window_seconds: int = 60,
        clock: Optional[Clock] = None,
    ):
        self._limit = limit
        self._window = SlidingWindow(timedelta(seconds=window_seconds))
        self._clock = clock or utc_now

    async def check(self, key: str) -> RateLimitResult:
        accepted, count, reset_at = self._window.try_add(key, self._limit, self._clock())
        return RateLimitResult(
            success=accepted,
            limit=self._limit,
            remaining=max(0, self._limit - count),
            reset_at=reset_at,
        )

    async def enforce(self, key: str) -> RateLimitResult:
        result = await self.check(key)
        if not result.success:
            logger.warning(f"Rate limit exceeded for {key}")
            raise RateLimitedError(
                limit=result.limit,
                reset_at=result.reset_at,
                retry_after=result.retry_after_seconds(self._clock()),
            )
        return result


class BaseBatchLimiter(ABC):
    """Shared enforce() over an atomic check_and_increment()."""

    _clock: Clock

    @abstractmethod
    async def check_and_increment(self, user_id: str, limit: int) -> BatchLimitResult:
        pass

    async def enforce(self, user_id: str, limit: int) -> BatchLimitResult:
        result = await self.check_and_increment(user_id, limit)
        if not result.allowed:
            logger.warning(f"Batch limit reached for user {user_id}: {result.current}/{result.limit}")
            retry_after = max(1, int((result.reset_at - self._clock()).total_seconds()))
            raise BatchLimitExceededError(
                current=result.current,
                limit=result.limit,
                reset_at=result.reset_at,
                retry_after=retry_after,
            )
        return result


class InMemoryBatchLimiter(BaseBatchLimiter):
    """Hourly sliding-window batch limiter. For testing and development."""

    def __init__(self, clock: Optional[Clock] = None):
        self._window = SlidingWindow(BATCH_WINDOW)
        self._clock = clock or utc_now

    async def check_and_increment(self, user_id: str, limit: int) -> BatchLimitResult:
        accepted, count, reset_at = self._window.try_add(user_id, limit, self._clock())
        return BatchLimitResult(
            allowed=accepted,
            current=count,
            limit=limit,
            reset_at=reset_at,
        )


class SupabaseBatchLimiter(BaseBatchLimiter, BaseRepository[BatchLimitResult]):
    """Batch limiter backed by the check_and_increment_batch_usage RPC."""

    def __init__(self, db: Client, clock: Optional[Clock] = None):
        BaseRepository.__init__(self, db)
        self._clock = clock or utc_now

    async def check_and_increment(self, user_id: str, limit: int) -> BatchLimitResult:
        result = self._db.rpc("check_and_increment_batch_usage", {
            "p_user_id": user_id,
            "p_limit": limit,
            "p_window_seconds": int(BATCH_WINDOW.total_seconds()),
        }).execute()

        row = self._first_row(result.data)
        if row is None:
            raise InternalError("Batch limit check returned no result")
        return BatchLimitResult(
            allowed=bool(row["allowed"]),
            current=row["current_count"],
            limit=limit,
            reset_at=self._parse_timestamp(row["reset_at"]) or self._clock() + BATCH_WINDOW,
        )
