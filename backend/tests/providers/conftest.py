"""Pytest fixtures for provider tests."""

from datetime import datetime, timedelta, timezone

import pytest

from providers.usage import InMemoryProviderUsageTracker


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc))


@pytest.fixture
def usage(clock) -> InMemoryProviderUsageTracker:
    return InMemoryProviderUsageTracker(clock=clock)
