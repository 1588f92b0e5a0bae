"""Base class for interchangeable capability providers."""

import logging
from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .models import ProviderDescriptor, ProviderStatus
from .usage import IProviderUsageTracker

logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")


class CapabilityProvider(ABC, Generic[P, R]):
    """Abstract base class for providers of one capability (e.g., sending email).

    A provider is selectable when it is enabled (static flag and
    configuration present) and its free-tier quota is not exhausted.
    Subclasses implement execute() for their vendor.
    """

    def __init__(self, descriptor: ProviderDescriptor, usage: IProviderUsageTracker):
        """
        Args:
            descriptor: Priority, enabled flag, quota and fallback
            usage: Shared usage counter store
        """
        self._descriptor = descriptor
        self._usage = usage

    @property
    def descriptor(self) -> ProviderDescriptor:
        return self._descriptor

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def priority(self) -> int:
        return self._descriptor.priority

    @property
    def enabled(self) -> bool:
        return self._descriptor.enabled and self.is_configured()

    def is_configured(self) -> bool:
        """Whether credentials are present. Override for vendors that need them."""
        return True

    async def is_available(self) -> bool:
        """Enabled and within free-tier quota."""
        if not self.enabled:
            return False
        return await self._usage.is_within_quota(self.name, self._descriptor.quota)

    @abstractmethod
    async def execute(self, params: P) -> R:
        """Perform the capability once. Raise on failure; never retry internally."""
        pass

    async def record_usage(self, requests: int = 1, credits: int = 1) -> None:
        """Charge this provider's counters for one successful execute."""
        await self._usage.increment_usage(self.name, requests=requests, credits=credits)

    async def status(self) -> ProviderStatus:
        usage = await self._usage.get_usage(self.name)
        quota = self._descriptor.quota
        return ProviderStatus(
            name=self.name,
            priority=self.priority,
            enabled=self.enabled,
            available=await self.is_available(),
            daily_limit=quota.daily_requests,
            monthly_limit=quota.monthly_credits,
            daily_requests=usage.daily_requests,
            monthly_credits=usage.monthly_credits,
            fallback=self._descriptor.fallback,
        )
