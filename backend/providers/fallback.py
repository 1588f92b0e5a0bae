"""Priority-ordered provider selection with fallback."""

import logging
from dataclasses import dataclass, field
from typing import Generic, Optional, Sequence, TypeVar

from .base import CapabilityProvider
from .exceptions import AllProvidersFailedError, NoProviderAvailableError
from .models import ProviderDescriptor

logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")


def validate_fallback_chain(descriptors: Sequence[ProviderDescriptor]) -> None:
    """Check that fallback references form chains ending in a provider without one.

    Args:
        descriptors: All provider descriptors for one capability

    Raises:
        ValueError: On duplicate names, unknown fallback names or cycles
    """
    by_name: dict[str, ProviderDescriptor] = {}
    for d in descriptors:
        if d.name in by_name:
            raise ValueError(f"Duplicate provider name '{d.name}'")
        by_name[d.name] = d

    for d in descriptors:
        seen = {d.name}
        current = d
        while current.fallback is not None:
            if current.fallback not in by_name:
                raise ValueError(
                    f"Provider '{current.name}' falls back to unknown provider '{current.fallback}'"
                )
            if current.fallback in seen:
                raise ValueError(f"Fallback cycle detected starting at provider '{d.name}'")
            seen.add(current.fallback)
            current = by_name[current.fallback]


@dataclass(frozen=True)
class FallbackOutcome(Generic[R]):
    """Result of execute_with_fallback.

    Attributes:
        provider: Name of the provider that succeeded
        result: What it returned
        failed: Names of providers that were tried and failed first
    """

    provider: str
    result: R
    failed: list[str] = field(default_factory=list)


class FallbackSelector(Generic[P, R]):
    """Chooses among providers of one capability.

    Candidates are the enabled providers sorted by ascending priority.
    A provider whose execute() raises is skipped, not retried.
    """

    def __init__(self, providers: Sequence[CapabilityProvider[P, R]], capability: str):
        """
        Args:
            providers: Providers of the capability, in any order
            capability: Capability name used in errors and logs (e.g., "email")

        Raises:
            ValueError: If the providers' fallback references are inconsistent
        """
        validate_fallback_chain([p.descriptor for p in providers])
        self._providers = list(providers)
        self._capability = capability

    @property
    def providers(self) -> list[CapabilityProvider[P, R]]:
        return list(self._providers)

    def candidates(self) -> list[CapabilityProvider[P, R]]:
        """Enabled providers, lowest priority number first."""
        return sorted(
            (p for p in self._providers if p.enabled),
            key=lambda p: p.priority,
        )

    async def select_provider(self) -> CapabilityProvider[P, R]:
        """Return the first enabled provider with quota left.

        Raises:
            NoProviderAvailableError: If no candidate is available
        """
        for provider in self.candidates():
            if await provider.is_available():
                return provider
        raise NoProviderAvailableError(self._capability)

    async def execute_with_fallback(self, params: P) -> FallbackOutcome[R]:
        """Try candidates in order until one succeeds.

        Only the provider that succeeded has its usage counters charged.

        Raises:
            NoProviderAvailableError: If no candidate was available to try
            AllProvidersFailedError: If every available candidate failed
        """
        failed: list[str] = []
        last_error: Optional[Exception] = None

        for provider in self.candidates():
            if not await provider.is_available():
                logger.debug(f"Skipping {self._capability} provider {provider.name}: unavailable")
                continue

            try:
                result = await provider.execute(params)
            except Exception as e:
                logger.warning(f"{self._capability} provider {provider.name} failed: {e}")
                failed.append(provider.name)
                last_error = e
                continue

            try:
                await provider.record_usage()
            except Exception:
                logger.error(f"Failed to record usage for {provider.name}", exc_info=True)

            if failed:
                logger.info(f"{self._capability} sent via fallback {provider.name} after {failed}")
            return FallbackOutcome(provider=provider.name, result=result, failed=failed)

        if last_error is None:
            raise NoProviderAvailableError(self._capability)
        raise AllProvidersFailedError(self._capability, failed, str(last_error))
