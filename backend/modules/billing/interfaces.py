"""
Billing module interface.

Other modules depend on IPlanCatalog, not the concrete PlanCatalog, so
tests can substitute a catalog built from their own configuration.
"""

from typing import Optional, Protocol, runtime_checkable

from .models import CostBreakdown, Plan, PriceEntry, QualityTier, UpscaleOptions


@runtime_checkable
class IPlanCatalog(Protocol):
    """
    Read-only view of the plan and pricing catalog.
    """

    @property
    def low_credit_threshold(self) -> int:
        """Balance below which the user should be warned."""
        ...

    def resolve_price_id(self, price_id: str) -> Optional[PriceEntry]:
        """
        Resolve a billing price id.

        Args:
            price_id: Billing system price identifier

        Returns:
            PriceEntry for a plan or credit pack, or None if unknown
        """
        ...

    def require_plan_price(self, price_id: str) -> Plan:
        """
        Resolve a price id that must belong to a subscription plan.

        Args:
            price_id: Billing system price identifier

        Returns:
            The matching Plan

        Raises:
            InvalidPriceIdError: If unknown or not a subscription price
        """
        ...

    def get_plan_by_price_id(self, price_id: str) -> Optional[Plan]:
        """Get the plan for a price id, or None."""
        ...

    def is_downgrade(self, current_price_id: str, target_price_id: str) -> bool:
        """
        Classify a plan change.

        Args:
            current_price_id: Price the subscription is on now
            target_price_id: Requested price

        Returns:
            True iff the target grants strictly fewer credits per cycle.
            Ties and unknown prices return False.
        """
        ...

    def batch_limit_for_tier(self, tier: Optional[str]) -> int:
        """Hourly billable-operation cap for a subscription tier."""
        ...

    def get_quality_tier(self, key: str) -> QualityTier:
        """
        Raises:
            UnknownQualityTierError: If the quality tier is not configured
        """
        ...

    def assert_tier_allowed(self, quality_tier: str, user_tier: Optional[str]) -> None:
        """
        Check that a subscription tier may use a quality tier.

        Raises:
            UnknownQualityTierError: If the quality tier is unknown
            ForbiddenTierError: If the subscription tier is too low
        """
        ...

    def calculate_credit_cost(
        self,
        quality_tier: str,
        scale: int,
        options: Optional[UpscaleOptions] = None,
    ) -> CostBreakdown:
        """
        Compute the clamped credit cost of an operation.

        Raises:
            UnknownQualityTierError: If the quality tier is unknown
            UnsupportedScaleError: If the scale factor is not supported
        """
        ...
