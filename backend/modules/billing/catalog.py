"""
Plan catalog and credit-cost calculation.

The catalog is built once from a CatalogConfig (defaults below, optionally
overridden from a YAML file) and never mutated afterwards.
"""

import logging
import math
from pathlib import Path
from typing import Optional

import yaml

from .exceptions import (
    ForbiddenTierError,
    InvalidPriceIdError,
    UnknownQualityTierError,
    UnsupportedScaleError,
)
from .models import (
    CatalogConfig,
    CostBreakdown,
    CreditPack,
    Plan,
    PriceEntry,
    PriceKind,
    QualityTier,
    UpscaleOptions,
)

logger = logging.getLogger(__name__)

FREE_TIER = "free"


DEFAULT_CATALOG_CONFIG = CatalogConfig(
    plans=[
        Plan(
            key="hobby",
            name="Hobby",
            price_id="price_1SZmVyALMLhQocpf0H7n5ls8",
            price_in_cents=1900,
            credits_per_cycle=200,
            batch_limit=10,
            features=[
                "200 credits per month",
                "Credits roll over (up to 1,200)",
                "Email support",
                "All processing modes",
            ],
        ),
        Plan(
            key="pro",
            name="Professional",
            price_id="price_1SZmVzALMLhQocpfPyRX2W8D",
            price_in_cents=4900,
            credits_per_cycle=1000,
            batch_limit=50,
            features=[
                "1000 credits per month",
                "Credits roll over (up to 6,000)",
                "Priority support",
                "All processing modes",
                "Early access to new features",
            ],
        ),
        Plan(
            key="business",
            name="Business",
            price_id="price_1SZmVzALMLhQocpfqPk9spg4",
            price_in_cents=14900,
            credits_per_cycle=5000,
            batch_limit=500,
            features=[
                "5000 credits per month",
                "Credits roll over (up to 30,000)",
                "24/7 priority support",
                "All processing modes",
                "Dedicated account manager",
            ],
        ),
    ],
    credit_packs=[
        CreditPack(
            key="small",
            name="Small Pack",
            price_id="price_1SbAASALMLhQocpfGUg3wLXM",
            price_in_cents=499,
            credits=50,
        ),
        CreditPack(
            key="medium",
            name="Medium Pack",
            price_id="price_1SbAASALMLhQocpf7nw3wRj7",
            price_in_cents=1499,
            credits=200,
        ),
        CreditPack(
            key="large",
            name="Large Pack",
            price_id="price_1SbAASALMLhQocpfCrD7P7TW",
            price_in_cents=3999,
            credits=600,
        ),
    ],
    quality_tiers=[
        QualityTier(key="quick", label="Quick", credits=1, model_id="real-esrgan"),
        QualityTier(key="face-restore", label="Face Restore", credits=2, model_id="gfpgan"),
        QualityTier(key="fast-edit", label="Fast Edit", credits=2, model_id="flux-kontext-fast"),
        QualityTier(key="budget-edit", label="Budget Edit", credits=3, model_id="qwen-image-edit"),
        QualityTier(key="seedream-edit", label="Seedream Edit", credits=4, model_id="seedream"),
        QualityTier(key="anime-upscale", label="Anime Upscale", credits=1, model_id="realesrgan-anime"),
        QualityTier(key="hd-upscale", label="HD Upscale", credits=4, model_id="clarity-upscaler"),
        QualityTier(
            key="face-pro",
            label="Face Pro",
            credits=6,
            model_id="flux-2-pro",
            min_subscription_tier="hobby",
        ),
        QualityTier(
            key="ultra",
            label="Ultra",
            credits=8,
            model_id="nano-banana-pro",
            min_subscription_tier="hobby",
        ),
    ],
)


def load_catalog_config(path: Path) -> CatalogConfig:
    """
    Load a catalog override from a YAML file.

    Args:
        path: Path to a YAML document with the CatalogConfig fields

    Returns:
        Validated CatalogConfig

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If the file is invalid YAML
        pydantic.ValidationError: If the document does not match the schema
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    return CatalogConfig.model_validate(data)


class PlanCatalog:
    """
    Read-only lookup over plans, credit packs and quality tiers.
    """

    def __init__(self, config: CatalogConfig = DEFAULT_CATALOG_CONFIG):
        self._config = config
        self._plans_by_key: dict[str, Plan] = {p.key: p for p in config.plans}
        self._tiers: dict[str, QualityTier] = {t.key: t for t in config.quality_tiers}
        self._prices: dict[str, PriceEntry] = {}
        for plan in config.plans:
            if plan.enabled:
                self._prices[plan.price_id] = PriceEntry(kind=PriceKind.PLAN, plan=plan)
        for pack in config.credit_packs:
            if pack.enabled:
                self._prices[pack.price_id] = PriceEntry(kind=PriceKind.PACK, pack=pack)

    @classmethod
    def from_path(cls, path: Optional[str]) -> "PlanCatalog":
        """Build from a YAML file, or from the defaults when path is None."""
        if not path:
            return cls()
        logger.info(f"Loading plan catalog from {path}")
        return cls(load_catalog_config(Path(path)))

    @property
    def config(self) -> CatalogConfig:
        return self._config

    @property
    def plans(self) -> list[Plan]:
        return [p for p in self._config.plans if p.enabled]

    @property
    def low_credit_threshold(self) -> int:
        return self._config.low_credit_threshold

    # Price lookups

    def resolve_price_id(self, price_id: str) -> Optional[PriceEntry]:
        """Resolve a price id to its plan or pack, or None if unknown."""
        return self._prices.get(price_id)

    def assert_known_price_id(self, price_id: str) -> PriceEntry:
        """
        Resolve a price id, failing if it is unknown.

        Raises:
            InvalidPriceIdError: If the price id is not in the catalog
        """
        entry = self.resolve_price_id(price_id)
        if entry is None:
            raise InvalidPriceIdError(price_id)
        return entry

    def get_plan(self, key: str) -> Optional[Plan]:
        return self._plans_by_key.get(key)

    def get_plan_by_price_id(self, price_id: str) -> Optional[Plan]:
        entry = self.resolve_price_id(price_id)
        if entry is None or entry.kind != PriceKind.PLAN:
            return None
        return entry.plan

    def require_plan_price(self, price_id: str) -> Plan:
        """
        Resolve a price id that must belong to a subscription plan.

        Raises:
            InvalidPriceIdError: If unknown or a one-time credit pack
        """
        entry = self.assert_known_price_id(price_id)
        if entry.kind != PriceKind.PLAN or entry.plan is None:
            raise InvalidPriceIdError(
                price_id,
                reason=f"Price ID {price_id} is not a subscription plan",
            )
        return entry.plan

    def is_downgrade(self, current_price_id: str, target_price_id: str) -> bool:
        """
        A change is a downgrade iff the target grants strictly fewer credits
        per cycle. Unknown or non-plan prices are never downgrades.
        """
        current = self.get_plan_by_price_id(current_price_id)
        target = self.get_plan_by_price_id(target_price_id)
        if current is None or target is None:
            return False
        return target.credits_per_cycle < current.credits_per_cycle

    # Tier gating

    def tier_rank(self, tier: Optional[str]) -> int:
        """Rank of a subscription tier; unknown tiers rank as free."""
        order = self._config.tier_order
        if tier in order:
            return order.index(tier)
        return 0

    def batch_limit_for_tier(self, tier: Optional[str]) -> int:
        plan = self._plans_by_key.get(tier) if tier else None
        if plan is None:
            return self._config.free_user.batch_limit
        return plan.batch_limit

    def get_quality_tier(self, key: str) -> QualityTier:
        tier = self._tiers.get(key)
        if tier is None:
            raise UnknownQualityTierError(key)
        return tier

    def assert_tier_allowed(self, quality_tier: str, user_tier: Optional[str]) -> None:
        """
        Raises:
            ForbiddenTierError: If the user's subscription tier is too low
        """
        tier = self.get_quality_tier(quality_tier)
        if self.tier_rank(user_tier) < self.tier_rank(tier.min_subscription_tier):
            raise ForbiddenTierError(
                feature=f"Quality tier '{tier.label}'",
                required_tier=tier.min_subscription_tier,
                user_tier=user_tier or FREE_TIER,
            )

    # Costs

    def calculate_credit_cost(
        self,
        quality_tier: str,
        scale: int,
        options: Optional[UpscaleOptions] = None,
    ) -> CostBreakdown:
        """
        Compute the credit cost of an operation.

        cost = ceil(tier credits x scale multiplier) + add-ons,
        clamped to [minimum_cost, maximum_cost].

        Raises:
            UnknownQualityTierError: If the quality tier is not configured
            UnsupportedScaleError: If the scale has no multiplier
        """
        costs = self._config.credit_costs
        tier = self.get_quality_tier(quality_tier)
        multiplier = costs.scale_multipliers.get(scale)
        if multiplier is None:
            raise UnsupportedScaleError(scale, sorted(costs.scale_multipliers))

        addons = 0
        if options is not None and options.priority_processing:
            addons += costs.priority_processing_cost

        total = math.ceil(tier.credits * multiplier) + addons
        total = max(total, costs.minimum_cost)
        total = min(total, costs.maximum_cost)

        return CostBreakdown(
            quality_tier=tier.key,
            scale=scale,
            base_credits=tier.credits,
            scale_multiplier=multiplier,
            addon_credits=addons,
            total=total,
        )
