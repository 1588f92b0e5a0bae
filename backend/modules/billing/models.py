"""
Billing module data models.

Static catalog entries (plans, credit packs, quality tiers) and the
credit-cost configuration. All of these are immutable at runtime.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class BillingInterval(str, Enum):
    """Subscription billing intervals."""

    MONTH = "month"
    YEAR = "year"


class PriceKind(str, Enum):
    """What a billing price id buys."""

    PLAN = "plan"
    PACK = "pack"


class Plan(BaseModel):
    """
    A subscription plan from the catalog.

    Plans are ordered by credits_per_cycle; a change to a plan with fewer
    credits per cycle is a downgrade.
    """

    key: str = Field(..., description="Stable plan key (e.g., 'pro')")
    name: str = Field(..., description="Display name (e.g., 'Professional')")
    price_id: str = Field(..., description="Billing system price identifier")
    price_in_cents: int = Field(..., ge=0, description="Price per interval in cents")
    currency: str = Field(default="usd")
    interval: BillingInterval = Field(default=BillingInterval.MONTH)
    credits_per_cycle: int = Field(..., gt=0, description="Credits granted per billing cycle")
    rollover_multiplier: int = Field(
        default=6,
        ge=0,
        description="Max rollover balance as a multiple of credits_per_cycle",
    )
    batch_limit: int = Field(..., gt=0, description="Billable operations allowed per hour")
    features: list[str] = Field(default_factory=list)
    enabled: bool = Field(default=True)

    model_config = {"frozen": True}

    @property
    def max_rollover(self) -> int:
        return self.credits_per_cycle * self.rollover_multiplier


class CreditPack(BaseModel):
    """A one-time credit purchase. Purchased credits never expire."""

    key: str
    name: str
    price_id: str
    price_in_cents: int = Field(..., ge=0)
    currency: str = Field(default="usd")
    credits: int = Field(..., gt=0)
    enabled: bool = Field(default=True)

    model_config = {"frozen": True}


class PriceEntry(BaseModel):
    """Result of resolving a price id against the catalog."""

    kind: PriceKind
    plan: Optional[Plan] = None
    pack: Optional[CreditPack] = None

    model_config = {"frozen": True}

    @property
    def credits(self) -> int:
        if self.plan is not None:
            return self.plan.credits_per_cycle
        assert self.pack is not None
        return self.pack.credits


class QualityTier(BaseModel):
    """An inference quality tier and its base credit cost."""

    key: str
    label: str
    credits: int = Field(..., gt=0)
    model_id: str = Field(..., description="Inference model used for this tier")
    min_subscription_tier: str = Field(
        default="free",
        description="Lowest subscription tier allowed to use this quality tier",
    )

    model_config = {"frozen": True}


class CreditCostConfig(BaseModel):
    """Knobs for computing the credit cost of an operation."""

    scale_multipliers: dict[int, float] = Field(
        default_factory=lambda: {2: 1.0, 4: 1.0, 8: 1.0}
    )
    priority_processing_cost: int = Field(default=1, ge=0)
    minimum_cost: int = Field(default=1, gt=0)
    maximum_cost: int = Field(default=20, gt=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_bounds(self) -> "CreditCostConfig":
        if self.minimum_cost > self.maximum_cost:
            raise ValueError("minimum_cost cannot be greater than maximum_cost")
        return self


class FreeUserConfig(BaseModel):
    """Allowances for users without a subscription."""

    initial_credits: int = Field(default=10, ge=0)
    batch_limit: int = Field(default=1, gt=0)

    model_config = {"frozen": True}


class CatalogConfig(BaseModel):
    """Everything the plan catalog is built from."""

    plans: list[Plan]
    credit_packs: list[CreditPack] = Field(default_factory=list)
    quality_tiers: list[QualityTier]
    credit_costs: CreditCostConfig = Field(default_factory=CreditCostConfig)
    free_user: FreeUserConfig = Field(default_factory=FreeUserConfig)
    low_credit_threshold: int = Field(default=5, ge=0)
    # Tier ordering for feature gating; "free" is implicit at rank 0
    tier_order: list[str] = Field(default_factory=lambda: ["free", "hobby", "pro", "business"])

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_unique_price_ids(self) -> "CatalogConfig":
        price_ids = [p.price_id for p in self.plans] + [p.price_id for p in self.credit_packs]
        duplicates = {pid for pid in price_ids if price_ids.count(pid) > 1}
        if duplicates:
            raise ValueError(f"Duplicate price ids in catalog: {sorted(duplicates)}")
        return self


class UpscaleOptions(BaseModel):
    """Add-on features that affect the credit cost."""

    priority_processing: bool = Field(default=False)
    enhance_faces: bool = Field(default=False)
    preserve_text: bool = Field(default=False)
    custom_instructions: Optional[str] = Field(default=None, max_length=500)

    model_config = {"frozen": True}


class CostBreakdown(BaseModel):
    """Credit cost of an operation and how it was derived."""

    quality_tier: str
    scale: int
    base_credits: int
    scale_multiplier: float
    addon_credits: int
    total: int

    model_config = {"frozen": True}
