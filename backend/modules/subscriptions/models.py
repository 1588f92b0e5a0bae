"""
Subscription module data models.

SubscriptionMirror is the local copy of the billing system's subscription.
ExternalSubscription and InvoicePreview are normalized views of billing
system responses, produced only by stripe_adapter.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from modules.billing.models import Plan


class SubscriptionStatus(str, Enum):
    """Billing system subscription statuses."""

    ACTIVE = "active"
    TRIALING = "trialing"
    PAST_DUE = "past_due"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    UNPAID = "unpaid"


ACTIVE_STATUSES = (SubscriptionStatus.ACTIVE, SubscriptionStatus.TRIALING)


class SubscriptionState(str, Enum):
    """Plan-change state of a user's subscription."""

    NO_SUBSCRIPTION = "no-subscription"
    ACTIVE_IMMEDIATE = "active-immediate"
    ACTIVE_SCHEDULED_DOWNGRADE = "active-scheduled-downgrade"


class SubscriptionMirror(BaseModel):
    """Local mirror of a billing system subscription."""

    id: str = Field(..., description="Billing system subscription id")
    user_id: str
    price_id: str = Field(..., description="Current plan price id")
    status: SubscriptionStatus
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None
    scheduled_price_id: Optional[str] = Field(
        None,
        description="Price the subscription moves to at scheduled_change_date (downgrades only)",
    )
    scheduled_change_date: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"frozen": True}

    @property
    def state(self) -> SubscriptionState:
        if self.scheduled_price_id:
            return SubscriptionState.ACTIVE_SCHEDULED_DOWNGRADE
        return SubscriptionState.ACTIVE_IMMEDIATE


class PeriodSource(str, Enum):
    """Where billing period bounds were read from."""

    SUBSCRIPTION = "subscription"
    ITEM = "item"
    COMPUTED = "computed"


class ExternalSubscription(BaseModel):
    """The fields of a billing system subscription the orchestrator uses."""

    id: str
    status: str
    customer_id: Optional[str] = None
    price_id: str
    item_id: str
    schedule_id: Optional[str] = None
    current_period_start: datetime
    current_period_end: datetime
    period_source: PeriodSource = PeriodSource.SUBSCRIPTION

    model_config = {"frozen": True}


class InvoiceLine(BaseModel):
    """One line of a preview invoice. Amounts are in the smallest currency unit."""

    amount: int
    description: Optional[str] = None
    proration: bool = False

    model_config = {"frozen": True}


class InvoicePreview(BaseModel):
    """Normalized preview invoice."""

    amount_due: int
    currency: str
    lines: list[InvoiceLine] = Field(default_factory=list)
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None

    model_config = {"frozen": True}


class PlanSummary(BaseModel):
    """Plan fields exposed in previews."""

    key: str
    name: str
    price_id: str
    credits_per_cycle: int

    model_config = {"frozen": True}

    @classmethod
    def from_plan(cls, plan: Plan) -> "PlanSummary":
        return cls(
            key=plan.key,
            name=plan.name,
            price_id=plan.price_id,
            credits_per_cycle=plan.credits_per_cycle,
        )


class ChangePreview(BaseModel):
    """What a plan change would cost and when it would take effect."""

    current_plan: PlanSummary
    new_plan: PlanSummary
    is_downgrade: bool
    amount_due: int = Field(..., description="Proration in cents; positive means a charge")
    currency: str = "usd"
    effective_immediately: bool
    effective_date: Optional[datetime] = Field(
        None,
        description="When a scheduled downgrade takes effect",
    )
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None


class ChangeStatus(str, Enum):
    """How a plan change was applied."""

    UPDATED = "updated"
    SCHEDULED = "scheduled"


class ChangeResult(BaseModel):
    """Outcome of apply_change."""

    subscription_id: str
    status: ChangeStatus
    is_downgrade: bool
    effective_immediately: bool
    price_id: str = Field(..., description="Price the subscription is on after the call")
    scheduled_price_id: Optional[str] = None
    effective_date: Optional[datetime] = None
    schedule_id: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None


class ChangePlanRequest(BaseModel):
    """Request body for preview-change and change."""

    model_config = ConfigDict(populate_by_name=True)

    target_price_id: str = Field(..., alias="targetPriceId", min_length=1)


class SubscriptionStatusResponse(BaseModel):
    """Response for GET /api/subscription."""

    state: SubscriptionState
    subscription: Optional[SubscriptionMirror] = None
    plan: Optional[PlanSummary] = None
    scheduled_plan: Optional[PlanSummary] = None
