"""
Subscription plan change module.

Previews and applies upgrades (immediate, prorated) and downgrades
(scheduled for period end) against the billing system, keeping the local
subscription mirror in sync.

Public API:
- IPlanChangeService: Interface for plan changes
- IBillingGateway: Interface to the billing system
- ISubscriptionRepository: Interface to the local mirror
- PlanChangeService: Orchestrator implementation
- StripeBillingGateway: Stripe implementation of IBillingGateway
"""

from .interfaces import IPlanChangeService, IBillingGateway, ISubscriptionRepository
from .models import (
    SubscriptionStatus,
    SubscriptionState,
    SubscriptionMirror,
    PeriodSource,
    ExternalSubscription,
    InvoiceLine,
    InvoicePreview,
    PlanSummary,
    ChangePreview,
    ChangeStatus,
    ChangeResult,
    ChangePlanRequest,
    SubscriptionStatusResponse,
)
from .exceptions import (
    NoActiveSubscriptionError,
    SamePlanError,
    SubscriptionModifiedError,
    MissingBillingCustomerError,
    InvalidSubscriptionStateError,
)
from .stripe_adapter import (
    extract_billing_period,
    subscription_from_stripe,
    invoice_preview_from_stripe,
)
from .gateway import StripeBillingGateway
from .repository import InMemorySubscriptionRepository, SupabaseSubscriptionRepository
from .service import PlanChangeService, sum_change_lines

__all__ = [
    # Interfaces
    "IPlanChangeService",
    "IBillingGateway",
    "ISubscriptionRepository",
    # Models
    "SubscriptionStatus",
    "SubscriptionState",
    "SubscriptionMirror",
    "PeriodSource",
    "ExternalSubscription",
    "InvoiceLine",
    "InvoicePreview",
    "PlanSummary",
    "ChangePreview",
    "ChangeStatus",
    "ChangeResult",
    "ChangePlanRequest",
    "SubscriptionStatusResponse",
    # Exceptions
    "NoActiveSubscriptionError",
    "SamePlanError",
    "SubscriptionModifiedError",
    "MissingBillingCustomerError",
    "InvalidSubscriptionStateError",
    # Stripe adapter
    "extract_billing_period",
    "subscription_from_stripe",
    "invoice_preview_from_stripe",
    # Implementations
    "StripeBillingGateway",
    "InMemorySubscriptionRepository",
    "SupabaseSubscriptionRepository",
    "PlanChangeService",
    "sum_change_lines",
]
