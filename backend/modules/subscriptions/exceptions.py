"""
Subscription module exceptions.
"""

from shared.exceptions import BusinessRuleError, ConflictError


class NoActiveSubscriptionError(BusinessRuleError):
    """Raised when a plan change is requested without an active subscription."""

    def __init__(self, user_id: str):
        super().__init__(
            "No active subscription found. Please subscribe first.",
            code="NO_ACTIVE_SUBSCRIPTION",
            details={"user_id": user_id},
        )


class SamePlanError(BusinessRuleError):
    """Raised when the target price is the subscription's current price."""

    def __init__(self, price_id: str):
        super().__init__(
            "You are already subscribed to this plan",
            code="SAME_PLAN",
            details={"price_id": price_id},
        )


class SubscriptionModifiedError(ConflictError):
    """
    Raised when the billing system's subscription no longer matches the mirror.

    The client should reload the subscription and retry.
    """

    def __init__(self, expected_price_id: str, actual_price_id: str):
        super().__init__(
            "Subscription was modified. Please refresh and try again.",
            code="SUBSCRIPTION_MODIFIED",
            details={
                "expected_price_id": expected_price_id,
                "actual_price_id": actual_price_id,
            },
        )


class MissingBillingCustomerError(BusinessRuleError):
    """Raised when the user has no billing customer record."""

    def __init__(self, user_id: str):
        super().__init__(
            "No billing customer found for this account",
            code="STRIPE_CUSTOMER_NOT_FOUND",
            details={"user_id": user_id},
        )


class InvalidSubscriptionStateError(BusinessRuleError):
    """Raised when the billing system returns a subscription we cannot change."""

    def __init__(self, subscription_id: str, reason: str):
        super().__init__(
            f"Subscription {subscription_id} cannot be changed: {reason}",
            code="INVALID_SUBSCRIPTION_STATE",
            details={"subscription_id": subscription_id},
        )
