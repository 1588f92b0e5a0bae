"""
Billing module exceptions.

These exceptions are raised by the plan catalog and can be caught
by API error handlers to return appropriate HTTP responses.
"""

from typing import Optional

from shared.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    ValidationError,
)


class InvalidPriceIdError(BusinessRuleError):
    """Raised when a price id is unknown or not valid for the operation."""

    def __init__(self, price_id: str, reason: Optional[str] = None):
        super().__init__(
            reason or f"Unknown price ID: {price_id}",
            code="INVALID_PRICE_ID",
            details={"price_id": price_id},
        )


class UnknownQualityTierError(ValidationError):
    """Raised when a quality tier is not in the catalog."""

    def __init__(self, tier: str):
        super().__init__(
            f"Unknown quality tier: {tier}",
            code="INVALID_QUALITY_TIER",
            details={"quality_tier": tier},
        )


class UnsupportedScaleError(ValidationError):
    """Raised when the requested scale factor has no configured multiplier."""

    def __init__(self, scale: int, supported: list[int]):
        super().__init__(
            f"Unsupported scale factor: {scale}x",
            code="INVALID_SCALE",
            details={"scale": scale, "supported": supported},
        )


class ForbiddenTierError(AuthorizationError):
    """Raised when a feature requires a higher subscription tier."""

    def __init__(self, feature: str, required_tier: str, user_tier: str):
        super().__init__(
            f"{feature} requires {required_tier} tier or higher",
            code="TIER_RESTRICTED",
        )
        self.details = {
            "feature": feature,
            "required_tier": required_tier,
            "current_tier": user_tier,
        }
