"""
Credit ledger exceptions.
"""

from typing import Optional

from shared.exceptions import (
    ErrorKind,
    PixelPerfectError,
    ProviderError,
    ValidationError,
)


class CreditsError(PixelPerfectError):
    """Base exception for credit-related errors."""

    pass


class InsufficientCreditsError(CreditsError):
    """
    Raised when a user doesn't have enough credits for an operation.

    The UI should prompt the user to buy a pack or upgrade.
    """

    kind = ErrorKind.INSUFFICIENT_CREDITS

    def __init__(
        self,
        required: int,
        available: Optional[int] = None,
        user_id: Optional[str] = None,
    ):
        if available is None:
            message = f"Insufficient credits. Required: {required}"
        else:
            message = f"Insufficient credits. Required: {required}, Available: {available}"
        super().__init__(
            message,
            code="INSUFFICIENT_CREDITS",
            details={"required": required},
        )
        if available is not None:
            self.details["available"] = available
        self.required = required
        self.available = available
        self.user_id = user_id


class InvalidCostError(ValidationError):
    """Raised when a charge is requested with a non-positive cost."""

    def __init__(self, cost: int):
        super().__init__(
            f"Credit cost must be a positive integer, got {cost}",
            code="INVALID_COST",
            details={"cost": cost},
        )


class OperationTimeoutError(ProviderError):
    """Raised when the billable operation exceeds its wall-clock limit."""

    def __init__(self, timeout_seconds: float, job_id: str):
        super().__init__(
            f"Processing timed out after {timeout_seconds:g} seconds",
            service="inference",
            code="OPERATION_TIMEOUT",
            details={"job_id": job_id, "timeout_seconds": timeout_seconds},
            unavailable=True,
        )
