"""
Credit ledger data models.

Balances are non-negative integers split into two pools: subscription
credits (granted each billing cycle) and purchased credits (never expire).
"""

from datetime import datetime
from enum import Enum
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, Field


T = TypeVar("T")


class TransactionType(str, Enum):
    """Types of ledger entries."""

    USAGE = "usage"                # Credits consumed by an operation
    REFUND = "refund"              # Credits restored after a failed operation
    SUBSCRIPTION = "subscription"  # Credits granted by a billing cycle
    PURCHASE = "purchase"          # Credits bought as a pack
    BONUS = "bonus"                # Sign-up or promotional credits


class CreditBalance(BaseModel):
    """A user's current credit pools."""

    user_id: str = Field(..., description="User ID")
    subscription_credits: int = Field(default=0, ge=0)
    purchased_credits: int = Field(default=0, ge=0)

    model_config = {"frozen": True}

    @property
    def total(self) -> int:
        return self.subscription_credits + self.purchased_credits


class DebitResult(BaseModel):
    """
    Balances returned by the atomic consume primitive.

    Callers report these values rather than re-reading the balance.
    """

    new_subscription_balance: int = Field(..., ge=0)
    new_purchased_balance: int = Field(..., ge=0)
    new_total_balance: int = Field(..., ge=0)

    model_config = {"frozen": True}


class RefundResult(BaseModel):
    """Outcome of a refund for a job id."""

    job_id: str
    refunded: bool = Field(..., description="False if this job was already refunded")
    new_total_balance: int = Field(..., ge=0)

    model_config = {"frozen": True}


class LedgerEntry(BaseModel):
    """One row of the credit transaction log."""

    id: str
    user_id: str
    amount: int = Field(..., description="Signed amount; negative for usage")
    type: TransactionType
    reference_id: Optional[str] = Field(None, description="Job id for usage and refunds")
    description: Optional[str] = None
    created_at: datetime

    model_config = {"frozen": True}


class AuditOutcome(str, Enum):
    """How a billable operation attempt ended."""

    SUCCESS = "success"
    FAILED = "failed"
    TIMEOUT = "timeout"
    INSUFFICIENT_CREDITS = "insufficient_credits"


class AuditEntry(BaseModel):
    """
    Observability record for a billable operation attempt.

    Separate from the ledger: it records outcome and error detail,
    not balance movements.
    """

    job_id: str
    user_id: str
    cost: int
    outcome: AuditOutcome
    credits_refunded: int = Field(default=0, ge=0)
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None
    created_at: datetime

    model_config = {"frozen": True}


class ChargeResult(BaseModel, Generic[T]):
    """Result of a successful charge_and_run."""

    job_id: str
    result: T
    credits_used: int
    balance: DebitResult

    @property
    def credits_remaining(self) -> int:
        return self.balance.new_total_balance


class BalanceResponse(BaseModel):
    """Response for GET /api/credits/balance."""

    subscription_credits: int
    purchased_credits: int
    total: int
    low_credits: bool
