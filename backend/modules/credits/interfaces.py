"""
Credit ledger module interface.

Other modules depend on ICreditLedger, not the concrete implementation.
The store protocol is the seam to the database's atomic primitives.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol, TypeVar, runtime_checkable

from .models import (
    AuditEntry,
    ChargeResult,
    CreditBalance,
    DebitResult,
    RefundResult,
)


T = TypeVar("T")


@runtime_checkable
class ICreditStore(Protocol):
    """
    Atomic balance primitives.

    Implementations must make consume a single compare-and-decrement
    (no read-then-write) and make refund idempotent per job id.
    """

    async def consume_credits(
        self,
        user_id: str,
        amount: int,
        job_id: str,
        description: str,
    ) -> DebitResult:
        """
        Atomically debit credits, subscription pool first, and log a usage entry.

        Args:
            user_id: User to debit
            amount: Positive number of credits
            job_id: Job identifier recorded on the ledger entry
            description: Human-readable ledger description

        Returns:
            DebitResult with the balances after the debit

        Raises:
            InsufficientCreditsError: If the combined balance is below amount
        """
        ...

    async def refund_credits(
        self,
        user_id: str,
        amount: int,
        job_id: str,
    ) -> RefundResult:
        """
        Restore credits debited for a job.

        Calling this twice for the same job id refunds once.

        Args:
            user_id: User to credit
            amount: Credits to restore
            job_id: Job identifier of the original debit

        Returns:
            RefundResult; refunded is False for a repeat call
        """
        ...

    async def get_balance(self, user_id: str) -> CreditBalance:
        """Get the user's current credit pools."""
        ...


@runtime_checkable
class IOperationAuditLog(Protocol):
    """Write-only log of billable operation attempts."""

    async def record(self, entry: AuditEntry) -> None:
        """
        Persist an audit entry.

        Args:
            entry: Attempt outcome to record
        """
        ...


@runtime_checkable
class ICreditLedger(Protocol):
    """
    Debit-before-work / refund-on-failure around a billable operation.
    """

    async def charge_and_run(
        self,
        user_id: str,
        cost: int,
        operation: Callable[[], Awaitable[T]],
        job_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ChargeResult[Any]:
        """
        Debit credits, run the operation, refund if it fails.

        Args:
            user_id: User to charge
            cost: Positive credit cost, computed before calling
            operation: Zero-argument coroutine factory doing the external work
            job_id: Optional job identifier (generated when omitted)
            description: Optional ledger description

        Returns:
            ChargeResult with the operation's result and the post-debit balance

        Raises:
            InvalidCostError: If cost is not positive
            InsufficientCreditsError: If the balance is too low (nothing is run)
            OperationTimeoutError: If the operation exceeds the timeout (refunded)
            Exception: Whatever the operation raised (refunded)
        """
        ...

    async def get_balance(self, user_id: str) -> CreditBalance:
        """Get the user's current credit pools."""
        ...
