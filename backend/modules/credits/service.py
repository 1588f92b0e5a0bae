"""
Credit ledger service.

Wraps a billable operation in debit-before-work / refund-on-failure
bookkeeping. Cross-request safety comes entirely from the store's atomic
primitives; the ledger itself holds no locks.
"""

import asyncio
import logging
import secrets
import string
import time
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, TypeVar

from shared.exceptions import PixelPerfectError

from .exceptions import InsufficientCreditsError, InvalidCostError, OperationTimeoutError
from .interfaces import ICreditStore, IOperationAuditLog
from .models import AuditEntry, AuditOutcome, ChargeResult, CreditBalance

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SECONDS = 120.0

_JOB_ID_ALPHABET = string.ascii_lowercase + string.digits


def generate_job_id() -> str:
    """Job ids look like gen_{epoch_ms}_{9 random chars}."""
    suffix = "".join(secrets.choice(_JOB_ID_ALPHABET) for _ in range(9))
    return f"gen_{int(time.time() * 1000)}_{suffix}"


def describe_operation(quality_tier: str, cost: int) -> str:
    """Ledger description for an image processing job."""
    return f"Image processing ({quality_tier} tier, {cost} credits)"


class CreditLedger:
    """
    Debits credits, runs the operation under a timeout, refunds on failure.
    """

    def __init__(
        self,
        store: ICreditStore,
        audit_log: Optional[IOperationAuditLog] = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Args:
            store: Atomic credit primitives
            audit_log: Optional sink for attempt outcomes
            timeout_seconds: Hard wall-clock limit for the operation
        """
        self._store = store
        self._audit_log = audit_log
        self._timeout = timeout_seconds

    async def get_balance(self, user_id: str) -> CreditBalance:
        return await self._store.get_balance(user_id)

    async def charge_and_run(
        self,
        user_id: str,
        cost: int,
        operation: Callable[[], Awaitable[T]],
        job_id: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ChargeResult[Any]:
        if cost <= 0:
            raise InvalidCostError(cost)

        job_id = job_id or generate_job_id()
        description = description or f"Processing job ({cost} credits)"
        started = time.monotonic()

        try:
            debit = await self._store.consume_credits(user_id, cost, job_id, description)
        except InsufficientCreditsError as e:
            logger.warning(f"Insufficient credits for user {user_id}: required {cost}")
            await self._audit(
                job_id, user_id, cost, AuditOutcome.INSUFFICIENT_CREDITS, started, error=e,
            )
            raise

        try:
            result = await asyncio.wait_for(operation(), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Job {job_id} timed out after {self._timeout:g}s, refunding")
            await self._refund(user_id, cost, job_id)
            error = OperationTimeoutError(self._timeout, job_id)
            await self._audit(
                job_id, user_id, cost, AuditOutcome.TIMEOUT, started,
                error=error, refunded=cost,
            )
            raise error from None
        except Exception as e:
            logger.warning(f"Job {job_id} failed ({type(e).__name__}), refunding {cost} credits")
            await self._refund(user_id, cost, job_id)
            await self._audit(
                job_id, user_id, cost, AuditOutcome.FAILED, started,
                error=e, refunded=cost,
            )
            raise

        await self._audit(job_id, user_id, cost, AuditOutcome.SUCCESS, started)
        logger.info(
            f"Job {job_id} charged {cost} credits to user {user_id}, "
            f"{debit.new_total_balance} remaining"
        )
        return ChargeResult(
            job_id=job_id,
            result=result,
            credits_used=cost,
            balance=debit,
        )

    async def _refund(self, user_id: str, cost: int, job_id: str) -> None:
        # Never mask the operation's own error
        try:
            refund = await self._store.refund_credits(user_id, cost, job_id)
        except Exception:
            logger.error(f"Refund failed for job {job_id} (user {user_id}, {cost} credits)", exc_info=True)
            return
        if not refund.refunded:
            logger.info(f"Job {job_id} was already refunded")

    async def _audit(
        self,
        job_id: str,
        user_id: str,
        cost: int,
        outcome: AuditOutcome,
        started: float,
        error: Optional[BaseException] = None,
        refunded: int = 0,
    ) -> None:
        if self._audit_log is None:
            return

        error_code = None
        error_message = None
        if isinstance(error, PixelPerfectError):
            error_code = error.code
            error_message = error.message
        elif error is not None:
            error_code = type(error).__name__
            error_message = str(error)

        entry = AuditEntry(
            job_id=job_id,
            user_id=user_id,
            cost=cost,
            outcome=outcome,
            credits_refunded=refunded,
            error_code=error_code,
            error_message=error_message,
            duration_ms=int((time.monotonic() - started) * 1000),
            created_at=datetime.now(timezone.utc),
        )
        try:
            await self._audit_log.record(entry)
        except Exception:
            logger.error(f"Failed to write audit entry for job {job_id}", exc_info=True)
