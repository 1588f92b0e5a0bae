"""
Credit store implementations.

InMemoryCreditStore serializes mutations with an asyncio.Lock and stands in
for the database in tests and local runs. SupabaseCreditStore delegates to
the consume_credits_v2 / refund_credits stored procedures, which do the
compare-and-decrement inside a single database statement.
"""

import asyncio
import logging
import re
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from postgrest.exceptions import APIError

from shared.exceptions import InternalError
from shared.repository import BaseRepository

from .exceptions import InsufficientCreditsError
from .models import (
    CreditBalance,
    DebitResult,
    LedgerEntry,
    RefundResult,
    TransactionType,
)

logger = logging.getLogger(__name__)

_AVAILABLE_PATTERN = re.compile(r"Available:\s*(\d+)")


class InMemoryCreditStore:
    """
    Credit store with in-memory storage.

    For testing and development. Use SupabaseCreditStore for production.
    """

    def __init__(self, initial_credits: int = 0):
        """
        Args:
            initial_credits: Purchased-pool balance given to unseen users
        """
        self._initial_credits = initial_credits
        self._lock = asyncio.Lock()
        self._balances: dict[str, CreditBalance] = {}
        self._entries: list[LedgerEntry] = []
        # job_id -> (user_id, taken from subscription pool, taken from purchased pool)
        self._debits: dict[str, tuple[str, int, int]] = {}
        self._refunded_jobs: set[str] = set()

    def _balance(self, user_id: str) -> CreditBalance:
        if user_id not in self._balances:
            self._balances[user_id] = CreditBalance(
                user_id=user_id,
                purchased_credits=self._initial_credits,
            )
        return self._balances[user_id]

    def _log(
        self,
        user_id: str,
        amount: int,
        entry_type: TransactionType,
        reference_id: Optional[str],
        description: Optional[str],
    ) -> None:
        self._entries.insert(0, LedgerEntry(
            id=str(uuid.uuid4()),
            user_id=user_id,
            amount=amount,
            type=entry_type,
            reference_id=reference_id,
            description=description,
            created_at=datetime.now(timezone.utc),
        ))

    async def add_credits(
        self,
        user_id: str,
        amount: int,
        transaction_type: TransactionType = TransactionType.PURCHASE,
        reference_id: Optional[str] = None,
    ) -> CreditBalance:
        """Grant credits; subscription grants go to the subscription pool."""
        async with self._lock:
            current = self._balance(user_id)
            if transaction_type == TransactionType.SUBSCRIPTION:
                updated = current.model_copy(
                    update={"subscription_credits": current.subscription_credits + amount}
                )
            else:
                updated = current.model_copy(
                    update={"purchased_credits": current.purchased_credits + amount}
                )
            self._balances[user_id] = updated
            self._log(
                user_id, amount, transaction_type, reference_id,
                f"{transaction_type.value} credits",
            )
            return updated

    async def consume_credits(
        self,
        user_id: str,
        amount: int,
        job_id: str,
        description: str,
    ) -> DebitResult:
        """Debit subscription credits first, then purchased credits."""
        async with self._lock:
            current = self._balance(user_id)
            if current.total < amount:
                raise InsufficientCreditsError(
                    required=amount,
                    available=current.total,
                    user_id=user_id,
                )

            from_subscription = min(current.subscription_credits, amount)
            from_purchased = amount - from_subscription
            updated = CreditBalance(
                user_id=user_id,
                subscription_credits=current.subscription_credits - from_subscription,
                purchased_credits=current.purchased_credits - from_purchased,
            )
            self._balances[user_id] = updated
            self._debits[job_id] = (user_id, from_subscription, from_purchased)

            if from_subscription > 0 and from_purchased > 0:
                description = f"{description} (sub: {from_subscription}, purchased: {from_purchased})"
            self._log(user_id, -amount, TransactionType.USAGE, job_id, description)

            return DebitResult(
                new_subscription_balance=updated.subscription_credits,
                new_purchased_balance=updated.purchased_credits,
                new_total_balance=updated.total,
            )

    async def refund_credits(
        self,
        user_id: str,
        amount: int,
        job_id: str,
    ) -> RefundResult:
        """Restore credits to the pools they were taken from."""
        async with self._lock:
            current = self._balance(user_id)
            if job_id in self._refunded_jobs:
                logger.info(f"Refund for job {job_id} already applied")
                return RefundResult(
                    job_id=job_id,
                    refunded=False,
                    new_total_balance=current.total,
                )

            _, from_subscription, _ = self._debits.get(job_id, (user_id, 0, amount))
            to_subscription = min(from_subscription, amount)
            updated = CreditBalance(
                user_id=user_id,
                subscription_credits=current.subscription_credits + to_subscription,
                purchased_credits=current.purchased_credits + (amount - to_subscription),
            )
            self._balances[user_id] = updated
            self._refunded_jobs.add(job_id)
            self._log(user_id, amount, TransactionType.REFUND, job_id, "Processing refund")

            return RefundResult(
                job_id=job_id,
                refunded=True,
                new_total_balance=updated.total,
            )

    async def get_balance(self, user_id: str) -> CreditBalance:
        return self._balance(user_id)

    def get_ledger(self, user_id: Optional[str] = None) -> list[LedgerEntry]:
        """Ledger entries, newest first."""
        if user_id is None:
            return list(self._entries)
        return [e for e in self._entries if e.user_id == user_id]


class SupabaseCreditStore(BaseRepository[CreditBalance]):
    """
    Credit store backed by Supabase stored procedures.
    """

    async def consume_credits(
        self,
        user_id: str,
        amount: int,
        job_id: str,
        description: str,
    ) -> DebitResult:
        try:
            result = self._db.rpc("consume_credits_v2", {
                "target_user_id": user_id,
                "amount": amount,
                "ref_id": job_id,
                "description": description,
            }).execute()
        except APIError as e:
            message = e.message or ""
            if "Insufficient credits" in message:
                match = _AVAILABLE_PATTERN.search(message)
                raise InsufficientCreditsError(
                    required=amount,
                    available=int(match.group(1)) if match else None,
                    user_id=user_id,
                ) from e
            raise

        row = self._first_row(result.data)
        if row is None:
            raise InternalError("Credit debit returned no balance")
        return DebitResult(
            new_subscription_balance=row["new_subscription_balance"],
            new_purchased_balance=row["new_purchased_balance"],
            new_total_balance=row["new_total_balance"],
        )

    async def refund_credits(
        self,
        user_id: str,
        amount: int,
        job_id: str,
    ) -> RefundResult:
        result = self._db.rpc("refund_credits", {
            "target_user_id": user_id,
            "amount": amount,
            "job_id": job_id,
        }).execute()

        row = self._first_row(result.data)
        if row is None:
            raise InternalError("Credit refund returned no balance")
        return RefundResult(
            job_id=job_id,
            refunded=bool(row["refunded"]),
            new_total_balance=row["new_total_balance"],
        )

    async def get_balance(self, user_id: str) -> CreditBalance:
        result = (
            self._db.table("profiles")
            .select("subscription_credits_balance, purchased_credits_balance")
            .eq("id", user_id)
            .execute()
        )
        row: Optional[dict[str, Any]] = self._first_row(result.data)
        if row is None:
            return CreditBalance(user_id=user_id)
        return CreditBalance(
            user_id=user_id,
            subscription_credits=row.get("subscription_credits_balance") or 0,
            purchased_credits=row.get("purchased_credits_balance") or 0,
        )
