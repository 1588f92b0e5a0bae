"""Tests for the credit ledger service."""

import asyncio
import re
from unittest.mock import AsyncMock

import pytest

from modules.credits.audit import InMemoryAuditLog
from modules.credits.exceptions import (
    InsufficientCreditsError,
    InvalidCostError,
    OperationTimeoutError,
)
from modules.credits.interfaces import ICreditLedger
from modules.credits.models import AuditOutcome, TransactionType
from modules.credits.service import CreditLedger, describe_operation, generate_job_id
from modules.credits.store import InMemoryCreditStore
from shared.exceptions import ProviderError


@pytest.fixture
def store():
    return InMemoryCreditStore(initial_credits=10)


@pytest.fixture
def audit_log():
    return InMemoryAuditLog()


@pytest.fixture
def ledger(store, audit_log):
    return CreditLedger(store, audit_log=audit_log, timeout_seconds=1.0)


def succeed_with(value):
    async def operation():
        return value
    return operation


class TestCreditLedger:
    def test_implements_interface(self, ledger):
        assert isinstance(ledger, ICreditLedger)

    @pytest.mark.asyncio
    async def test_successful_charge(self, ledger, store, audit_log):
        """A successful operation should debit once and never refund."""
        result = await ledger.charge_and_run("user-1", 3, succeed_with("done"), job_id="job-1")

        assert result.result == "done"
        assert result.job_id == "job-1"
        assert result.credits_used == 3
        assert result.credits_remaining == 7
        assert (await store.get_balance("user-1")).total == 7

        entries = store.get_ledger("user-1")
        assert [e.type for e in entries] == [TransactionType.USAGE]
        assert audit_log.entries[0].outcome == AuditOutcome.SUCCESS
        assert audit_log.entries[0].credits_refunded == 0

    @pytest.mark.asyncio
    async def test_insufficient_credits_skips_operation(self, store, audit_log):
        """A failed debit should not run the operation or change the balance."""
        store = InMemoryCreditStore(initial_credits=2)
        ledger = CreditLedger(store, audit_log=audit_log)
        operation = AsyncMock(return_value="never")

        with pytest.raises(InsufficientCreditsError):
            await ledger.charge_and_run("user-1", 3, operation)

        operation.assert_not_called()
        assert (await store.get_balance("user-1")).total == 2
        assert store.get_ledger("user-1") == []
        assert audit_log.entries[0].outcome == AuditOutcome.INSUFFICIENT_CREDITS
        assert audit_log.entries[0].error_code == "INSUFFICIENT_CREDITS"

    @pytest.mark.asyncio
    async def test_failed_operation_is_refunded(self, ledger, store, audit_log):
        """The operation's error should propagate after a full refund."""
        async def failing():
            raise ProviderError("Model crashed", service="replicate", vendor_code="PROCESSING_FAILED")

        with pytest.raises(ProviderError) as exc_info:
            await ledger.charge_and_run("user-1", 3, failing, job_id="job-1")

        assert exc_info.value.vendor_code == "PROCESSING_FAILED"
        assert (await store.get_balance("user-1")).total == 10
        types = [e.type for e in store.get_ledger("user-1")]
        assert types == [TransactionType.REFUND, TransactionType.USAGE]

        entry = audit_log.entries[0]
        assert entry.outcome == AuditOutcome.FAILED
        assert entry.credits_refunded == 3
        assert entry.error_code == "PROVIDER_ERROR"

    @pytest.mark.asyncio
    async def test_unclassified_error_is_refunded(self, ledger, store, audit_log):
        """Non-application errors should also be refunded and re-raised."""
        async def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await ledger.charge_and_run("user-1", 4, failing)

        assert (await store.get_balance("user-1")).total == 10
        assert audit_log.entries[0].error_code == "RuntimeError"
        assert audit_log.entries[0].error_message == "boom"

    @pytest.mark.asyncio
    async def test_timeout_refunds_and_raises(self, store, audit_log):
        """An operation over the timeout should net to zero and raise a timeout error."""
        ledger = CreditLedger(store, audit_log=audit_log, timeout_seconds=0.05)

        async def slow():
            await asyncio.sleep(5)

        with pytest.raises(OperationTimeoutError) as exc_info:
            await ledger.charge_and_run("user-1", 3, slow, job_id="job-slow")

        error = exc_info.value
        assert error.code == "OPERATION_TIMEOUT"
        assert error.status_code == 503
        assert error.details["job_id"] == "job-slow"
        assert (await store.get_balance("user-1")).total == 10
        assert audit_log.entries[0].outcome == AuditOutcome.TIMEOUT

    @pytest.mark.asyncio
    async def test_concurrent_charges(self, ledger, store):
        """Exactly floor(balance / cost) of many concurrent charges should succeed."""
        results = await asyncio.gather(
            *(ledger.charge_and_run("user-1", 3, succeed_with(i)) for i in range(8)),
            return_exceptions=True,
        )

        succeeded = [r for r in results if not isinstance(r, BaseException)]
        failed = [r for r in results if isinstance(r, BaseException)]
        assert len(succeeded) == 3
        assert all(isinstance(e, InsufficientCreditsError) for e in failed)
        assert (await store.get_balance("user-1")).total == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize("cost", [0, -1])
    async def test_rejects_non_positive_cost(self, ledger, cost):
        with pytest.raises(InvalidCostError):
            await ledger.charge_and_run("user-1", cost, succeed_with("x"))

    @pytest.mark.asyncio
    async def test_refund_failure_keeps_operation_error(self, store, audit_log):
        """A failing refund should be logged, not replace the operation's error."""
        store.refund_credits = AsyncMock(side_effect=RuntimeError("db down"))
        ledger = CreditLedger(store, audit_log=audit_log)

        async def failing():
            raise ProviderError("Model crashed", service="replicate")

        with pytest.raises(ProviderError):
            await ledger.charge_and_run("user-1", 3, failing)

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_fail_charge(self, store):
        """Audit writes are best-effort."""
        audit_log = AsyncMock()
        audit_log.record.side_effect = RuntimeError("audit table missing")
        ledger = CreditLedger(store, audit_log=audit_log)

        result = await ledger.charge_and_run("user-1", 1, succeed_with("ok"))

        assert result.result == "ok"

    @pytest.mark.asyncio
    async def test_generates_job_id_when_omitted(self, ledger):
        result = await ledger.charge_and_run("user-1", 1, succeed_with("ok"))
        assert result.job_id.startswith("gen_")


class TestHelpers:
    def test_generate_job_id_format(self):
        """Job ids should look like gen_{epoch_ms}_{9 chars}."""
        assert re.fullmatch(r"gen_\d{13}_[a-z0-9]{9}", generate_job_id())

    def test_generate_job_id_unique(self):
        assert len({generate_job_id() for _ in range(100)}) == 100

    def test_describe_operation(self):
        assert describe_operation("ultra", 8) == "Image processing (ultra tier, 8 credits)"
