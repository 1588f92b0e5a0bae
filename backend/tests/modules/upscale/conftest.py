"""Pytest fixtures for upscale tests."""

import pytest

from modules.billing.catalog import PlanCatalog
from modules.credits.audit import InMemoryAuditLog
from modules.credits.service import CreditLedger
from modules.credits.store import InMemoryCreditStore
from modules.limits.service import InMemoryBatchLimiter
from modules.subscriptions.repository import InMemorySubscriptionRepository
from modules.upscale.service import UpscaleService
from providers.models import ProcessedImage, ProcessImageParams


class FakeImageProcessor:
    """Records calls; fails with `error` when set."""

    def __init__(self) -> None:
        self.calls: list[ProcessImageParams] = []
        self.error = None

    async def process(self, params: ProcessImageParams) -> ProcessedImage:
        self.calls.append(params)
        if self.error is not None:
            raise self.error
        return ProcessedImage(
            image_url="https://replicate.delivery/out.png",
            model_id=params.model_id,
            prediction_id="pred_1",
            processing_time_ms=1200,
        )


@pytest.fixture
def credit_store():
    return InMemoryCreditStore(initial_credits=10)


@pytest.fixture
def audit_log():
    return InMemoryAuditLog()


@pytest.fixture
def processor():
    return FakeImageProcessor()


@pytest.fixture
def batch_limiter():
    return InMemoryBatchLimiter()


@pytest.fixture
def profiles():
    return InMemorySubscriptionRepository()


@pytest.fixture
def upscale_service(credit_store, audit_log, processor, batch_limiter, profiles):
    return UpscaleService(
        catalog=PlanCatalog(),
        ledger=CreditLedger(credit_store, audit_log=audit_log),
        processor=processor,
        batch_limiter=batch_limiter,
        profiles=profiles,
    )
