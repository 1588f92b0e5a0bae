"""
Upscale service implementation.

Orders the checks so nothing is charged until the request is known to be
valid, allowed for the caller's tier and within the hourly batch cap.
"""

import base64
import binascii
import logging
from functools import partial

from modules.billing.catalog import FREE_TIER
from modules.billing.interfaces import IPlanCatalog
from modules.credits.interfaces import ICreditLedger
from modules.credits.service import describe_operation, generate_job_id
from modules.limits.interfaces import IBatchLimiter
from modules.subscriptions.interfaces import ISubscriptionRepository
from providers.models import ProcessImageParams

from .exceptions import ImageTooLargeError, InvalidImageError
from .interfaces import IImageProcessor
from .models import EstimateRequest, EstimateResponse, UpscaleRequest, UpscaleResponse

logger = logging.getLogger(__name__)

MAX_IMAGE_BYTES_FREE = 5 * 1024 * 1024
MAX_IMAGE_BYTES_PAID = 25 * 1024 * 1024


def decoded_size(payload: str) -> int:
    """Size in bytes of a base64 payload.

    Raises:
        InvalidImageError: If the payload is not valid base64
    """
    try:
        return len(base64.b64decode(payload, validate=True))
    except (binascii.Error, ValueError):
        raise InvalidImageError("image_data is not valid base64") from None


def estimate_operation(catalog: IPlanCatalog, request: EstimateRequest) -> EstimateResponse:
    """Price an operation from the catalog alone."""
    cost = catalog.calculate_credit_cost(request.quality_tier, request.scale, request.options)
    tier = catalog.get_quality_tier(request.quality_tier)
    return EstimateResponse(cost=cost, model_id=tier.model_id)


class UpscaleService:
    """
    Charged image processing.
    """

    def __init__(
        self,
        catalog: IPlanCatalog,
        ledger: ICreditLedger,
        processor: IImageProcessor,
        batch_limiter: IBatchLimiter,
        profiles: ISubscriptionRepository,
    ):
        self._catalog = catalog
        self._ledger = ledger
        self._processor = processor
        self._batch_limiter = batch_limiter
        self._profiles = profiles

    async def estimate(self, request: EstimateRequest) -> EstimateResponse:
        return estimate_operation(self._catalog, request)

    async def upscale(self, user_id: str, request: UpscaleRequest) -> UpscaleResponse:
        cost = self._catalog.calculate_credit_cost(request.quality_tier, request.scale, request.options)
        quality = self._catalog.get_quality_tier(request.quality_tier)

        user_tier = await self._profiles.get_profile_tier(user_id) or FREE_TIER
        max_bytes = MAX_IMAGE_BYTES_FREE if user_tier == FREE_TIER else MAX_IMAGE_BYTES_PAID
        size = decoded_size(request.base64_payload())
        if size == 0:
            raise InvalidImageError("image_data is empty")
        if size > max_bytes:
            raise ImageTooLargeError(size, max_bytes)

        self._catalog.assert_tier_allowed(quality.key, user_tier)
        await self._batch_limiter.enforce(user_id, self._catalog.batch_limit_for_tier(user_tier))

        params = ProcessImageParams(
            image=request.to_data_url(),
            model_id=quality.model_id,
            scale=request.scale,
            enhance_faces=request.options.enhance_faces,
            preserve_text=request.options.preserve_text,
            custom_instructions=request.options.custom_instructions,
        )
        charge = await self._ledger.charge_and_run(
            user_id,
            cost.total,
            partial(self._processor.process, params),
            job_id=generate_job_id(),
            description=describe_operation(quality.key, cost.total),
        )

        processed = charge.result
        return UpscaleResponse(
            image_url=processed.image_url,
            job_id=charge.job_id,
            model_id=processed.model_id,
            credits_used=charge.credits_used,
            credits_remaining=charge.credits_remaining,
            low_credits=charge.credits_remaining < self._catalog.low_credit_threshold,
            processing_time_ms=processed.processing_time_ms,
            cost=cost,
        )
