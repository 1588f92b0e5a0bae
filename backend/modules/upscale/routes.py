"""
Upscale API endpoints.
"""

from fastapi import APIRouter, Depends, Response

from api.dependencies import get_plan_catalog, get_rate_limiter, get_upscale_service
from api.middleware.auth import get_current_user
from modules.billing.interfaces import IPlanCatalog
from modules.limits.interfaces import IRateLimiter
from shared.models import AuthenticatedUser, SuccessResponse

from .interfaces import IUpscaleService
from .models import EstimateRequest, EstimateResponse, UpscaleRequest, UpscaleResponse
from .service import estimate_operation

router = APIRouter()


@router.post("", response_model=SuccessResponse[UpscaleResponse])
async def upscale_image(
    request: UpscaleRequest,
    response: Response,
    user: AuthenticatedUser = Depends(get_current_user),
    rate_limiter: IRateLimiter = Depends(get_rate_limiter),
    service: IUpscaleService = Depends(get_upscale_service),
) -> SuccessResponse[UpscaleResponse]:
    """
    Upscale an image, charging credits.

    The rate limit is checked before any credit logic runs.
    """
    limit = await rate_limiter.enforce(user.id)
    response.headers["X-RateLimit-Limit"] = str(limit.limit)
    response.headers["X-RateLimit-Remaining"] = str(limit.remaining)
    response.headers["X-RateLimit-Reset"] = limit.reset_at.isoformat()

    result = await service.upscale(user.id, request)
    return SuccessResponse(data=result)


@router.post("/estimate", response_model=SuccessResponse[EstimateResponse])
async def estimate_cost(
    request: EstimateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    catalog: IPlanCatalog = Depends(get_plan_catalog),
) -> SuccessResponse[EstimateResponse]:
    """Price an operation without charging."""
    return SuccessResponse(data=estimate_operation(catalog, request))
