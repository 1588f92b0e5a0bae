"""
Subscription API endpoints.

Plan changes for existing subscribers. New subscriptions go through the
checkout flow, not these endpoints.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_plan_change_service
from api.middleware.auth import get_current_user
from shared.models import AuthenticatedUser, SuccessResponse

from .interfaces import IPlanChangeService
from .models import (
    ChangePlanRequest,
    ChangePreview,
    ChangeResult,
    SubscriptionStatusResponse,
)

router = APIRouter()


@router.get("", response_model=SuccessResponse[SubscriptionStatusResponse])
async def get_subscription(
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPlanChangeService = Depends(get_plan_change_service),
) -> SuccessResponse[SubscriptionStatusResponse]:
    """Get the current user's subscription and any pending downgrade."""
    return SuccessResponse(data=await service.get_status(user.id))


@router.post("/preview-change", response_model=SuccessResponse[ChangePreview])
async def preview_change(
    request: ChangePlanRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPlanChangeService = Depends(get_plan_change_service),
) -> SuccessResponse[ChangePreview]:
    """
    Preview a plan change.

    Upgrades show the prorated amount charged now; downgrades show
    amount_due 0 and the date they take effect.
    """
    return SuccessResponse(data=await service.preview_change(user.id, request.target_price_id))


@router.post("/change", response_model=SuccessResponse[ChangeResult])
async def change_plan(
    request: ChangePlanRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    service: IPlanChangeService = Depends(get_plan_change_service),
) -> SuccessResponse[ChangeResult]:
    """
    Change plan.

    Returns 409 if the subscription was changed elsewhere since it was loaded.
    """
    return SuccessResponse(data=await service.apply_change(user.id, request.target_price_id))
