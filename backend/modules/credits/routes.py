"""
Credit API endpoints.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_credit_ledger, get_plan_catalog
from api.middleware.auth import get_current_user
from modules.billing.interfaces import IPlanCatalog
from shared.models import AuthenticatedUser, SuccessResponse

from .interfaces import ICreditLedger
from .models import BalanceResponse

router = APIRouter()


@router.get("/balance", response_model=SuccessResponse[BalanceResponse])
async def get_balance(
    user: AuthenticatedUser = Depends(get_current_user),
    ledger: ICreditLedger = Depends(get_credit_ledger),
    catalog: IPlanCatalog = Depends(get_plan_catalog),
) -> SuccessResponse[BalanceResponse]:
    """Get the current user's credit pools."""
    balance = await ledger.get_balance(user.id)
    return SuccessResponse(data=BalanceResponse(
        subscription_credits=balance.subscription_credits,
        purchased_credits=balance.purchased_credits,
        total=balance.total,
        low_credits=balance.total < catalog.low_credit_threshold,
    ))
