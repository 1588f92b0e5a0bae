"""
Email API endpoints.
"""

from fastapi import APIRouter, Depends

from api.dependencies import get_email_service
from api.middleware.auth import get_current_user
from providers.models import SendEmailParams, SendEmailResult
from shared.exceptions import AuthorizationError
from shared.models import AuthenticatedUser, SuccessResponse

from .interfaces import IEmailService
from .models import ProviderStatusResponse, SendEmailRequest

router = APIRouter()


@router.post("/send", response_model=SuccessResponse[SendEmailResult])
async def send_email(
    request: SendEmailRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    email: IEmailService = Depends(get_email_service),
) -> SuccessResponse[SendEmailResult]:
    """Send an email to the authenticated user's own address."""
    result = await email.send(SendEmailParams(
        to=user.email,
        subject=request.subject,
        html=request.html,
        text=request.text,
        template=request.template,
        category=request.category,
        user_id=user.id,
    ))
    return SuccessResponse(data=result)


@router.get("/providers", response_model=SuccessResponse[ProviderStatusResponse])
async def get_provider_status(
    user: AuthenticatedUser = Depends(get_current_user),
    email: IEmailService = Depends(get_email_service),
) -> SuccessResponse[ProviderStatusResponse]:
    """Provider usage and availability. Admins only."""
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
    providers = await email.get_provider_status()
    return SuccessResponse(data=ProviderStatusResponse(providers=providers))
