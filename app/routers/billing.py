from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.auth import UserOut
from app.schemas.billing import CheckoutResponse, UpgradeResponse
from app.services import billing_service

router = APIRouter()


@router.post("/checkout", response_model=CheckoutResponse)
async def create_checkout(current_user: User = Depends(get_current_user)) -> CheckoutResponse:
    """
    Start a premium subscription checkout.

    Returns a placeholder URL when no Stripe key is configured.
    **Response:** {checkoutUrl}
    **Errors:** 500 (payment provider failure)
    """
    url = await billing_service.create_checkout_session(current_user.id)
    return CheckoutResponse(checkout_url=url)


@router.post("/webhook/mock-upgrade", response_model=UpgradeResponse)
async def mock_upgrade(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> UpgradeResponse:
    """Grant premium for 30 days without payment (development and QA builds)."""
    user = await billing_service.activate_premium(db, current_user.id)
    return UpgradeResponse(user=UserOut.model_validate(user))
