import logging
from datetime import timedelta
from uuid import UUID

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.exceptions import BillingError, NotFoundError
from app.models.user import User, UserTier
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

STRIPE_CHECKOUT_URL = "https://api.stripe.com/v1/checkout/sessions"
PLACEHOLDER_CHECKOUT_URL = "https://example.com/upgrade-placeholder"
PREMIUM_PRICE_CENTS = 399


def _http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=30)


def _checkout_form(user_id: UUID, app_url: str) -> dict[str, str]:
    return {
        "mode": "subscription",
        "success_url": f"{app_url}/upgrade-success",
        "cancel_url": f"{app_url}/upgrade-cancelled",
        "line_items[0][quantity]": "1",
        "line_items[0][price_data][currency]": "usd",
        "line_items[0][price_data][unit_amount]": str(PREMIUM_PRICE_CENTS),
        "line_items[0][price_data][recurring][interval]": "month",
        "line_items[0][price_data][product_data][name]": "StoryNest Premium",
        "line_items[0][price_data][product_data][description]": (
            "Unlimited story generation with advanced features"
        ),
        "metadata[userId]": str(user_id),
    }


async def create_checkout_session(user_id: UUID) -> str:
    """Return a hosted checkout URL, or a placeholder when Stripe is not configured."""
    settings = get_settings()
    if not settings.stripe_secret_key:
        return PLACEHOLDER_CHECKOUT_URL

    try:
        async with _http_client() as client:
            response = await client.post(
                STRIPE_CHECKOUT_URL,
                data=_checkout_form(user_id, settings.app_url),
                auth=(settings.stripe_secret_key, ""),
            )
    except httpx.HTTPError as e:
        logger.error("Stripe request failed: %s", e)
        raise BillingError("Unable to start checkout", cause=e) from e

    if response.status_code != 200:
        logger.error("Stripe checkout failed (%d): %s", response.status_code, response.text)
        raise BillingError("Unable to start checkout")

    url = response.json().get("url")
    if not url:
        raise BillingError("Checkout session has no URL")
    return url


async def activate_premium(db: AsyncSession, user_id: UUID, days: int | None = None) -> User:
    days = days if days is not None else get_settings().premium_days
    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        raise NotFoundError("User not found")
    user.tier = UserTier.PREMIUM.value
    user.premium_until = utcnow() + timedelta(days=days)
    await db.commit()
    logger.info("Activated premium for user %s until %s", user_id, user.premium_until)
    return user
