"""Free-tier daily generation quota."""
import logging
from datetime import date, datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.exceptions import LimitExceededError
from app.models.story_usage import StoryUsage
from app.models.user import User, UserTier
from app.utils.dates import as_utc, utcnow
from app.utils.upsert import upsert_insert

logger = logging.getLogger(__name__)


def is_premium_active(user: User, now: Optional[datetime] = None) -> bool:
    """PREMIUM with no end date is indefinite; otherwise the end date must be in the future."""
    if user.tier != UserTier.PREMIUM.value:
        return False
    if user.premium_until is None:
        return True
    return as_utc(user.premium_until) > (now or utcnow())


async def get_usage_count(db: AsyncSession, user_id: UUID, day: Optional[date] = None) -> int:
    day = day or utcnow().date()
    result = await db.execute(
        select(StoryUsage.count).where(StoryUsage.user_id == user_id, StoryUsage.usage_date == day)
    )
    return result.scalar_one_or_none() or 0


async def remaining_free_generations(db: AsyncSession, user_id: UUID, day: Optional[date] = None) -> int:
    used = await get_usage_count(db, user_id, day)
    return max(0, get_settings().free_story_daily_limit - used)


async def remaining_generations(
    db: AsyncSession, user: User, now: Optional[datetime] = None
) -> Optional[int]:
    """Remaining free generations today, or None for unlimited (active premium)."""
    now = now or utcnow()
    if is_premium_active(user, now):
        return None
    return await remaining_free_generations(db, user.id, now.date())


async def ensure_under_limit(
    db: AsyncSession, user: User, now: Optional[datetime] = None
) -> Optional[int]:
    remaining = await remaining_generations(db, user, now)
    if remaining is not None and remaining <= 0:
        logger.info("Daily generation limit reached for user %s", user.id)
        raise LimitExceededError("Daily limit reached", remaining=0)
    return remaining


async def increment_usage(db: AsyncSession, user_id: UUID, day: Optional[date] = None) -> None:
    """Atomically bump today's counter, creating the row on first use."""
    day = day or utcnow().date()
    table = StoryUsage.__table__
    stmt = upsert_insert(db, table).values(user_id=user_id, usage_date=day, count=1)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_id, table.c.usage_date],
        set_={"count": table.c["count"] + 1},
    )
    await db.execute(stmt)
    await db.commit()
