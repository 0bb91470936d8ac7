import logging
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidRequestError
from app.models.follow import Follow

logger = logging.getLogger(__name__)


async def add_follow(db: AsyncSession, follower_id: UUID, following_id: UUID) -> Follow:
    if follower_id == following_id:
        raise InvalidRequestError("Cannot follow yourself")

    follow = Follow(follower_id=follower_id, following_id=following_id)
    db.add(follow)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise InvalidRequestError("Already following this user")
    await db.refresh(follow)
    return follow


async def remove_follow(db: AsyncSession, follower_id: UUID, following_id: UUID) -> bool:
    result = await db.execute(
        delete(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    )
    await db.commit()
    return result.rowcount > 0


async def is_following(db: AsyncSession, follower_id: UUID, following_id: UUID) -> bool:
    result = await db.execute(
        select(Follow.id)
        .where(Follow.follower_id == follower_id, Follow.following_id == following_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_following(db: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0) -> list[Follow]:
    result = await db.execute(
        select(Follow)
        .where(Follow.follower_id == user_id)
        .order_by(Follow.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_followers(db: AsyncSession, user_id: UUID, limit: int = 50, offset: int = 0) -> list[Follow]:
    result = await db.execute(
        select(Follow)
        .where(Follow.following_id == user_id)
        .order_by(Follow.created_at.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def get_follow_stats(db: AsyncSession, user_id: UUID) -> dict[str, int]:
    following = await db.execute(
        select(func.count()).select_from(Follow).where(Follow.follower_id == user_id)
    )
    followers = await db.execute(
        select(func.count()).select_from(Follow).where(Follow.following_id == user_id)
    )
    return {
        "following_count": following.scalar() or 0,
        "followers_count": followers.scalar() or 0,
    }
