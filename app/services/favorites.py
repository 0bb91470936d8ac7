import logging
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.story import Story, StoryFavorite

logger = logging.getLogger(__name__)


async def add_favorite(db: AsyncSession, user_id: UUID, story_id: UUID) -> bool:
    """Favorite a story; False when it is already favorited."""
    db.add(StoryFavorite(user_id=user_id, story_id=story_id))
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return False
    return True


async def remove_favorite(db: AsyncSession, user_id: UUID, story_id: UUID) -> bool:
    result = await db.execute(
        delete(StoryFavorite).where(StoryFavorite.user_id == user_id, StoryFavorite.story_id == story_id)
    )
    await db.commit()
    return result.rowcount > 0


async def is_favorite(db: AsyncSession, user_id: UUID, story_id: UUID) -> bool:
    result = await db.execute(
        select(StoryFavorite.id)
        .where(StoryFavorite.user_id == user_id, StoryFavorite.story_id == story_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def get_favorites_for_user(db: AsyncSession, user_id: UUID) -> list[Story]:
    """Favorited stories, most recently favorited first."""
    result = await db.execute(
        select(Story)
        .join(StoryFavorite, StoryFavorite.story_id == Story.id)
        .where(StoryFavorite.user_id == user_id)
        .order_by(StoryFavorite.created_at.desc())
    )
    return list(result.scalars().all())

