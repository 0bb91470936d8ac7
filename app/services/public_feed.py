"""Public feed: sharing, likes, comments and XP-gated themes.

Sharing is capped per user per UTC calendar day. The cap is enforced by a
conditional upsert on ``daily_share_limit`` executed in the same transaction
as the ``public_stories`` insert, so two concurrent shares cannot both pass.
"""
import logging
import re
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import and_, case, delete, literal, not_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.exceptions import ConflictError, DailyShareLimitError, EmptyContentError, ForbiddenError, NotFoundError
from app.models.public_feed import DailyShareLimit, PublicStory, PublicStoryComment, PublicStoryLike, ThemeUnlock
from app.models.story import Story
from app.utils.dates import start_of_day, utc_date, utcnow
from app.utils.upsert import upsert_insert

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200
TITLE_MAX_LENGTH = 500
COMMENT_MAX_LENGTH = 500

_TAG_RE = re.compile(r"<[^>]*>")

DEFAULT_THEMES = (
    ("default", "Enchanted", 0),
    ("forest", "Forest", 100),
    ("lava", "Lava", 250),
    ("ocean", "Ocean", 500),
    ("twilight", "Twilight", 750),
    ("sunset", "Sunset", 1000),
    ("midnight", "Midnight", 2500),
)


def sanitize(value: str, max_length: int = COMMENT_MAX_LENGTH) -> str:
    """Trim, truncate, strip tag-like substrings, then HTML-escape & < >."""
    text = value.strip()[:max_length]
    text = _TAG_RE.sub("", text)
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


async def can_share_today(db: AsyncSession, user_id: UUID, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    result = await db.execute(
        select(DailyShareLimit)
        .where(DailyShareLimit.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    row = result.scalar_one_or_none()
    if row is None:
        return True
    if utc_date(row.last_reset) != now.date():
        return True
    return row.shared_count < get_settings().daily_share_limit


async def _claim_share_slot(db: AsyncSession, user_id: UUID, now: datetime) -> bool:
    """Consume today's share allowance; False when it is already used up."""
    table = DailyShareLimit.__table__
    reset_today = table.c.last_reset >= start_of_day(now.date())

    stmt = upsert_insert(db, table).values(user_id=user_id, shared_count=1, last_reset=now)
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.user_id],
        set_={
            "shared_count": case((reset_today, table.c.shared_count + 1), else_=literal(1)),
            "last_reset": case((reset_today, table.c.last_reset), else_=literal(now, table.c.last_reset.type)),
        },
        where=not_(and_(reset_today, table.c.shared_count >= get_settings().daily_share_limit)),
    )
    result = await db.execute(stmt)
    return result.rowcount > 0


def _public_story_query():
    return select(
        PublicStory.id,
        PublicStory.story_id,
        PublicStory.user_id,
        PublicStory.title,
        PublicStory.excerpt,
        Story.content.label("text"),
        PublicStory.like_count,
        PublicStory.comment_count,
        PublicStory.shared_at,
    ).outerjoin(Story, PublicStory.story_id == Story.id)


async def get_public_story(db: AsyncSession, public_story_id: UUID) -> Optional[dict[str, Any]]:
    result = await db.execute(_public_story_query().where(PublicStory.id == public_story_id))
    row = result.mappings().one_or_none()
    return dict(row) if row is not None else None


async def share_story(
    db: AsyncSession,
    story_id: UUID,
    user_id: UUID,
    title: str,
    content: str,
    now: Optional[datetime] = None,
) -> dict[str, Any]:
    now = now or utcnow()
    if not await can_share_today(db, user_id, now):
        raise DailyShareLimitError()

    excerpt = sanitize(content[:EXCERPT_LENGTH], EXCERPT_LENGTH)
    safe_title = sanitize(title, TITLE_MAX_LENGTH)

    try:
        if not await _claim_share_slot(db, user_id, now):
            raise DailyShareLimitError()
        public_story = PublicStory(
            story_id=story_id,
            user_id=user_id,
            title=safe_title,
            excerpt=excerpt,
            shared_at=now,
        )
        db.add(public_story)
        await db.flush()
        public_story_id = public_story.id
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Story has already been shared to the feed")

    logger.info("User %s shared story %s to the public feed", user_id, story_id)
    return await get_public_story(db, public_story_id)


async def get_public_feed(db: AsyncSession, limit: int = 20, offset: int = 0) -> list[dict[str, Any]]:
    result = await db.execute(
        _public_story_query().order_by(PublicStory.shared_at.desc()).limit(limit).offset(offset)
    )
    return [dict(row) for row in result.mappings().all()]


async def _require_public_story(db: AsyncSession, public_story_id: UUID) -> PublicStory:
    story = await db.get(PublicStory, public_story_id)
    if story is None:
        raise NotFoundError("Public story not found")
    return story


async def has_user_liked(db: AsyncSession, public_story_id: UUID, user_id: UUID) -> bool:
    result = await db.execute(
        select(PublicStoryLike.id)
        .where(PublicStoryLike.public_story_id == public_story_id, PublicStoryLike.user_id == user_id)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def like_story(db: AsyncSession, public_story_id: UUID, user_id: UUID) -> bool:
    """Add a like; False when the user already likes the story."""
    if await has_user_liked(db, public_story_id, user_id):
        return False
    db.add(PublicStoryLike(public_story_id=public_story_id, user_id=user_id))
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return False
    await db.execute(
        update(PublicStory)
        .where(PublicStory.id == public_story_id)
        .values(like_count=PublicStory.like_count + 1)
    )
    await db.commit()
    return True


async def unlike_story(db: AsyncSession, public_story_id: UUID, user_id: UUID) -> bool:
    result = await db.execute(
        delete(PublicStoryLike).where(
            PublicStoryLike.public_story_id == public_story_id,
            PublicStoryLike.user_id == user_id,
        )
    )
    if result.rowcount == 0:
        return False
    await db.execute(
        update(PublicStory)
        .where(PublicStory.id == public_story_id, PublicStory.like_count > 0)
        .values(like_count=PublicStory.like_count - 1)
    )
    await db.commit()
    return True


async def add_comment(
    db: AsyncSession, public_story_id: UUID, user_id: UUID, content: str
) -> PublicStoryComment:
    text = sanitize(content, COMMENT_MAX_LENGTH)
    if not text:
        raise EmptyContentError()

    await _require_public_story(db, public_story_id)
    comment = PublicStoryComment(public_story_id=public_story_id, user_id=user_id, content=text)
    db.add(comment)
    await db.flush()
    await db.execute(
        update(PublicStory)
        .where(PublicStory.id == public_story_id)
        .values(comment_count=PublicStory.comment_count + 1)
    )
    await db.commit()
    return comment


async def get_story_comments(db: AsyncSession, public_story_id: UUID, limit: int = 20) -> list[PublicStoryComment]:
    result = await db.execute(
        select(PublicStoryComment)
        .where(PublicStoryComment.public_story_id == public_story_id)
        .order_by(PublicStoryComment.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


async def delete_comment(db: AsyncSession, comment_id: UUID, user_id: UUID) -> None:
    comment = await db.get(PublicStoryComment, comment_id)
    if comment is None:
        raise NotFoundError("Comment not found")
    if comment.user_id != user_id:
        raise ForbiddenError("Cannot delete another user's comment")

    public_story_id = comment.public_story_id
    await db.delete(comment)
    await db.flush()
    await db.execute(
        update(PublicStory)
        .where(PublicStory.id == public_story_id, PublicStory.comment_count > 0)
        .values(comment_count=PublicStory.comment_count - 1)
    )
    await db.commit()


async def get_theme_unlocks(db: AsyncSession, xp: int) -> list[dict[str, Any]]:
    result = await db.execute(select(ThemeUnlock).order_by(ThemeUnlock.xp_threshold.asc()))
    return [
        {
            "id": theme.id,
            "theme_id": theme.theme_id,
            "theme_name": theme.theme_name,
            "xp_threshold": theme.xp_threshold,
            "unlocked": xp >= theme.xp_threshold,
        }
        for theme in result.scalars().all()
    ]


async def seed_theme_unlocks(db: AsyncSession) -> int:
    """Insert any missing default themes; returns how many were added."""
    existing = set((await db.execute(select(ThemeUnlock.theme_id))).scalars().all())
    added = 0
    for theme_id, theme_name, threshold in DEFAULT_THEMES:
        if theme_id in existing:
            continue
        db.add(ThemeUnlock(theme_id=theme_id, theme_name=theme_name, xp_threshold=threshold))
        added += 1
    if added:
        await db.commit()
    return added
