"""Stored in-app notifications and push subscription registry.

Notifications are rows only; no push transport delivers them.
"""
import logging
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import PushNotification, PushSubscription
from app.models.user import User
from app.utils.upsert import upsert_insert

logger = logging.getLogger(__name__)


def display_name(email: str) -> str:
    return email.split("@")[0]


async def create_notification(
    db: AsyncSession,
    user_id: UUID,
    title: str,
    body: str,
    data: Optional[dict[str, Any]] = None,
) -> PushNotification:
    notification = PushNotification(user_id=user_id, title=title, body=body, data=data, read=False)
    db.add(notification)
    await db.commit()
    return notification


async def notify_story_like(
    db: AsyncSession,
    public_story_id: UUID,
    owner_id: UUID,
    liker_id: UUID,
    story_title: str,
) -> bool:
    """Tell the owner their shared story was liked; self-likes are ignored."""
    if owner_id == liker_id:
        return False
    liker = await db.get(User, liker_id)
    if liker is None:
        return False
    await create_notification(
        db,
        owner_id,
        "Story Liked",
        f'{display_name(liker.email)} liked "{story_title}"',
        {"type": "story_like", "public_story_id": str(public_story_id), "actor_id": str(liker_id)},
    )
    return True


async def notify_new_follower(db: AsyncSession, followed_id: UUID, follower_id: UUID) -> bool:
    follower = await db.get(User, follower_id)
    if follower is None:
        return False
    await create_notification(
        db,
        followed_id,
        "New Follower",
        f"{display_name(follower.email)} started following you",
        {"type": "new_follower", "actor_id": str(follower_id)},
    )
    return True


async def get_notifications(
    db: AsyncSession,
    user_id: UUID,
    unread_only: bool = False,
    limit: int = 50,
    offset: int = 0,
) -> list[PushNotification]:
    stmt = select(PushNotification).where(PushNotification.user_id == user_id)
    if unread_only:
        stmt = stmt.where(PushNotification.read.is_(False))
    result = await db.execute(
        stmt.order_by(PushNotification.created_at.desc()).limit(limit).offset(offset)
    )
    return list(result.scalars().all())


async def get_unread_count(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(PushNotification)
        .where(PushNotification.user_id == user_id, PushNotification.read.is_(False))
    )
    return result.scalar() or 0


async def mark_as_read(db: AsyncSession, notification_id: UUID, user_id: UUID) -> bool:
    result = await db.execute(
        update(PushNotification)
        .where(PushNotification.id == notification_id, PushNotification.user_id == user_id)
        .values(read=True)
    )
    await db.commit()
    return result.rowcount > 0


async def mark_all_as_read(db: AsyncSession, user_id: UUID) -> int:
    result = await db.execute(
        update(PushNotification)
        .where(PushNotification.user_id == user_id, PushNotification.read.is_(False))
        .values(read=True)
    )
    await db.commit()
    return result.rowcount


async def add_subscription(
    db: AsyncSession, user_id: UUID, endpoint: str, auth_key: str, p256dh_key: str
) -> None:
    """Register a push endpoint; re-registering an endpoint replaces its owner and keys."""
    table = PushSubscription.__table__
    stmt = upsert_insert(db, table).values(
        user_id=user_id, endpoint=endpoint, auth_key=auth_key, p256dh_key=p256dh_key
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[table.c.endpoint],
        set_={"user_id": user_id, "auth_key": auth_key, "p256dh_key": p256dh_key},
    )
    await db.execute(stmt)
    await db.commit()


async def remove_subscription(db: AsyncSession, user_id: UUID, endpoint: str) -> bool:
    result = await db.execute(
        delete(PushSubscription).where(
            PushSubscription.user_id == user_id, PushSubscription.endpoint == endpoint
        )
    )
    await db.commit()
    return result.rowcount > 0


async def get_subscriptions(db: AsyncSession, user_id: UUID) -> list[PushSubscription]:
    result = await db.execute(select(PushSubscription).where(PushSubscription.user_id == user_id))
    return list(result.scalars().all())
