import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.feed import (
    CommentCreate,
    CommentOut,
    PublicStoryOut,
    ShareToFeedRequest,
    ShareToFeedResponse,
    ThemeUnlockOut,
)
from app.services import gamification, notification_service, public_feed, story_service, usage

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/feed", response_model=list[PublicStoryOut])
async def get_feed(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
) -> list[PublicStoryOut]:
    """Public feed, newest share first. No authentication required."""
    rows = await public_feed.get_public_feed(db, limit=limit, offset=offset)
    return [PublicStoryOut.model_validate(r) for r in rows]


@router.get("/feed/share/status")
async def share_status(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"canShare": await public_feed.can_share_today(db, current_user.id)}


@router.post("/feed/share", response_model=ShareToFeedResponse)
async def share_to_feed(
    payload: ShareToFeedRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ShareToFeedResponse:
    """
    Publish an owned story to the public feed (premium only, once per UTC day).

    **Request:** {storyId}
    **Response:** {publicStory, xpGained}
    **Errors:** 403 (not premium, or not your story), 409 (already shared), 429 (daily share limit)
    """
    user_id = current_user.id
    if not usage.is_premium_active(current_user):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Premium membership required")

    story = await story_service.get_story(db, payload.story_id)
    if story is None or story.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Cannot share story you do not own")

    shared = await public_feed.share_story(
        db, story.id, user_id, story.title or "Untitled", story.content
    )
    xp_gained = get_settings().share_xp
    await gamification.award_xp(db, user_id, xp_gained)
    return ShareToFeedResponse(public_story=PublicStoryOut.model_validate(shared), xp_gained=xp_gained)


@router.post("/feed/{public_story_id}/like")
async def like_story(
    public_story_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Like a public story; liking an already-liked story removes the like."""
    user_id = current_user.id
    public_story = await public_feed.get_public_story(db, public_story_id)
    if public_story is None:
        raise HTTPException(status_code=404, detail="Public story not found")

    if await public_feed.like_story(db, public_story_id, user_id):
        await notification_service.notify_story_like(
            db, public_story_id, public_story["user_id"], user_id, public_story["title"]
        )
        return {"liked": True}

    unliked = await public_feed.unlike_story(db, public_story_id, user_id)
    return {"liked": not unliked}


@router.delete("/feed/{public_story_id}/like")
async def unlike_story(
    public_story_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"unliked": await public_feed.unlike_story(db, public_story_id, current_user.id)}


@router.get("/feed/{public_story_id}/liked")
async def has_liked(
    public_story_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"liked": await public_feed.has_user_liked(db, public_story_id, current_user.id)}


@router.post("/feed/{public_story_id}/comment", response_model=CommentOut, status_code=status.HTTP_201_CREATED)
async def add_comment(
    public_story_id: UUID,
    payload: CommentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> CommentOut:
    """
    Comment on a public story. Markup is stripped and the text is capped at 500 characters.

    **Errors:** 400 (empty after sanitizing), 404 (public story not found)
    """
    comment = await public_feed.add_comment(db, public_story_id, current_user.id, payload.content)
    return CommentOut.model_validate(comment)


@router.get("/feed/{public_story_id}/comments", response_model=list[CommentOut])
async def get_comments(
    public_story_id: UUID,
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> list[CommentOut]:
    comments = await public_feed.get_story_comments(db, public_story_id, limit=limit)
    return [CommentOut.model_validate(c) for c in comments]


@router.delete("/feed/comment/{comment_id}")
async def delete_comment(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    await public_feed.delete_comment(db, comment_id, current_user.id)
    return {"success": True}


@router.get("/themes/unlocks", response_model=list[ThemeUnlockOut])
async def theme_unlocks(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> list[ThemeUnlockOut]:
    """Seeded themes flagged as unlocked when the caller's XP reaches the threshold."""
    stats = await gamification.get_user_stats(db, current_user.id)
    themes = await public_feed.get_theme_unlocks(db, stats.total_xp)
    return [ThemeUnlockOut(**t) for t in themes]
