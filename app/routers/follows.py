from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.stories import FollowOut
from app.services import follows, notification_service

router = APIRouter()


@router.post("/users/{user_id}/follow", status_code=status.HTTP_201_CREATED)
async def follow_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Follow another user. The followed user receives a notification.

    **Response:** {follow}
    **Errors:** 400 (self-follow or already following), 404 (user not found)
    """
    follower_id = current_user.id
    if follower_id != user_id and await db.get(User, user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")

    follow = await follows.add_follow(db, follower_id, user_id)
    follow_out = FollowOut.model_validate(follow)
    await notification_service.notify_new_follower(db, user_id, follower_id)
    return {"follow": follow_out}


@router.delete("/users/{user_id}/follow")
async def unfollow_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not await follows.remove_follow(db, current_user.id, user_id):
        raise HTTPException(status_code=404, detail="Not following this user")
    return {"success": True}


@router.get("/users/{user_id}/following")
async def list_following(
    user_id: UUID,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = await follows.get_following(db, user_id, limit=limit, offset=offset)
    return {"following": [FollowOut.model_validate(f) for f in rows]}


@router.get("/users/{user_id}/followers")
async def list_followers(
    user_id: UUID,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = await follows.get_followers(db, user_id, limit=limit, offset=offset)
    return {"followers": [FollowOut.model_validate(f) for f in rows]}


@router.get("/users/{user_id}/stats")
async def follow_stats(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return await follows.get_follow_stats(db, user_id)


@router.get("/users/{user_id}/follow-status")
async def follow_status(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"isFollowing": await follows.is_following(db, current_user.id, user_id)}
