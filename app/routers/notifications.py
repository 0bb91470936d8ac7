from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.notifications import (
    NotificationListResponse,
    NotificationOut,
    SubscriptionCreate,
    SubscriptionDelete,
)
from app.services import notification_service

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> NotificationListResponse:
    rows = await notification_service.get_notifications(
        db, current_user.id, unread_only=unread_only, limit=limit, offset=offset
    )
    return NotificationListResponse(notifications=[NotificationOut.model_validate(n) for n in rows])


@router.get("/unread-count")
async def unread_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Badge count of unread notifications."""
    return {"count": await notification_service.get_unread_count(db, current_user.id)}


@router.post("/read-all")
async def read_all(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"updated": await notification_service.mark_all_as_read(db, current_user.id)}


@router.post("/subscriptions", status_code=status.HTTP_201_CREATED)
async def subscribe(
    payload: SubscriptionCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Register a push endpoint for the current user. Re-registering an endpoint updates its keys."""
    await notification_service.add_subscription(
        db, current_user.id, payload.endpoint, payload.keys.auth, payload.keys.p256dh
    )
    return {"success": True}


@router.delete("/subscriptions")
async def unsubscribe(
    payload: SubscriptionDelete,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not await notification_service.remove_subscription(db, current_user.id, payload.endpoint):
        raise HTTPException(status_code=404, detail="Subscription not found")
    return {"success": True}


@router.post("/{notification_id}/read")
async def mark_read(
    notification_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not await notification_service.mark_as_read(db, notification_id, current_user.id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return {"success": True}
