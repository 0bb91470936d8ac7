from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    title: str
    body: str
    data: Optional[dict[str, Any]] = None
    read: bool
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationOut]


class SubscriptionKeys(BaseModel):
    auth: str = Field(..., max_length=255)
    p256dh: str = Field(..., max_length=255)


class SubscriptionCreate(BaseModel):
    endpoint: str = Field(..., min_length=1, max_length=2000)
    keys: SubscriptionKeys


class SubscriptionDelete(BaseModel):
    endpoint: str = Field(..., min_length=1, max_length=2000)
