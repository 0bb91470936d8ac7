from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ShareToFeedRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    story_id: UUID = Field(..., alias="storyId")


class PublicStoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    story_id: UUID
    user_id: UUID
    title: str
    excerpt: str
    text: Optional[str] = None
    like_count: int
    comment_count: int
    shared_at: datetime


class ShareToFeedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    public_story: PublicStoryOut = Field(..., alias="publicStory")
    xp_gained: int = Field(..., alias="xpGained")


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=2000)


class CommentOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    public_story_id: UUID
    user_id: UUID
    content: str
    created_at: datetime


class ThemeUnlockOut(BaseModel):
    id: UUID
    theme_id: str
    theme_name: str
    xp_threshold: int
    unlocked: bool
