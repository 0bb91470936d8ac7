from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.gamification import AchievementOut


class GenerateStoryRequest(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "prompt": "a lighthouse keeper who collects lost voices",
                    "genre": "fantasy",
                    "tone": "whimsical",
                    "archetype": "reluctant hero",
                }
            ]
        },
    )
    prompt: Optional[str] = Field(None, max_length=2000)
    genre: Optional[str] = Field(None, max_length=50)
    tone: Optional[str] = Field(None, max_length=50)
    archetype: Optional[str] = Field(None, max_length=50)
    continued_from_id: Optional[UUID] = Field(None, alias="continuedFromId")


class UpdateTitleRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)

    @field_validator('title')
    @classmethod
    def title_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError('Title cannot be blank')
        return v.strip()


class StoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    user_id: UUID
    prompt: str
    content: str
    title: Optional[str] = None
    genre: Optional[str] = None
    tone: Optional[str] = None
    archetype: Optional[str] = None
    continued_from_id: Optional[UUID] = None
    word_count: int
    share_id: Optional[str] = None
    created_at: datetime


class StoryEnvelope(BaseModel):
    story: StoryOut


class StoryListResponse(BaseModel):
    stories: list[StoryOut]
    remaining: Optional[int] = None


class GenerateStoryResponse(BaseModel):
    story: StoryOut
    remaining: Optional[int] = None
    achievements: list[AchievementOut] = []


class ShareLinkResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    story: StoryOut
    share_url: str = Field(..., alias="shareUrl")


class FavoriteListResponse(BaseModel):
    stories: list[StoryOut]


class FollowOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    follower_id: UUID
    following_id: UUID
    created_at: datetime
