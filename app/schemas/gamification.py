from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class UserStatsOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    user_id: UUID
    total_stories: int
    current_streak: int
    longest_streak: int
    last_story_date: Optional[datetime] = None
    total_xp: int


class AchievementOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: UUID
    achievement_type: str
    title: str
    description: Optional[str] = None
    xp_reward: int
    earned_at: datetime


class AchievementDefinitionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    type: str
    title: str
    description: str
    xp: int
    threshold: int


class LoginStreakOut(BaseModel):
    current_streak: int = 0
    longest_streak: int = 0
    last_login: Optional[date] = None
