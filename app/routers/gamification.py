from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.gamification import AchievementDefinitionOut, AchievementOut, LoginStreakOut, UserStatsOut
from app.services import gamification

router = APIRouter()


@router.get("/stats")
async def get_stats(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Streaks, total XP and story count for the current user."""
    stats = await gamification.get_user_stats(db, current_user.id)
    return {"stats": UserStatsOut.model_validate(stats)}


@router.get("/achievements")
async def get_achievements(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Earned achievements, newest first."""
    achievements = await gamification.get_user_achievements(db, current_user.id)
    return {"achievements": [AchievementOut.model_validate(a) for a in achievements]}


@router.get("/achievements/catalog")
async def get_achievement_catalog():
    """Every achievement that can be earned, with its threshold and XP reward."""
    return {
        "achievements": [
            AchievementDefinitionOut.model_validate(a) for a in gamification.ACHIEVEMENTS.values()
        ]
    }


@router.get("/login-streak", response_model=LoginStreakOut)
async def get_login_streak(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> LoginStreakOut:
    streak = await gamification.get_login_streak(db, current_user.id)
    if streak is None:
        return LoginStreakOut()
    return LoginStreakOut(
        current_streak=streak.current_streak,
        longest_streak=streak.longest_streak,
        last_login=streak.last_login,
    )
