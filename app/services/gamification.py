"""Gamification ledger: story streaks, XP, achievements and login streaks.

Story streaks and login streaks are separate ledgers. Both count consecutive
UTC calendar days; a second event on the same day never double-counts.
Achievements fire on exact equality with their threshold, so a counter that
jumps past a threshold forfeits that achievement.
"""
import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.gamification import LoginStreak, UserAchievement, UserStats
from app.utils.dates import utc_date, utcnow, yesterday_of
from app.utils.upsert import insert_default_row

logger = logging.getLogger(__name__)

LOGIN_BONUS_PER_DAY = 5
LOGIN_BONUS_CAP = 50


@dataclass(frozen=True)
class AchievementDefinition:
    type: str
    title: str
    description: str
    xp: int
    threshold: int


STORY_COUNT_ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition("first_story", "Story Starter", "Create your first story", 50, 1),
    AchievementDefinition("five_stories", "Rising Author", "Create 5 stories", 100, 5),
    AchievementDefinition("ten_stories", "Prolific Writer", "Create 10 stories", 250, 10),
    AchievementDefinition("twenty_stories", "Master Storyteller", "Create 20 stories", 500, 20),
    AchievementDefinition("fifty_stories", "Epic Author", "Create 50 stories", 750, 50),
    AchievementDefinition("hundred_stories", "Legend of the Craft", "Create 100 stories", 1500, 100),
    AchievementDefinition("five_hundred_stories", "Immortal Wordsmith", "Create 500 stories", 5000, 500),
)

STREAK_ACHIEVEMENTS: tuple[AchievementDefinition, ...] = (
    AchievementDefinition("three_day_streak", "Consistent Creator", "Create stories for 3 consecutive days", 150, 3),
    AchievementDefinition("seven_day_streak", "Week Warrior", "Create stories for 7 consecutive days", 350, 7),
    AchievementDefinition("thirty_day_streak", "Legend Writer", "Create stories for 30 consecutive days", 1000, 30),
)

ACHIEVEMENTS: dict[str, AchievementDefinition] = {
    a.type: a for a in STORY_COUNT_ACHIEVEMENTS + STREAK_ACHIEVEMENTS
}


def next_story_streak(current_streak: int, last_date: Optional[date], today: date) -> int:
    if last_date == today:
        return current_streak
    if last_date == yesterday_of(today):
        return current_streak + 1
    return 1


def next_login_streak(
    current_streak: int, longest_streak: int, last_login: Optional[date], today: date
) -> tuple[int, int]:
    """Return (current, longest) after a login on ``today``."""
    if last_login is None:
        return 1, 1
    if last_login == today:
        return current_streak, longest_streak
    if last_login == yesterday_of(today):
        current = current_streak + 1
        return current, max(longest_streak, current)
    return 1, longest_streak


def login_bonus_xp(streak: int) -> int:
    return min(streak * LOGIN_BONUS_PER_DAY, LOGIN_BONUS_CAP)


def match_achievement(
    chain: Sequence[AchievementDefinition], value: int
) -> Optional[AchievementDefinition]:
    for definition in chain:
        if value == definition.threshold:
            return definition
    return None


async def get_or_create_stats(db: AsyncSession, user_id: UUID) -> UserStats:
    await insert_default_row(
        db,
        UserStats.__table__,
        "user_id",
        user_id=user_id,
        total_stories=0,
        current_streak=0,
        longest_streak=0,
        total_xp=0,
    )
    result = await db.execute(
        select(UserStats)
        .where(UserStats.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def get_user_stats(db: AsyncSession, user_id: UUID) -> UserStats:
    stats = await get_or_create_stats(db, user_id)
    await db.commit()
    return stats


async def record_story_created(
    db: AsyncSession,
    user_id: UUID,
    xp_award: Optional[int] = None,
    now: Optional[datetime] = None,
) -> UserStats:
    if xp_award is None:
        xp_award = get_settings().story_xp
    now = now or utcnow()

    stats = await get_or_create_stats(db, user_id)
    new_streak = next_story_streak(stats.current_streak, utc_date(stats.last_story_date), now.date())

    stats.current_streak = new_streak
    stats.longest_streak = max(stats.longest_streak, new_streak)
    stats.total_xp = stats.total_xp + xp_award
    stats.total_stories = stats.total_stories + 1
    stats.last_story_date = now
    await db.commit()
    return stats


async def award_achievement(
    db: AsyncSession, user_id: UUID, definition: AchievementDefinition
) -> Optional[UserAchievement]:
    """Insert the badge and credit its XP; None if the user already holds it."""
    existing = await db.execute(
        select(UserAchievement.id).where(
            UserAchievement.user_id == user_id,
            UserAchievement.achievement_type == definition.type,
        )
    )
    if existing.scalar_one_or_none() is not None:
        return None

    achievement = UserAchievement(
        user_id=user_id,
        achievement_type=definition.type,
        title=definition.title,
        description=definition.description,
        xp_reward=definition.xp,
    )
    db.add(achievement)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        return None

    if definition.xp > 0:
        await db.execute(
            update(UserStats)
            .where(UserStats.user_id == user_id)
            .values(total_xp=UserStats.total_xp + definition.xp)
        )
    await db.commit()
    logger.info("Awarded achievement %s to user %s (+%d XP)", definition.type, user_id, definition.xp)
    return achievement


async def check_and_award_achievements(db: AsyncSession, user_id: UUID) -> list[UserAchievement]:
    stats = await get_or_create_stats(db, user_id)
    checks = (
        (STORY_COUNT_ACHIEVEMENTS, stats.total_stories),
        (STREAK_ACHIEVEMENTS, stats.current_streak),
    )

    awarded: list[UserAchievement] = []
    for chain, value in checks:
        definition = match_achievement(chain, value)
        if definition is None:
            continue
        achievement = await award_achievement(db, user_id, definition)
        if achievement is not None:
            awarded.append(achievement)
    return awarded


async def award_xp(db: AsyncSession, user_id: UUID, amount: int) -> UserStats:
    await get_or_create_stats(db, user_id)
    await db.execute(
        update(UserStats)
        .where(UserStats.user_id == user_id)
        .values(total_xp=UserStats.total_xp + amount)
    )
    await db.commit()
    return await get_or_create_stats(db, user_id)


async def get_user_achievements(db: AsyncSession, user_id: UUID) -> list[UserAchievement]:
    result = await db.execute(
        select(UserAchievement)
        .where(UserAchievement.user_id == user_id)
        .order_by(UserAchievement.earned_at.desc())
    )
    return list(result.scalars().all())


async def get_login_streak(db: AsyncSession, user_id: UUID) -> Optional[LoginStreak]:
    result = await db.execute(
        select(LoginStreak)
        .where(LoginStreak.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def record_login(db: AsyncSession, user_id: UUID, today: Optional[date] = None) -> int:
    """Advance the login streak for ``today`` and return the current streak."""
    today = today or utcnow().date()
    await insert_default_row(
        db,
        LoginStreak.__table__,
        "user_id",
        user_id=user_id,
        current_streak=0,
        longest_streak=0,
        last_login=None,
    )
    streak = await get_login_streak(db, user_id)

    if streak.last_login == today:
        await db.commit()
        return streak.current_streak

    current, longest = next_login_streak(
        streak.current_streak, streak.longest_streak, streak.last_login, today
    )
    streak.current_streak = current
    streak.longest_streak = longest
    streak.last_login = today
    await db.commit()
    return current


async def apply_daily_login(db: AsyncSession, user_id: UUID, today: Optional[date] = None) -> tuple[int, int]:
    """Record a login and credit the streak bonus; returns (streak, xp_gained).

    A repeat login on the same day keeps the streak and still earns the bonus.
    """
    streak = await record_login(db, user_id, today)
    bonus = login_bonus_xp(streak)
    await award_xp(db, user_id, bonus)
    return streak, bonus
