"""Gamification ledger tests: streaks, XP and achievements."""
from datetime import date, datetime, timedelta, timezone

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.gamification import UserAchievement
from app.models.user import User
from app.services import gamification
from app.services.gamification import (
    ACHIEVEMENTS,
    STORY_COUNT_ACHIEVEMENTS,
    login_bonus_xp,
    match_achievement,
    next_login_streak,
    next_story_streak,
)

TODAY = date(2024, 6, 15)
YESTERDAY = TODAY - timedelta(days=1)


@pytest.fixture
async def user(db_session: AsyncSession) -> User:
    user = User(email="ledger@example.com", hashed_password="x")
    db_session.add(user)
    await db_session.commit()
    return user


class TestStreakTransitions:
    """Pure streak arithmetic."""

    def test_story_streak(self):
        assert next_story_streak(4, TODAY, TODAY) == 4
        assert next_story_streak(4, YESTERDAY, TODAY) == 5
        assert next_story_streak(4, TODAY - timedelta(days=3), TODAY) == 1
        assert next_story_streak(0, None, TODAY) == 1

    def test_login_streak(self):
        assert next_login_streak(0, 0, None, TODAY) == (1, 1)
        assert next_login_streak(3, 5, TODAY, TODAY) == (3, 5)
        assert next_login_streak(5, 5, YESTERDAY, TODAY) == (6, 6)
        assert next_login_streak(2, 5, YESTERDAY, TODAY) == (3, 5)
        assert next_login_streak(6, 6, TODAY - timedelta(days=2), TODAY) == (1, 6)

    def test_login_bonus_is_capped(self):
        assert login_bonus_xp(1) == 5
        assert login_bonus_xp(4) == 20
        assert login_bonus_xp(10) == 50
        assert login_bonus_xp(40) == 50

    def test_achievements_match_exact_threshold_only(self):
        assert match_achievement(STORY_COUNT_ACHIEVEMENTS, 5).type == "five_stories"
        assert match_achievement(STORY_COUNT_ACHIEVEMENTS, 6) is None
        assert match_achievement(STORY_COUNT_ACHIEVEMENTS, 0) is None


class TestLedger:
    """Database-backed ledger operations."""

    async def test_story_streak_over_days(self, db_session: AsyncSession, user: User):
        day_one = datetime(2024, 6, 13, 9, tzinfo=timezone.utc)
        stats = await gamification.record_story_created(db_session, user.id, now=day_one)
        assert stats.current_streak == 1
        assert stats.total_stories == 1
        assert stats.total_xp == 10

        stats = await gamification.record_story_created(db_session, user.id, now=day_one + timedelta(hours=5))
        assert stats.current_streak == 1

        stats = await gamification.record_story_created(db_session, user.id, now=day_one + timedelta(days=1))
        assert stats.current_streak == 2
        assert stats.longest_streak == 2

        stats = await gamification.record_story_created(db_session, user.id, now=day_one + timedelta(days=4))
        assert stats.current_streak == 1
        assert stats.longest_streak == 2
        assert stats.total_stories == 4
        assert stats.total_xp == 40

    async def test_award_is_idempotent(self, db_session: AsyncSession, user: User):
        definition = ACHIEVEMENTS["first_story"]
        await gamification.get_user_stats(db_session, user.id)

        first = await gamification.award_achievement(db_session, user.id, definition)
        assert first is not None
        second = await gamification.award_achievement(db_session, user.id, definition)
        assert second is None

        stats = await gamification.get_user_stats(db_session, user.id)
        assert stats.total_xp == definition.xp
        rows = (await db_session.execute(select(UserAchievement))).scalars().all()
        assert len(rows) == 1

    async def test_check_awards_count_and_streak(self, db_session: AsyncSession, user: User):
        stats = await gamification.get_user_stats(db_session, user.id)
        stats.total_stories = 4
        stats.current_streak = 2
        stats.last_story_date = datetime.now(timezone.utc) - timedelta(days=1)
        await db_session.commit()

        await gamification.record_story_created(db_session, user.id)
        awarded = await gamification.check_and_award_achievements(db_session, user.id)
        assert {a.achievement_type for a in awarded} == {"five_stories", "three_day_streak"}

        stats = await gamification.get_user_stats(db_session, user.id)
        assert stats.total_xp == 10 + 100 + 150

        assert await gamification.check_and_award_achievements(db_session, user.id) == []

    async def test_award_xp_is_additive(self, db_session: AsyncSession, user: User):
        await gamification.award_xp(db_session, user.id, 30)
        stats = await gamification.award_xp(db_session, user.id, 20)
        assert stats.total_xp == 50

    async def test_record_login_same_day_is_noop(self, db_session: AsyncSession, user: User):
        assert await gamification.record_login(db_session, user.id, YESTERDAY) == 1
        assert await gamification.record_login(db_session, user.id, TODAY) == 2
        assert await gamification.record_login(db_session, user.id, TODAY) == 2
        streak = await gamification.get_login_streak(db_session, user.id)
        assert streak.longest_streak == 2
        assert streak.last_login == TODAY

    async def test_daily_login_bonus_on_every_login(self, db_session: AsyncSession, user: User):
        assert await gamification.apply_daily_login(db_session, user.id, YESTERDAY) == (1, 5)
        assert await gamification.apply_daily_login(db_session, user.id, TODAY) == (2, 10)
        assert await gamification.apply_daily_login(db_session, user.id, TODAY) == (2, 10)

        stats = await gamification.get_user_stats(db_session, user.id)
        assert stats.total_xp == 25


class TestGamificationEndpoints:
    """GET /gamification/*."""

    async def test_stats_and_achievements(self, client: AsyncClient, auth_headers: dict, generate):
        response = await client.get("/gamification/stats", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["stats"]["total_stories"] == 0

        await generate(auth_headers)

        stats = (await client.get("/gamification/stats", headers=auth_headers)).json()["stats"]
        assert stats["total_stories"] == 1
        assert stats["current_streak"] == 1
        assert stats["total_xp"] == 60

        achievements = (await client.get("/gamification/achievements", headers=auth_headers)).json()
        assert [a["achievement_type"] for a in achievements["achievements"]] == ["first_story"]

    async def test_catalog(self, client: AsyncClient):
        response = await client.get("/gamification/achievements/catalog")
        types = {a["type"] for a in response.json()["achievements"]}
        assert types == set(ACHIEVEMENTS)

    async def test_login_streak_defaults_to_zero(self, client: AsyncClient, auth_headers: dict):
        response = await client.get("/gamification/login-streak", headers=auth_headers)
        assert response.json() == {"current_streak": 0, "longest_streak": 0, "last_login": None}
