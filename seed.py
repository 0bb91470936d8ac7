"""Seed a local database with theme unlocks and a demo account."""
import asyncio

from sqlalchemy import select

from app.auth.jwt_handler import hash_password
from app.config import get_settings
from app.database import build_engine, build_sessionmaker
from app.models import Story, User, UserTier
from app.models.base import Base
from app.services import gamification
from app.services.public_feed import seed_theme_unlocks

DEMO_EMAIL = "demo@storynest.app"

DEMO_STORIES = [
    (
        "a lighthouse keeper who collects lost voices",
        "The Keeper of Echoes",
        "Every night Mara climbed the spiral stairs and opened the jar by the lamp. "
        "Whispers drifted in from the sea, voices the storms had stolen. On the last night "
        "of winter she heard her own name, spoken in her mother's voice, and finally understood "
        "who had lit the lamp before her.",
    ),
    (
        "a detective who can only solve crimes in dreams",
        "Sleepwalker",
        "Inspector Vale slept eleven hours a day and closed every case. The city never asked how. "
        "When the final file landed on his desk, the suspect's face was his own, smiling from "
        "the other side of a dream he could not wake from.",
    ),
]


async def seed() -> None:
    settings = get_settings()
    engine = build_engine(settings.database_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    sessionmaker = build_sessionmaker(engine)
    async with sessionmaker() as db:
        added = await seed_theme_unlocks(db)
        print(f"Seeded {added} theme unlocks")

        result = await db.execute(select(User).where(User.email == DEMO_EMAIL))
        if result.scalar_one_or_none():
            print("Demo user already exists, skipping seed")
            await engine.dispose()
            return

        user = User(
            email=DEMO_EMAIL,
            hashed_password=hash_password("StoryNest123"),
            tier=UserTier.PREMIUM.value,
        )
        db.add(user)
        await db.flush()
        user_id = user.id

        for prompt, title, content in DEMO_STORIES:
            db.add(
                Story(
                    user_id=user_id,
                    prompt=prompt,
                    title=title,
                    content=content,
                    word_count=len(content.split()),
                )
            )
        await db.commit()

        for _ in DEMO_STORIES:
            await gamification.record_story_created(db, user_id)
            await gamification.check_and_award_achievements(db, user_id)

        print(f"Seeded demo user {DEMO_EMAIL} with {len(DEMO_STORIES)} stories")

    await engine.dispose()


if __name__ == "__main__":  # pragma: no cover - manual script
    asyncio.run(seed())
