"""Story generation orchestrator and story reads."""
import logging
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ForbiddenError, InvalidRequestError, NotFoundError
from app.models.gamification import UserAchievement
from app.models.story import Story
from app.models.user import User
from app.services import ai_service, gamification, usage
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

TITLE_RE = re.compile(r"^\s*\*\*([^*\n]+)\*\*\s*")

FRESH_WORD_RANGE = (200, 400)
CONTINUATION_WORD_CAP = 400
TITLE_MAX_LENGTH = 200


@dataclass
class StoryInstructions:
    system: str
    user: str


@dataclass
class GenerationResult:
    story: Story
    remaining: Optional[int]
    achievements: list[UserAchievement] = field(default_factory=list)


def count_words(text: str) -> int:
    return len(text.split())


def parse_story_response(raw: str) -> tuple[Optional[str], str]:
    """Split a leading **Title** marker off the generated text.

    Only a marker at the very start (after optional whitespace) is a title;
    without one the text is returned unchanged with no title.
    """
    match = TITLE_RE.match(raw)
    if not match:
        return None, raw
    title = match.group(1).strip()[:TITLE_MAX_LENGTH].rstrip()
    if not title:
        return None, raw
    return title, raw[match.end():].strip()


def build_instructions(
    prompt: str,
    genre: Optional[str] = None,
    tone: Optional[str] = None,
    archetype: Optional[str] = None,
    continued_story: Optional[Story] = None,
) -> StoryInstructions:
    qualifiers = "\n".join(
        line
        for line in (
            f"Genre: {genre}" if genre else None,
            f"Tone: {tone}" if tone else None,
            f"Protagonist archetype: {archetype}" if archetype else None,
        )
        if line
    )
    system = (
        "You are a creative fiction writer who crafts short, vivid stories that end with a twist "
        "or an emotional conclusion. Begin every story with its title on the first line, wrapped "
        "in double asterisks like **The Title**, then the story text."
    )
    if qualifiers:
        system = f"{system}\n{qualifiers}"

    if continued_story is not None:
        user = (
            f"Continue the following story in no more than {CONTINUATION_WORD_CAP} words, "
            "keeping it coherent and offering a twist or emotional closing.\n\n"
            f"Story so far:\n{continued_story.content}\n\n"
            f"Prompt for the next part: {prompt}"
        )
    else:
        low, high = FRESH_WORD_RANGE
        user = f"Write a short story of {low}-{high} words about {prompt}."
    return StoryInstructions(system=system, user=user)


def fallback_story(prompt: str, now: Optional[datetime] = None) -> str:
    now = now or utcnow()
    day = f"{now:%B} {now.day}, {now.year}"
    return (
        f"On {day}, inspiration sparks from the prompt: {prompt}. Without the help of the live AI "
        "service, StoryNest weaves this placeholder tale. It reminds you that imagination survives "
        "even offline. A connected build would craft a vivid narrative here, but for now, picture a "
        "detective staring into a mirror, realizing the mystery has always been inside. He exhales, "
        "knowing the next version of this tale will finish the scene with a twist ending."
    )


async def get_story(db: AsyncSession, story_id: UUID) -> Optional[Story]:
    return await db.get(Story, story_id)


async def get_owned_story(db: AsyncSession, story_id: UUID, user_id: UUID) -> Story:
    story = await get_story(db, story_id)
    if story is None:
        raise NotFoundError("Story not found")
    if story.user_id != user_id:
        raise ForbiddenError("You do not own this story")
    return story


async def generate_story(
    db: AsyncSession,
    user: User,
    prompt: Optional[str],
    genre: Optional[str] = None,
    tone: Optional[str] = None,
    archetype: Optional[str] = None,
    continued_from_id: Optional[UUID] = None,
) -> GenerationResult:
    if not prompt or not prompt.strip():
        raise InvalidRequestError("Prompt is required")
    user_id = user.id

    remaining_before = await usage.ensure_under_limit(db, user)

    continued_story = None
    if continued_from_id is not None:
        continued_story = await get_story(db, continued_from_id)
        if continued_story is None:
            raise NotFoundError("Story to continue not found")

    instructions = build_instructions(prompt, genre, tone, archetype, continued_story)
    raw = await ai_service.complete_story(instructions.system, instructions.user)
    if raw is None:
        raw = fallback_story(prompt)

    title, content = parse_story_response(raw)
    story = Story(
        user_id=user_id,
        prompt=prompt,
        content=content,
        title=title,
        genre=genre,
        tone=tone,
        archetype=archetype,
        continued_from_id=continued_from_id,
        word_count=count_words(content),
    )
    db.add(story)
    await db.commit()
    await db.refresh(story)

    await gamification.record_story_created(db, user_id)
    achievements = await gamification.check_and_award_achievements(db, user_id)

    if remaining_before is None:
        return GenerationResult(story=story, remaining=None, achievements=achievements)

    await usage.increment_usage(db, user_id)
    remaining = await usage.remaining_free_generations(db, user_id)
    return GenerationResult(story=story, remaining=remaining, achievements=achievements)


async def list_stories(db: AsyncSession, user_id: UUID) -> list[Story]:
    result = await db.execute(
        select(Story).where(Story.user_id == user_id).order_by(Story.created_at.desc())
    )
    return list(result.scalars().all())


async def update_title(db: AsyncSession, story_id: UUID, user_id: UUID, title: str) -> Story:
    story = await get_owned_story(db, story_id, user_id)
    story.title = title.strip()
    await db.commit()
    await db.refresh(story)
    return story


async def create_share_link(db: AsyncSession, story_id: UUID, user_id: UUID) -> Story:
    """Assign a public share id once; later calls return the same id."""
    story = await get_owned_story(db, story_id, user_id)
    if not story.share_id:
        story.share_id = str(uuid.uuid4())
        await db.commit()
        await db.refresh(story)
    return story


async def get_shared_story(db: AsyncSession, share_id: str) -> Optional[Story]:
    result = await db.execute(select(Story).where(Story.share_id == share_id))
    return result.scalar_one_or_none()
