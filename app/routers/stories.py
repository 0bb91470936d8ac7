from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.gamification import AchievementOut
from app.schemas.stories import (
    GenerateStoryRequest,
    GenerateStoryResponse,
    ShareLinkResponse,
    StoryEnvelope,
    StoryListResponse,
    StoryOut,
    UpdateTitleRequest,
)
from app.services import story_service, usage

router = APIRouter()


@router.post("/generate", response_model=GenerateStoryResponse, status_code=status.HTTP_201_CREATED)
async def generate_story(
    payload: GenerateStoryRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> GenerateStoryResponse:
    """
    Generate a new story, or continue an existing one.

    Free users are limited to a few generations per UTC day; `remaining` is
    the allowance left after this story, or null for premium members.

    **Request:** GenerateStoryRequest (prompt, genre?, tone?, archetype?, continuedFromId?)
    **Response:** {story, remaining, achievements}
    **Errors:** 400 (missing prompt), 404 (story to continue not found), 429 (daily limit reached)
    """
    result = await story_service.generate_story(
        db,
        current_user,
        payload.prompt,
        genre=payload.genre,
        tone=payload.tone,
        archetype=payload.archetype,
        continued_from_id=payload.continued_from_id,
    )
    return GenerateStoryResponse(
        story=StoryOut.model_validate(result.story),
        remaining=result.remaining,
        achievements=[AchievementOut.model_validate(a) for a in result.achievements],
    )


@router.get("", response_model=StoryListResponse)
async def list_stories(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StoryListResponse:
    """Own stories, newest first, plus today's remaining free generations."""
    stories = await story_service.list_stories(db, current_user.id)
    remaining = await usage.remaining_generations(db, current_user)
    return StoryListResponse(stories=[StoryOut.model_validate(s) for s in stories], remaining=remaining)


@router.get("/shared/{share_id}", response_model=StoryEnvelope)
async def get_shared_story(share_id: str, db: AsyncSession = Depends(get_db)) -> StoryEnvelope:
    """Public read of a story by its share id. No authentication required."""
    story = await story_service.get_shared_story(db, share_id)
    if story is None:
        raise HTTPException(status_code=404, detail="Story not found")
    return StoryEnvelope(story=StoryOut.model_validate(story))


@router.get("/{story_id}", response_model=StoryEnvelope)
async def get_story(
    story_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StoryEnvelope:
    story = await story_service.get_owned_story(db, story_id, current_user.id)
    return StoryEnvelope(story=StoryOut.model_validate(story))


@router.patch("/{story_id}/title", response_model=StoryEnvelope)
async def update_title(
    story_id: UUID,
    payload: UpdateTitleRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StoryEnvelope:
    story = await story_service.update_title(db, story_id, current_user.id, payload.title)
    return StoryEnvelope(story=StoryOut.model_validate(story))


@router.post("/{story_id}/share", response_model=ShareLinkResponse)
async def create_share_link(
    story_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> ShareLinkResponse:
    """
    Create (or return the existing) public share link for an owned story.

    **Response:** {story, shareUrl}
    **Errors:** 403 (not your story), 404 (story not found)
    """
    story = await story_service.create_share_link(db, story_id, current_user.id)
    share_url = f"{get_settings().app_url}/stories/{story.share_id}"
    return ShareLinkResponse(story=StoryOut.model_validate(story), share_url=share_url)
