from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.stories import FavoriteListResponse, StoryOut
from app.services import favorites, story_service

router = APIRouter()


@router.get("/favorites/list", response_model=FavoriteListResponse)
async def list_favorites(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> FavoriteListResponse:
    """Favorited stories, most recently favorited first."""
    stories = await favorites.get_favorites_for_user(db, current_user.id)
    return FavoriteListResponse(stories=[StoryOut.model_validate(s) for s in stories])


@router.post("/{story_id}/favorite", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    story_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    Favorite a story.

    **Response:** {success: true}
    **Errors:** 400 (already favorited), 404 (story not found)
    """
    user_id = current_user.id
    if await story_service.get_story(db, story_id) is None:
        raise HTTPException(status_code=404, detail="Story not found")
    if not await favorites.add_favorite(db, user_id, story_id):
        raise HTTPException(status_code=400, detail="Story is already favorited")
    return {"success": True}


@router.delete("/{story_id}/favorite")
async def remove_favorite(
    story_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not await favorites.remove_favorite(db, current_user.id, story_id):
        raise HTTPException(status_code=404, detail="Story is not favorited")
    return {"success": True}


@router.get("/{story_id}/favorite/status")
async def favorite_status(
    story_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"isFavorite": await favorites.is_favorite(db, current_user.id, story_id)}
