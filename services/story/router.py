"""
services/story/router.py
Travel stories written by tourists and guides.
The author's name/photo are snapshotted at creation and kept in sync by the
profile cascade (shared/cascade/coordinator.py).
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import Principal, TokenData, require_auth, require_tourist_or_guide
from shared.models.models import Story, User
from shared.schemas.schemas import (
    MessageResponse,
    StoryCreateRequest,
    StoryImageRemoveRequest,
    StoryImagesRequest,
    StoryResponse,
    StoryUpdateRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Stories"])


async def _get_story_or_404(story_id: UUID, db: AsyncSession) -> Story:
    story = await db.get(Story, story_id)
    if not story:
        raise HTTPException(status_code=404, detail="Story not found")
    return story


async def _get_own_story(story_id: UUID, author: Principal, db: AsyncSession) -> Story:
    story = await _get_story_or_404(story_id, db)
    if story.author_email != author.email:
        raise HTTPException(status_code=403, detail="Forbidden access! Not your story.")
    return story


# ── Create / Read ─────────────────────────────────────────────

@router.post("/stories", status_code=status.HTTP_201_CREATED)
async def create_story(
    data: StoryCreateRequest,
    current_user: Principal = Depends(require_tourist_or_guide),
    db: AsyncSession = Depends(get_db),
):
    author = await db.scalar(select(User).where(User.email == current_user.email))
    if not author:
        raise HTTPException(status_code=404, detail="User not found")

    story = Story(
        title=data.title,
        text=data.text,
        images=list(data.images),
        author_id=author.id,
        author_name=author.name,
        author_email=author.email,
        author_photo=author.photo,
        author_role=author.role.value,
    )
    db.add(story)
    await db.commit()

    logger.info("Story %s created by %s", story.id, author.email)
    response = StoryResponse.model_validate(story)
    return {
        "success": True,
        "storyId": str(story.id),
        "author": response.author.model_dump(mode="json", by_alias=True),
    }


@router.get("/all-stories", response_model=list[StoryResponse])
async def list_all_stories(db: AsyncSession = Depends(get_db)):
    """Public feed, newest first."""
    result = await db.execute(select(Story).order_by(Story.created_at.desc()))
    return [StoryResponse.model_validate(s) for s in result.scalars()]


@router.get("/stories", response_model=list[StoryResponse])
async def list_my_stories(
    token_data: TokenData = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Story)
        .where(Story.author_email == token_data.email)
        .order_by(Story.created_at.desc())
    )
    return [StoryResponse.model_validate(s) for s in result.scalars()]


@router.get("/stories/{story_id}", response_model=StoryResponse)
async def get_story(
    story_id: UUID,
    current_user: Principal = Depends(require_tourist_or_guide),
    db: AsyncSession = Depends(get_db),
):
    story = await _get_story_or_404(story_id, db)
    return StoryResponse.model_validate(story)


# ── Update ────────────────────────────────────────────────────

@router.patch("/stories/{story_id}", response_model=StoryResponse)
async def update_story(
    story_id: UUID,
    data: StoryUpdateRequest,
    current_user: Principal = Depends(require_tourist_or_guide),
    db: AsyncSession = Depends(get_db),
):
    story = await _get_own_story(story_id, current_user, db)
    if data.title is not None:
        story.title = data.title
    if data.text is not None:
        story.text = data.text
    await db.commit()
    return StoryResponse.model_validate(story)


@router.patch("/stories/{story_id}/images", response_model=StoryResponse)
async def add_story_images(
    story_id: UUID,
    data: StoryImagesRequest,
    current_user: Principal = Depends(require_tourist_or_guide),
    db: AsyncSession = Depends(get_db),
):
    story = await _get_own_story(story_id, current_user, db)
    # JSON column: assign a new list so the change is tracked
    story.images = [*(story.images or []), *data.images]
    await db.commit()
    return StoryResponse.model_validate(story)


@router.delete("/stories/{story_id}/images", response_model=StoryResponse)
async def remove_story_image(
    story_id: UUID,
    data: StoryImageRemoveRequest,
    current_user: Principal = Depends(require_tourist_or_guide),
    db: AsyncSession = Depends(get_db),
):
    """Remove every occurrence of `imageUrl` from the story."""
    story = await _get_own_story(story_id, current_user, db)
    story.images = [img for img in (story.images or []) if img != data.image_url]
    await db.commit()
    return StoryResponse.model_validate(story)


# ── Delete ────────────────────────────────────────────────────

@router.delete("/stories/{story_id}", response_model=MessageResponse)
async def delete_story(
    story_id: UUID,
    current_user: Principal = Depends(require_tourist_or_guide),
    db: AsyncSession = Depends(get_db),
):
    story = await _get_own_story(story_id, current_user, db)
    await db.delete(story)
    await db.commit()
    logger.info("Story %s deleted by %s", story_id, current_user.email)
    return MessageResponse(message="Story deleted successfully")
