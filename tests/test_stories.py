"""
tests/test_stories.py
Tests for story creation, listing, owner-only edits and image management.
"""

import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import Story, User
from tests.conftest import auth_headers

STORY = {
    "title": "Dawn at Nafakhum",
    "text": "We hiked four hours to reach the falls.",
    "images": ["https://img.example.com/falls-1.jpg", "https://img.example.com/falls-2.jpg"],
}


async def _create_story(client: AsyncClient, author: User, payload: dict = STORY) -> str:
    response = await client.post("/stories", headers=auth_headers(author), json=payload)
    assert response.status_code == 201
    return response.json()["storyId"]


# ── Create / Read ──────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_story_snapshots_author(client: AsyncClient, tourist_user: User):
    response = await client.post("/stories", headers=auth_headers(tourist_user), json=STORY)
    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["author"] == {
        "id": str(tourist_user.id),
        "name": tourist_user.name,
        "email": tourist_user.email,
        "photo": tourist_user.photo,
        "role": "tourist",
    }


@pytest.mark.asyncio
async def test_create_story_needs_an_image(client: AsyncClient, guide_user: User):
    response = await client.post(
        "/stories", headers=auth_headers(guide_user), json={**STORY, "images": []}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_base_user_cannot_create_story(
    client: AsyncClient, user: User, db: AsyncSession
):
    response = await client.post("/stories", headers=auth_headers(user), json=STORY)
    assert response.status_code == 403
    assert await db.scalar(select(func.count(Story.id))) == 0


@pytest.mark.asyncio
async def test_all_stories_newest_first(
    client: AsyncClient, tourist_user: User, guide_user: User
):
    first = await _create_story(client, tourist_user)
    second = await _create_story(client, guide_user, {**STORY, "title": "Later"})

    response = await client.get("/all-stories")
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [second, first]


@pytest.mark.asyncio
async def test_my_stories(client: AsyncClient, tourist_user: User, guide_user: User):
    mine = await _create_story(client, tourist_user)
    await _create_story(client, guide_user)

    response = await client.get("/stories", headers=auth_headers(tourist_user))
    assert response.status_code == 200
    assert [s["id"] for s in response.json()] == [mine]


@pytest.mark.asyncio
async def test_get_story(client: AsyncClient, tourist_user: User, guide_user: User):
    story_id = await _create_story(client, tourist_user)

    response = await client.get(f"/stories/{story_id}", headers=auth_headers(guide_user))
    assert response.status_code == 200
    assert response.json()["images"] == STORY["images"]


@pytest.mark.asyncio
async def test_get_missing_story(client: AsyncClient, tourist_user: User):
    response = await client.get(f"/stories/{uuid.uuid4()}", headers=auth_headers(tourist_user))
    assert response.status_code == 404


# ── Update ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_update_story_text(client: AsyncClient, tourist_user: User):
    story_id = await _create_story(client, tourist_user)

    response = await client.patch(
        f"/stories/{story_id}", headers=auth_headers(tourist_user), json={"text": "Edited"}
    )
    assert response.status_code == 200
    assert response.json()["text"] == "Edited"
    assert response.json()["title"] == STORY["title"]


@pytest.mark.asyncio
async def test_non_owner_cannot_update(
    client: AsyncClient, tourist_user: User, guide_user: User
):
    story_id = await _create_story(client, tourist_user)
    response = await client.patch(
        f"/stories/{story_id}", headers=auth_headers(guide_user), json={"title": "Mine now"}
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_add_and_remove_images(client: AsyncClient, tourist_user: User):
    story_id = await _create_story(client, tourist_user)
    headers = auth_headers(tourist_user)
    extra = "https://img.example.com/falls-3.jpg"

    response = await client.patch(
        f"/stories/{story_id}/images", headers=headers, json={"images": [extra, extra]}
    )
    assert response.status_code == 200
    assert response.json()["images"] == [*STORY["images"], extra, extra]

    response = await client.request(
        "DELETE", f"/stories/{story_id}/images", headers=headers, json={"imageUrl": extra}
    )
    assert response.status_code == 200
    assert response.json()["images"] == STORY["images"]


# ── Delete ─────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_delete_story(client: AsyncClient, guide_user: User, db: AsyncSession):
    story_id = await _create_story(client, guide_user)

    response = await client.delete(f"/stories/{story_id}", headers=auth_headers(guide_user))
    assert response.status_code == 200
    assert await db.scalar(select(func.count(Story.id))) == 0


@pytest.mark.asyncio
async def test_delete_missing_story(client: AsyncClient, guide_user: User):
    response = await client.delete(f"/stories/{uuid.uuid4()}", headers=auth_headers(guide_user))
    assert response.status_code == 404
