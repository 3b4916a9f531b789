"""
tests/test_admin.py
Tests for guide candidate review, user moderation and dashboard stats.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import Booking, GuideStatus, Package, Story, User, UserRole
from tests.conftest import auth_headers


async def _request_guide_role(db: AsyncSession, user: User) -> None:
    user.status = GuideStatus.REQUESTED
    user.application_title = "City walks"
    user.application_reason = "Local historian"
    user.application_cv_link = "https://cv.example.com/x"
    user.application_requested_at = datetime.now(timezone.utc)
    await db.commit()


# ── Guide Candidates ───────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_candidates(
    client: AsyncClient, admin_user: User, tourist_user: User, user: User, db: AsyncSession
):
    await _request_guide_role(db, tourist_user)

    response = await client.get("/manage-candidates", headers=auth_headers(admin_user))
    assert response.status_code == 200
    data = response.json()
    assert [c["email"] for c in data] == [tourist_user.email]
    assert data[0]["guideApplication"]["title"] == "City walks"


@pytest.mark.asyncio
async def test_approve_candidate(
    client: AsyncClient, admin_user: User, tourist_user: User, db: AsyncSession
):
    await _request_guide_role(db, tourist_user)

    response = await client.patch(
        f"/manage-candidates/{tourist_user.email}",
        headers=auth_headers(admin_user),
        json={"action": "approve"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "User approved successfully."

    await db.refresh(tourist_user)
    assert tourist_user.role == UserRole.GUIDE
    assert tourist_user.status == GuideStatus.APPROVED
    assert tourist_user.approved_at is not None


@pytest.mark.asyncio
async def test_reject_candidate(
    client: AsyncClient, admin_user: User, tourist_user: User, db: AsyncSession
):
    await _request_guide_role(db, tourist_user)

    response = await client.patch(
        f"/manage-candidates/{tourist_user.email}",
        headers=auth_headers(admin_user),
        json={"action": "reject"},
    )
    assert response.status_code == 200
    assert response.json()["message"] == "User rejected successfully."

    await db.refresh(tourist_user)
    assert tourist_user.role == UserRole.TOURIST
    assert tourist_user.status == GuideStatus.REJECTED
    assert tourist_user.rejected_at is not None


@pytest.mark.asyncio
async def test_invalid_candidate_action_leaves_record_unchanged(
    client: AsyncClient, admin_user: User, tourist_user: User, db: AsyncSession
):
    await _request_guide_role(db, tourist_user)

    response = await client.patch(
        f"/manage-candidates/{tourist_user.email}",
        headers=auth_headers(admin_user),
        json={"action": "promote"},
    )
    assert response.status_code == 400
    assert response.json() == {"error": True, "message": "Invalid action."}

    await db.refresh(tourist_user)
    assert tourist_user.role == UserRole.TOURIST
    assert tourist_user.status == GuideStatus.REQUESTED
    assert tourist_user.approved_at is None
    assert tourist_user.rejected_at is None


@pytest.mark.asyncio
async def test_candidate_without_application_rejected(
    client: AsyncClient, admin_user: User, tourist_user: User, db: AsyncSession
):
    response = await client.patch(
        f"/manage-candidates/{tourist_user.email}",
        headers=auth_headers(admin_user),
        json={"action": "approve"},
    )
    assert response.status_code == 400
    await db.refresh(tourist_user)
    assert tourist_user.role == UserRole.TOURIST


@pytest.mark.asyncio
async def test_candidate_not_found(client: AsyncClient, admin_user: User):
    response = await client.patch(
        "/manage-candidates/ghost@wanderlust.com",
        headers=auth_headers(admin_user),
        json={"action": "approve"},
    )
    assert response.status_code == 404


# ── User Moderation ────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_list_all_users(
    client: AsyncClient, admin_user: User, tourist_user: User, guide_user: User
):
    response = await client.get("/all-users", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert {u["email"] for u in response.json()} == {
        admin_user.email, tourist_user.email, guide_user.email,
    }


@pytest.mark.asyncio
async def test_delete_user(
    client: AsyncClient, admin_user: User, user: User, db: AsyncSession
):
    user_id = user.id
    response = await client.delete(f"/user/{user_id}", headers=auth_headers(admin_user))
    assert response.status_code == 200

    count = await db.scalar(select(func.count(User.id)).where(User.id == user_id))
    assert count == 0


@pytest.mark.asyncio
async def test_delete_missing_user(client: AsyncClient, admin_user: User):
    response = await client.delete(f"/user/{uuid.uuid4()}", headers=auth_headers(admin_user))
    assert response.status_code == 404


# ── Stats ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_stats(
    client: AsyncClient,
    admin_user: User,
    tourist_user: User,
    guide_user: User,
    user: User,
    db: AsyncSession,
):
    db.add_all([
        Booking(tourist_email=tourist_user.email, total_price=Decimal("120.50")),
        Booking(tourist_email=tourist_user.email, total_price=Decimal("79.50")),
        Package(title="Coastal Escape", details={"price": 300}),
        Story(
            title="Beach", text="Sand", images=["https://img/b.png"],
            author_id=tourist_user.id, author_email=tourist_user.email,
            author_role="tourist",
        ),
    ])
    await db.commit()

    response = await client.get("/api/admin/stats", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json() == {
        "totalPayment": 200.0,
        "totalGuides": 1,
        "totalPackages": 1,
        "totalClients": 1,
        "totalUsers": 1,
        "totalStories": 1,
    }


@pytest.mark.asyncio
async def test_stats_empty(client: AsyncClient, admin_user: User):
    response = await client.get("/api/admin/stats", headers=auth_headers(admin_user))
    assert response.status_code == 200
    assert response.json()["totalPayment"] == 0
