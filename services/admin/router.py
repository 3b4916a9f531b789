"""
services/admin/router.py
Admin-only endpoints: guide candidate review, user moderation,
and dashboard statistics.
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import Principal, require_admin
from shared.models.models import Booking, GuideStatus, Package, Story, User, UserRole
from shared.schemas.schemas import (
    AdminStatsResponse,
    CandidateActionRequest,
    MessageResponse,
    UserResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Admin"])

CANDIDATE_ACTIONS = ("approve", "reject")


# ── Guide Candidates ───────────────────────────────────────────────────────────

@router.get("/manage-candidates", response_model=list[UserResponse])
async def list_candidates(
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Users with a pending guide application, oldest request first."""
    result = await db.execute(
        select(User)
        .where(User.status == GuideStatus.REQUESTED)
        .order_by(User.application_requested_at.asc())
    )
    return [UserResponse.model_validate(u) for u in result.scalars()]


@router.patch("/manage-candidates/{email}", response_model=MessageResponse)
async def decide_candidate(
    email: str,
    data: CandidateActionRequest,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Requested → Approved (role becomes guide) or Requested → Rejected.
    Unknown actions are rejected before anything is read or written.
    """
    if data.action not in CANDIDATE_ACTIONS:
        raise HTTPException(status_code=400, detail="Invalid action.")

    user = await db.scalar(select(User).where(User.email == email))
    if not user:
        raise HTTPException(status_code=404, detail="User not found.")
    if user.status != GuideStatus.REQUESTED:
        raise HTTPException(status_code=400, detail="User has no pending guide application.")

    now = datetime.now(timezone.utc)
    if data.action == "approve":
        user.role = UserRole.GUIDE
        user.status = GuideStatus.APPROVED
        user.approved_at = now
    else:
        user.status = GuideStatus.REJECTED
        user.rejected_at = now
    await db.commit()

    logger.info("Admin %s %sd guide candidate %s", current_user.email, data.action, email)
    return MessageResponse(message=f"User {data.action}d successfully.")


# ── User Moderation ────────────────────────────────────────────────────────────

@router.delete("/user/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: UUID,
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found or already deleted")

    await db.delete(user)
    await db.commit()
    logger.info("Admin %s deleted user %s", current_user.email, user.email)
    return MessageResponse(message="User deleted successfully")


# ── Stats ─────────────────────────────────────────────────────────────────────

@router.get("/api/admin/stats", response_model=AdminStatsResponse)
async def get_stats(
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard aggregates. Read-only."""

    async def count_role(role: UserRole) -> int:
        return await db.scalar(select(func.count(User.id)).where(User.role == role)) or 0

    total_payment = await db.scalar(select(func.coalesce(func.sum(Booking.total_price), 0)))

    return AdminStatsResponse(
        total_payment=float(total_payment or 0),
        total_guides=await count_role(UserRole.GUIDE),
        total_packages=await db.scalar(select(func.count(Package.id))) or 0,
        total_clients=await count_role(UserRole.TOURIST),
        total_users=await count_role(UserRole.USER),
        total_stories=await db.scalar(select(func.count(Story.id))) or 0,
    )
