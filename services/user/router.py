"""
services/user/router.py
User registration, role lookup, guide applications, and profile edits.
Profile edits cascade into bookings and stories.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.cascade.coordinator import CascadeCoordinator
from shared.middleware.auth import (
    Principal,
    RoleResolver,
    TokenData,
    ensure_same_email,
    ensure_self_or_admin,
    get_role_resolver,
    require_admin,
    require_auth,
    require_tourist,
)
from shared.models.models import GuideStatus, User, UserRole
from shared.schemas.schemas import (
    GuideApplicationRequest,
    MessageResponse,
    ProfileCascadeResponse,
    ProfileUpdateRequest,
    UserCreateRequest,
    UserResponse,
    UserRoleResponse,
)
from shared.utils.errors import UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Users"])


async def _get_user_by_email_or_404(email: str, db: AsyncSession) -> User:
    user = await db.scalar(select(User).where(User.email == email))
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# ── Registration ──────────────────────────────────────────────

@router.post("/users")
async def create_user(
    data: UserCreateRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
):
    """
    Register a user on first sign-in. Idempotent by email: a second call
    returns "User already exists" and stores nothing.
    New accounts always start with the base `user` role.
    """
    existing = await db.scalar(select(User).where(User.email == data.email))
    if existing:
        return MessageResponse(message="User already exists", success=False)

    user = User(email=data.email, name=data.name, photo=data.photo, role=UserRole.USER)
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        # Lost a race with a concurrent first sign-in for the same email
        await db.rollback()
        return MessageResponse(message="User already exists", success=False)
    response.status_code = status.HTTP_201_CREATED
    logger.info("Registered user %s", user.email)
    return UserResponse.model_validate(user)


@router.get("/users/role/{email}", response_model=UserRoleResponse)
async def get_user_role(email: str, db: AsyncSession = Depends(get_db)):
    """Current role for `email`, or null when no such user exists."""
    role = await db.scalar(select(User.role).where(User.email == email))
    return UserRoleResponse(role=role.value if role else None)


@router.get("/all-users", response_model=list[UserResponse])
async def list_users(
    current_user: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    return [UserResponse.model_validate(u) for u in result.scalars()]


@router.get("/api/guides/random", response_model=list[UserResponse])
async def list_guides(db: AsyncSession = Depends(get_db)):
    """Guide directory for the home page."""
    result = await db.execute(select(User).where(User.role == UserRole.GUIDE))
    return [UserResponse.model_validate(u) for u in result.scalars()]


# ── Guide Application ─────────────────────────────────────────

@router.patch("/users/{email}", response_model=MessageResponse)
async def apply_for_guide(
    email: str,
    data: GuideApplicationRequest,
    current_user: Principal = Depends(require_tourist),
    db: AsyncSession = Depends(get_db),
):
    """
    Tourist submits a guide application: none/Rejected → Requested.
    A pending application blocks a new one until an admin decides.
    """
    ensure_same_email(current_user.email, email)
    user = await _get_user_by_email_or_404(email, db)

    if user.status == GuideStatus.REQUESTED:
        raise HTTPException(
            status_code=400,
            detail="You have already requested, wait for some time.",
        )

    user.status = GuideStatus.REQUESTED
    user.application_title = data.title
    user.application_reason = data.reason
    user.application_cv_link = data.cv_link
    user.application_requested_at = datetime.now(timezone.utc)
    await db.commit()

    logger.info("Guide application submitted by %s", email)
    return MessageResponse(message="Application submitted successfully")


# ── Profile ───────────────────────────────────────────────────

@router.patch("/users/profile/{email}", response_model=ProfileCascadeResponse)
async def update_profile(
    email: str,
    data: ProfileUpdateRequest,
    token_data: TokenData = Depends(require_auth),
    resolver: RoleResolver = Depends(get_role_resolver),
    db: AsyncSession = Depends(get_db),
):
    """
    Update name/photo and propagate them to every booking (as tourist or
    guide) and every story authored by this user.
    """
    await ensure_self_or_admin(token_data, email, resolver)
    if data.name is None and data.photo is None:
        raise HTTPException(status_code=400, detail="Nothing to update: provide name or photo")

    coordinator = CascadeCoordinator(db, strict=settings.CASCADE_STRICT)
    try:
        result = await coordinator.update_profile(email, name=data.name, photo=data.photo)
    except UserNotFoundError:
        raise HTTPException(status_code=404, detail="User not found")

    return ProfileCascadeResponse(
        message="Profile updated in users, bookings, and stories collections",
        updates=result.as_dict(),
    )
