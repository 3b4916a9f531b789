"""
services/booking/router.py
Booking lifecycle: tourists create and cancel, guides work their
assigned tours. Payment completion lives in services/payment/router.py.
States: pending → in review → accepted | rejected
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from shared.middleware.auth import (
    Principal,
    RoleResolver,
    TokenData,
    ensure_same_email,
    ensure_self_or_admin,
    get_role_resolver,
    require_auth,
    require_guide,
    require_tourist,
)
from shared.models.models import PAID_BOOKING_STATUSES, Booking, BookingStatus, UserRole
from shared.schemas.schemas import (
    BookingCreateRequest,
    BookingResponse,
    BookingStatusUpdateRequest,
    MessageResponse,
)
from shared.utils.errors import UserNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bookings"])


# ── Helpers ───────────────────────────────────────────────────

async def _get_booking_or_404(booking_id: str, db: AsyncSession) -> Booking:
    """A malformed id cannot name a booking, so it is a 404 like any unknown id."""
    try:
        key = UUID(booking_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Booking not found")
    booking = await db.get(Booking, key)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


def parse_booking_status(value: str) -> BookingStatus:
    try:
        return BookingStatus(value)
    except ValueError:
        valid = [s.value for s in BookingStatus]
        raise HTTPException(status_code=400, detail=f"Invalid status. Valid: {valid}")


# ── Tourist ───────────────────────────────────────────────────

@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreateRequest,
    token_data: TokenData = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Create a pending booking. Tourist/guide name and photo are copied in as given."""
    ensure_same_email(token_data.email, data.tourist_email)
    booking = Booking(**data.model_dump(), status=BookingStatus.PENDING.value)
    db.add(booking)
    await db.commit()
    logger.info("Booking %s created for %s", booking.id, booking.tourist_email)
    return BookingResponse.model_validate(booking)


@router.get("/bookings/{email}", response_model=list[BookingResponse])
async def list_tourist_bookings(
    email: str,
    token_data: TokenData = Depends(require_auth),
    resolver: RoleResolver = Depends(get_role_resolver),
    db: AsyncSession = Depends(get_db),
):
    await ensure_self_or_admin(token_data, email, resolver)
    result = await db.execute(
        select(Booking)
        .where(Booking.tourist_email == email)
        .order_by(Booking.created_at.desc())
    )
    return [BookingResponse.model_validate(b) for b in result.scalars()]


@router.delete("/bookings/{booking_id}", response_model=MessageResponse)
async def delete_booking(
    booking_id: str,
    token_data: TokenData = Depends(require_auth),
    resolver: RoleResolver = Depends(get_role_resolver),
    db: AsyncSession = Depends(get_db),
):
    """
    Cancel a booking. Allowed for the tourist who made it, the guide it is
    assigned to, or an admin.
    """
    booking = await _get_booking_or_404(booking_id, db)

    caller = token_data.email
    if caller != booking.tourist_email:
        try:
            role = await resolver.resolve(caller)
        except UserNotFoundError:
            role = None
        is_assigned_guide = role == UserRole.GUIDE and caller == booking.guide_email
        if not (is_assigned_guide or role == UserRole.ADMIN):
            raise HTTPException(status_code=403, detail="Forbidden access! Not your booking.")

    await db.delete(booking)
    await db.commit()
    logger.info("Booking %s cancelled by %s", booking_id, caller)
    return MessageResponse(message="Booking deleted successfully")


@router.get("/my-orders/{email}", response_model=list[BookingResponse])
async def my_orders(
    email: str,
    current_user: Principal = Depends(require_tourist),
    db: AsyncSession = Depends(get_db),
):
    """Bookings the tourist has paid for."""
    ensure_same_email(current_user.email, email)
    result = await db.execute(
        select(Booking)
        .where(
            Booking.tourist_email == email,
            Booking.status.in_(PAID_BOOKING_STATUSES),
        )
        .order_by(Booking.paid_at.desc())
    )
    return [BookingResponse.model_validate(b) for b in result.scalars()]


# ── Guide ─────────────────────────────────────────────────────

@router.get("/assigned-tours/{email}", response_model=list[BookingResponse])
async def assigned_tours(
    email: str,
    current_user: Principal = Depends(require_guide),
    db: AsyncSession = Depends(get_db),
):
    ensure_same_email(current_user.email, email)
    result = await db.execute(
        select(Booking)
        .where(Booking.guide_email == email)
        .order_by(Booking.tour_date.asc())
    )
    return [BookingResponse.model_validate(b) for b in result.scalars()]


@router.patch("/assigned-tours/{booking_id}", response_model=BookingResponse)
async def update_tour_status(
    booking_id: str,
    data: BookingStatusUpdateRequest,
    current_user: Principal = Depends(require_guide),
    db: AsyncSession = Depends(get_db),
):
    """Guide accepts or rejects a tour assigned to them."""
    new_status = parse_booking_status(data.status)
    booking = await _get_booking_or_404(booking_id, db)
    if booking.guide_email != current_user.email:
        raise HTTPException(status_code=403, detail="Forbidden access! Tour is not assigned to you.")

    old_status = booking.status
    booking.status = new_status.value
    await db.commit()
    logger.info(
        "Tour %s status %s → %s by %s", booking_id, old_status, new_status.value, current_user.email
    )
    return BookingResponse.model_validate(booking)
