"""
shared/models/models.py
All SQLAlchemy ORM models for the Tourism Booking Platform.

Bookings and stories keep denormalized copies of user name/photo and refer
back to users by email only. There are no foreign keys between them;
shared/cascade/coordinator.py keeps the copies in sync.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum as PyEnum
from typing import Any, List, Optional

from sqlalchemy import (
    JSON,
    DateTime,
    Enum,
    Index,
    Numeric,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from config.database import Base


# ── Enumerations ──────────────────────────────────────────────

class UserRole(str, PyEnum):
    USER = "user"
    TOURIST = "tourist"
    GUIDE = "guide"
    ADMIN = "admin"


class GuideStatus(str, PyEnum):
    """Guide application state. A user who never applied has no status (NULL)."""
    REQUESTED = "Requested"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class BookingStatus(str, PyEnum):
    PENDING = "pending"
    IN_REVIEW = "in review"
    PAID = "paid"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# Bookings listed under a tourist's "My Orders"
PAID_BOOKING_STATUSES = (
    BookingStatus.IN_REVIEW.value,
    BookingStatus.PAID.value,
    BookingStatus.ACCEPTED.value,
)


def _enum_values(enum_cls) -> List[str]:
    return [member.value for member in enum_cls]


# ── Mixins ────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin:
    """Adds created_at to any model."""
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), nullable=False
    )


# ── Models ────────────────────────────────────────────────────

class User(TimestampMixin, Base):
    """Root identity. `email` is the key every other collection refers to."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    photo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, values_callable=_enum_values, native_enum=False, length=20),
        nullable=False,
        default=UserRole.USER,
    )

    # Guide application
    status: Mapped[Optional[GuideStatus]] = mapped_column(
        Enum(GuideStatus, values_callable=_enum_values, native_enum=False, length=20),
        nullable=True,
    )
    application_title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    application_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    application_cv_link: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    application_requested_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    approved_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_users_role", "role"),
        Index("ix_users_status", "status"),
    )

    @property
    def guide_application(self) -> Optional[dict]:
        if self.application_requested_at is None:
            return None
        return {
            "title": self.application_title,
            "reason": self.application_reason,
            "cv_link": self.application_cv_link,
            "requested_at": self.application_requested_at,
        }

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role})>"


class Package(TimestampMixin, Base):
    """Travel package. Everything except the title is kept as an opaque document."""
    __tablename__ = "packages"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    details: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)


class Booking(TimestampMixin, Base):
    """
    Tour booking owned by a tourist, optionally assigned to a guide.
    Status: pending → in review (paid) → accepted | rejected
    """
    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Tourist (denormalized)
    tourist_email: Mapped[str] = mapped_column(String(255), nullable=False)
    tourist_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tourist_photo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Guide (denormalized)
    guide_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guide_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    guide_photo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    package_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    package_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    tour_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    total_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=0)

    # Free-form on purpose: older rows may carry statuses outside BookingStatus
    status: Mapped[str] = mapped_column(
        String(30), nullable=False, default=BookingStatus.PENDING.value
    )

    # Payment
    transaction_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    payment_info: Mapped[Optional[dict[str, Any]]] = mapped_column(JSON, nullable=True)

    __table_args__ = (
        Index("ix_bookings_tourist_email", "tourist_email"),
        Index("ix_bookings_guide_email", "guide_email"),
        Index("ix_bookings_status", "status"),
    )


class Story(TimestampMixin, Base):
    """User-submitted travel story with an author snapshot taken at creation."""
    __tablename__ = "stories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    images: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Author snapshot (denormalized)
    author_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    author_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    author_email: Mapped[str] = mapped_column(String(255), nullable=False)
    author_photo: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    author_role: Mapped[str] = mapped_column(String(20), nullable=False)

    __table_args__ = (
        Index("ix_stories_author_email", "author_email"),
        Index("ix_stories_created_at", "created_at"),
    )

    @property
    def author(self) -> dict:
        return {
            "id": self.author_id,
            "name": self.author_name,
            "email": self.author_email,
            "photo": self.author_photo or "",
            "role": self.author_role,
        }
