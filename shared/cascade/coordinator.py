"""
shared/cascade/coordinator.py
Keeps denormalized user data consistent across collections and drives the
role transition that follows a completed payment.

Profile update
    users → bookings (as tourist) → bookings (as guide) → stories
Payment completion
    booking status/transaction → payer promotion (user → tourist)

Default mode is best-effort: every sub-update is committed on its own, so a
concurrent reader can briefly see a partially cascaded state. With
strict=True the profile cascade is committed once, as a single transaction.
Payer promotion is always isolated from the booking update; a failed
promotion is logged and never undoes the recorded payment.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models.models import Booking, BookingStatus, Story, User, UserRole
from shared.utils.errors import BookingNotFoundError, UserNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class ProfileCascadeResult:
    """Rows touched per cascade target. Zero is a valid count."""
    users: int = 0
    tourist_bookings: int = 0
    guide_bookings: int = 0
    stories: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class PaymentCompletionResult:
    booking_id: UUID
    status: str
    transaction_id: str
    paid_at: datetime
    role_promoted: bool = False


class CascadeCoordinator:
    def __init__(self, db: AsyncSession, strict: bool = False):
        self.db = db
        self.strict = strict

    async def _checkpoint(self) -> None:
        if not self.strict:
            await self.db.commit()

    async def _update_count(self, statement) -> int:
        result = await self.db.execute(
            statement.execution_options(synchronize_session=False)
        )
        return result.rowcount or 0

    # ── Profile update ────────────────────────────────────────

    async def update_profile(
        self,
        email: str,
        name: Optional[str] = None,
        photo: Optional[str] = None,
    ) -> ProfileCascadeResult:
        """
        Apply a name/photo change to the user and every denormalized copy.
        Only the fields that were supplied are propagated.
        Raises UserNotFoundError before any write if the user does not exist.
        """
        exists = await self.db.scalar(select(User.id).where(User.email == email))
        if exists is None:
            raise UserNotFoundError(email)

        fields = {k: v for k, v in {"name": name, "photo": photo}.items() if v is not None}
        result = ProfileCascadeResult()
        if not fields:
            return result

        try:
            result.users = await self._update_count(
                update(User).where(User.email == email).values(**fields)
            )
            await self._checkpoint()

            result.tourist_bookings = await self._update_count(
                update(Booking)
                .where(Booking.tourist_email == email)
                .values(**{f"tourist_{k}": v for k, v in fields.items()})
            )
            await self._checkpoint()

            result.guide_bookings = await self._update_count(
                update(Booking)
                .where(Booking.guide_email == email)
                .values(**{f"guide_{k}": v for k, v in fields.items()})
            )
            await self._checkpoint()

            result.stories = await self._update_count(
                update(Story)
                .where(Story.author_email == email)
                .values(**{f"author_{k}": v for k, v in fields.items()})
            )
            await self.db.commit()
        except SQLAlchemyError:
            logger.exception(
                "Profile cascade for %s stopped after %s", email, result.as_dict()
            )
            await self.db.rollback()
            raise

        logger.info("Profile cascade for %s: %s", email, result.as_dict())
        return result

    # ── Payment completion ────────────────────────────────────

    async def complete_payment(
        self,
        booking_id: UUID,
        transaction_id: str,
        payer_email: Optional[str] = None,
        *,
        status: str = BookingStatus.IN_REVIEW.value,
        paid_at: Optional[datetime] = None,
        payment_info: Optional[dict[str, Any]] = None,
    ) -> PaymentCompletionResult:
        """
        Record a payment on the booking, then promote a base-role payer to tourist.
        Re-running with the same booking re-applies the same fields; promotion
        is a one-way check so a repeat never changes the role again.
        """
        booking = await self.db.get(Booking, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)

        booking.status = status
        booking.transaction_id = transaction_id
        booking.paid_at = paid_at or datetime.now(timezone.utc)
        if payment_info is not None:
            booking.payment_info = payment_info
        await self.db.commit()

        result = PaymentCompletionResult(
            booking_id=booking.id,
            status=booking.status,
            transaction_id=booking.transaction_id,
            paid_at=booking.paid_at,
        )

        if payer_email:
            try:
                result.role_promoted = await self.promote_payer(payer_email)
                await self.db.commit()
            except SQLAlchemyError:
                await self.db.rollback()
                logger.exception(
                    "Payer promotion failed for %s after payment on booking %s",
                    payer_email, booking_id,
                )

        logger.info(
            "Payment %s recorded on booking %s (payer=%s, promoted=%s)",
            transaction_id, booking_id, payer_email, result.role_promoted,
        )
        return result

    async def promote_payer(self, email: str) -> bool:
        """user → tourist. Any other role, or a missing user, is left as is."""
        role = await self.db.scalar(select(User.role).where(User.email == email))
        if role is None:
            logger.warning("Payer %s has no user record; skipping promotion", email)
            return False
        if role != UserRole.USER:
            return False

        promoted = await self._update_count(
            update(User)
            .where(User.email == email, User.role == UserRole.USER)
            .values(role=UserRole.TOURIST)
        )
        return promoted > 0
