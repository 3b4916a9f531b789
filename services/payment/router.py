"""
services/payment/router.py
Razorpay order creation and payment completion.

Two completion endpoints exist for client compatibility: POST /payments
(checkout callback) and PATCH /bookings/payment/{id} (which also stores
payment details). Both go through CascadeCoordinator.complete_payment, so
the booking update and the payer's user → tourist promotion behave the same.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from config.database import get_db
from config.settings import settings
from shared.cascade.coordinator import CascadeCoordinator, PaymentCompletionResult
from shared.middleware.auth import TokenData, require_auth
from shared.models.models import BookingStatus
from shared.schemas.schemas import (
    BookingPaymentRequest,
    PaymentCompletionResponse,
    PaymentIntentRequest,
    PaymentIntentResponse,
    PaymentRecordRequest,
)
from shared.utils.errors import BookingNotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Payments"])


def get_razorpay_client():
    """Lazy import Razorpay client."""
    try:
        import razorpay
        return razorpay.Client(
            auth=(settings.RAZORPAY_KEY_ID, settings.RAZORPAY_KEY_SECRET)
        )
    except ImportError:
        raise HTTPException(status_code=503, detail="Payment service unavailable")


def _completion_response(result: PaymentCompletionResult) -> PaymentCompletionResponse:
    return PaymentCompletionResponse(
        message="Payment successful, booking updated.",
        booking_id=result.booking_id,
        status=result.status,
        role_promoted=result.role_promoted,
    )


# ── Initiate Payment ──────────────────────────────────────────

@router.post("/create-payment-intent", response_model=PaymentIntentResponse)
async def create_payment_intent(
    data: PaymentIntentRequest,
    token_data: TokenData = Depends(require_auth),
    rzp=Depends(get_razorpay_client),
):
    """
    Create a gateway order for `amount` (major currency unit).
    Client uses order_id + key_id to open the checkout.
    """
    if data.amount is None:
        raise HTTPException(status_code=400, detail="Amount required")

    amount_minor = int(round(data.amount * 100))
    try:
        order = rzp.order.create({
            "amount": amount_minor,
            "currency": settings.PAYMENT_CURRENCY,
            "notes": {"email": token_data.email},
        })
    except Exception as e:
        logger.error("Payment gateway error for %s: %s", token_data.email, e)
        raise HTTPException(status_code=500, detail=f"Payment gateway error: {str(e)}")

    return PaymentIntentResponse(
        order_id=order["id"],
        key_id=settings.RAZORPAY_KEY_ID,
        amount=amount_minor,
        currency=settings.PAYMENT_CURRENCY,
    )


# ── Payment Completion ────────────────────────────────────────

@router.post("/payments", response_model=PaymentCompletionResponse)
async def record_payment(
    data: PaymentRecordRequest,
    db: AsyncSession = Depends(get_db),
):
    """Mark the booking `in review` and promote a base-role payer to tourist."""
    payment_info = None
    if data.amount is not None:
        payment_info = {"amount": float(data.amount), "customerEmail": data.customer_email}

    coordinator = CascadeCoordinator(db, strict=settings.CASCADE_STRICT)
    try:
        result = await coordinator.complete_payment(
            data.booking_id,
            data.transaction_id,
            data.customer_email,
            payment_info=payment_info,
        )
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Booking not found")
    return _completion_response(result)


@router.patch("/bookings/payment/{booking_id}", response_model=PaymentCompletionResponse)
async def update_booking_payment(
    booking_id: UUID,
    data: BookingPaymentRequest,
    token_data: TokenData = Depends(require_auth),
    db: AsyncSession = Depends(get_db),
):
    """Same as POST /payments, but also stores amount/method/payer on the booking."""
    status = data.status or BookingStatus.IN_REVIEW.value
    if status not in {s.value for s in BookingStatus}:
        raise HTTPException(status_code=400, detail=f"Invalid status: {status}")

    coordinator = CascadeCoordinator(db, strict=settings.CASCADE_STRICT)
    try:
        result = await coordinator.complete_payment(
            booking_id,
            data.transaction_id,
            data.customer_email,
            status=status,
            paid_at=data.paid_at,
            payment_info={
                "amount": float(data.amount) if data.amount is not None else None,
                "method": data.method,
                "customerEmail": data.customer_email,
            },
        )
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Booking not found")
    return _completion_response(result)
