"""
shared/schemas/schemas.py
All Pydantic v2 request/response schemas for the platform.
Attributes are snake_case; the wire format is camelCase.
"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from shared.models.models import GuideStatus, UserRole


# ── Base ──────────────────────────────────────────────────────

class BaseSchema(BaseModel):
    model_config = ConfigDict(
        from_attributes=True,
        use_enum_values=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class MessageResponse(BaseSchema):
    message: str
    success: bool = True


# ── Auth ──────────────────────────────────────────────────────

class SessionClaims(BaseSchema):
    """Claims posted to /jwt. Anything besides the email is carried along as-is."""
    model_config = ConfigDict(extra="allow")

    email: EmailStr


# ── User ──────────────────────────────────────────────────────

class UserCreateRequest(BaseSchema):
    email: EmailStr
    name: Optional[str] = Field(None, max_length=255)
    photo: Optional[str] = None


class GuideApplicationRequest(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    reason: str = Field(..., min_length=1)
    cv_link: str = Field(..., min_length=1)


class GuideApplicationResponse(BaseSchema):
    title: Optional[str]
    reason: Optional[str]
    cv_link: Optional[str]
    requested_at: datetime


class UserResponse(BaseSchema):
    id: uuid.UUID
    email: str
    name: Optional[str]
    photo: Optional[str]
    role: UserRole
    status: Optional[GuideStatus]
    guide_application: Optional[GuideApplicationResponse] = None
    approved_at: Optional[datetime] = None
    rejected_at: Optional[datetime] = None
    created_at: datetime


class UserRoleResponse(BaseSchema):
    role: Optional[str]


class ProfileUpdateRequest(BaseSchema):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    photo: Optional[str] = None


class CandidateActionRequest(BaseSchema):
    # Checked by the handler so an unknown directive gets a readable message
    action: str


class ProfileCascadeResponse(BaseSchema):
    success: bool = True
    message: str
    updates: Dict[str, int]


# ── Package ───────────────────────────────────────────────────

class PackageCreateRequest(BaseSchema):
    """Only the title is required; any other field is stored with the package."""
    model_config = ConfigDict(extra="allow")

    title: str = Field(..., min_length=1, max_length=255)


# ── Booking ───────────────────────────────────────────────────

class BookingCreateRequest(BaseSchema):
    tourist_email: EmailStr
    tourist_name: Optional[str] = None
    tourist_photo: Optional[str] = None
    guide_email: Optional[EmailStr] = None
    guide_name: Optional[str] = None
    guide_photo: Optional[str] = None
    package_id: Optional[str] = None
    package_name: Optional[str] = None
    tour_date: Optional[datetime] = None
    total_price: Decimal = Field(Decimal("0"), ge=0)


class BookingResponse(BaseSchema):
    id: uuid.UUID
    tourist_email: str
    tourist_name: Optional[str]
    tourist_photo: Optional[str]
    guide_email: Optional[str]
    guide_name: Optional[str]
    guide_photo: Optional[str]
    package_id: Optional[str]
    package_name: Optional[str]
    tour_date: Optional[datetime]
    total_price: float
    status: str
    transaction_id: Optional[str]
    paid_at: Optional[datetime]
    payment_info: Optional[Dict[str, Any]]
    created_at: datetime


class BookingStatusUpdateRequest(BaseSchema):
    status: str


# ── Payment ───────────────────────────────────────────────────

class PaymentIntentRequest(BaseSchema):
    amount: Optional[Decimal] = Field(None, ge=0)


class PaymentIntentResponse(BaseSchema):
    order_id: str
    key_id: str
    amount: int          # smallest currency unit
    currency: str


class PaymentRecordRequest(BaseSchema):
    booking_id: uuid.UUID
    transaction_id: str = Field(..., min_length=1)
    customer_email: Optional[EmailStr] = None
    amount: Optional[Decimal] = None


class BookingPaymentRequest(BaseSchema):
    transaction_id: str = Field(..., min_length=1)
    status: Optional[str] = None
    paid_at: Optional[datetime] = None
    amount: Optional[Decimal] = None
    method: str = "card"
    customer_email: Optional[EmailStr] = None


class PaymentCompletionResponse(BaseSchema):
    success: bool = True
    message: str
    booking_id: uuid.UUID
    status: str
    role_promoted: bool


# ── Story ─────────────────────────────────────────────────────

class StoryCreateRequest(BaseSchema):
    title: str = Field(..., min_length=1, max_length=255)
    text: str = Field(..., min_length=1)
    images: List[str] = Field(..., min_length=1)


class StoryUpdateRequest(BaseSchema):
    title: Optional[str] = Field(None, max_length=255)
    text: Optional[str] = None


class StoryImagesRequest(BaseSchema):
    images: List[str] = Field(..., min_length=1)


class StoryImageRemoveRequest(BaseSchema):
    image_url: str


class StoryAuthor(BaseSchema):
    id: uuid.UUID
    name: Optional[str]
    email: str
    photo: str
    role: str


class StoryResponse(BaseSchema):
    id: uuid.UUID
    title: str
    text: str
    images: List[str]
    author: StoryAuthor
    created_at: datetime

    @field_validator("images", mode="before")
    @classmethod
    def default_images(cls, v):
        return v or []


# ── Admin ─────────────────────────────────────────────────────

class AdminStatsResponse(BaseSchema):
    total_payment: float
    total_guides: int
    total_packages: int
    total_clients: int
    total_users: int
    total_stories: int
