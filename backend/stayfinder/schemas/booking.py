"""Pydantic v2 request/response schemas for booking endpoints."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from stayfinder.clock import parse_wall_clock
from stayfinder.schemas.auth import UserSummary
from stayfinder.schemas.listing import ListingResponse, ListingTitle

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class BookingCreate(BaseModel):
    """Schema for creating a new booking. The owner comes from the token."""

    listing_id: uuid.UUID
    start_date: date
    end_date: date
    check_in_time: str = "15:00"
    check_out_time: str = "11:00"
    total_price: Decimal | None = Field(None, ge=0)

    @field_validator("check_in_time", "check_out_time")
    @classmethod
    def check_wall_clock(cls, value: str) -> str:
        """Require a 24-hour ``HH:MM`` wall-clock time."""
        parsed = parse_wall_clock(value)
        return parsed.strftime("%H:%M")

    @model_validator(mode="after")
    def check_dates(self) -> "BookingCreate":
        """Validate that end_date is not before start_date."""
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class BookingResponse(BaseModel):
    """Standard booking response returned from lifecycle operations."""

    id: uuid.UUID
    user_id: uuid.UUID
    listing_id: uuid.UUID
    start_date: date
    end_date: date
    check_in_time: str
    check_out_time: str
    total_price: Decimal | None = None
    is_paid: bool
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookingWithListingResponse(BookingResponse):
    """A user's booking with its listing fully resolved."""

    listing: ListingResponse | None = None


class BookingAdminResponse(BookingResponse):
    """Booking for administrative review: user name/email and listing title."""

    user: UserSummary | None = None
    listing: ListingTitle | None = None


class BookingCountResponse(BaseModel):
    """Number of bookings matching a per-listing count query."""

    count: int


class BookingCancelResponse(BaseModel):
    """Confirmation message plus the cancelled booking."""

    message: str
    booking: BookingResponse


class CheckoutSessionResponse(BaseModel):
    """Stripe Checkout URL for paying a pending booking."""

    checkout_url: str
    session_id: str


class SweepResponse(BaseModel):
    """Outcome of a manually triggered expiry sweep."""

    expired: int
    completed: int
    failed: int
