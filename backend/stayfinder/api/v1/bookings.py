"""Bookings API router.

Ownership rule: a guest reads and cancels only their own bookings. Admin
overrides live in ``stayfinder.api.v1.admin``.
"""

import logging
import uuid

import stripe
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stayfinder.api.deps import get_clock, get_current_active_user, get_db
from stayfinder.billing.stripe_client import create_booking_checkout_session
from stayfinder.clock import Clock
from stayfinder.config import settings
from stayfinder.errors import ForbiddenError, InvalidTransitionError
from stayfinder.models.booking import Booking
from stayfinder.models.user import User
from stayfinder.schemas.booking import (
    BookingCancelResponse,
    BookingCountResponse,
    BookingCreate,
    BookingResponse,
    BookingWithListingResponse,
    CheckoutSessionResponse,
)
from stayfinder.services import booking_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])


@router.get(
    "",
    response_model=list[BookingResponse],
    summary="List bookings, optionally for one listing",
)
async def list_bookings(
    listing_id: uuid.UUID | None = Query(None, description="Filter by listing"),
    db: AsyncSession = Depends(get_db),
) -> list[Booking]:
    """Public booking index used by the front end to show occupancy."""
    return await booking_service.list_bookings(db, listing_id)


@router.get(
    "/me",
    response_model=list[BookingWithListingResponse],
    summary="List the current user's bookings",
)
async def list_my_bookings(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> list[Booking]:
    """Return the caller's bookings, each with its listing resolved."""
    return await booking_service.list_user_bookings(db, current_user.id)


@router.get(
    "/count/{listing_id}",
    response_model=BookingCountResponse,
    summary="Count all bookings for a listing",
)
async def get_booking_count(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> BookingCountResponse:
    count = await booking_service.count_bookings_for_listing(db, listing_id)
    return BookingCountResponse(count=count)


@router.get(
    "/active/count/{listing_id}",
    response_model=BookingCountResponse,
    summary="Count active confirmed bookings for a listing",
)
async def get_active_booking_count(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
) -> BookingCountResponse:
    """Confirmed bookings that have not yet ended; lets the UI block overbooking."""
    count = await booking_service.count_active_bookings_for_listing(db, listing_id, clock())
    return BookingCountResponse(count=count)


@router.post(
    "",
    response_model=BookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new booking",
)
async def create_booking(
    body: BookingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    clock: Clock = Depends(get_clock),
) -> Booking:
    """Reserve a listing for the current user.

    The booking starts ``pending`` and unpaid; it expires if not paid within
    the payment window.
    """
    return await booking_service.create_booking(db, current_user.id, body, clock())


@router.get(
    "/{booking_id}",
    response_model=BookingWithListingResponse,
    summary="Get a booking with its listing",
)
async def get_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    return await booking_service.get_booking(db, booking_id, current_user)


@router.patch(
    "/{booking_id}/confirm",
    response_model=BookingResponse,
    summary="Mark a booking as paid and confirmed",
)
async def confirm_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> Booking:
    """Called by the payment flow after a successful payment."""
    return await booking_service.confirm_booking(db, booking_id)


@router.patch(
    "/{booking_id}/cancel",
    response_model=BookingCancelResponse,
    summary="Cancel one of your bookings before check-in",
)
async def cancel_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
    clock: Clock = Depends(get_clock),
) -> BookingCancelResponse:
    booking = await booking_service.cancel_booking(db, booking_id, current_user, clock())
    return BookingCancelResponse(
        message="Booking cancelled successfully.",
        booking=BookingResponse.model_validate(booking),
    )


@router.post(
    "/{booking_id}/checkout",
    response_model=CheckoutSessionResponse,
    summary="Start a Stripe Checkout payment for a pending booking",
)
async def start_checkout(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> CheckoutSessionResponse:
    """Create a Stripe Checkout session; the webhook confirms the booking."""
    booking = await booking_service.get_booking_or_404(db, booking_id)
    if booking.user_id != current_user.id:
        raise ForbiddenError("Not authorized to pay for this booking")
    if booking.status != "pending" or booking.is_paid:
        raise InvalidTransitionError(f"Cannot pay for a booking that is {booking.status}")

    if not settings.stripe_secret_key:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Payments are not configured.",
        )

    try:
        session = await create_booking_checkout_session(
            booking,
            success_url=f"{settings.frontend_url}/bookings/{booking.id}?session_id={{CHECKOUT_SESSION_ID}}",
            cancel_url=f"{settings.frontend_url}/bookings/{booking.id}",
        )
    except stripe.StripeError as e:
        logger.error("Stripe checkout error for booking %s: %s", booking.id, e)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=str(e),
        ) from e

    return CheckoutSessionResponse(checkout_url=session.url, session_id=session.id)
