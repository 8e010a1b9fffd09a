"""Booking lifecycle: creation, confirmation, cancellation, deletion, queries.

State machine::

    pending   -> confirmed | expired | cancelled
    confirmed -> cancelled | completed

``expired``, ``cancelled`` and ``completed`` are terminal. Expiry and
completion are driven by the sweep (see ``stayfinder.services.sweep``).
"""

import logging
import uuid
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stayfinder.clock import cutoff_instant
from stayfinder.errors import (
    CapacityExceededError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
)
from stayfinder.models.booking import CANCELLABLE_STATUSES, Booking
from stayfinder.models.user import User
from stayfinder.schemas.booking import BookingCreate
from stayfinder.services.capacity import can_admit, count_active_bookings

logger = logging.getLogger(__name__)


def check_in_cutoff(booking: Booking) -> datetime:
    """Instant after which the booking can no longer be cancelled."""
    return cutoff_instant(booking.start_date, booking.check_in_time)


def check_out_cutoff(booking: Booking) -> datetime:
    """Instant after which a confirmed stay counts as completed."""
    return cutoff_instant(booking.end_date, booking.check_out_time)


async def get_booking_or_404(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFoundError("Booking not found")
    return booking


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------


async def create_booking(
    db: AsyncSession,
    user_id: uuid.UUID,
    data: BookingCreate,
    now: datetime,
) -> Booking:
    """Create a pending, unpaid booking if the listing has capacity.

    Raises:
        NotFoundError: If the listing does not exist.
        CapacityExceededError: If the listing is at its reservation limit.
    """
    if not await can_admit(db, data.listing_id, now, lock=True):
        raise CapacityExceededError("Reservation limit reached for this listing.")

    booking = Booking(
        user_id=user_id,
        listing_id=data.listing_id,
        start_date=data.start_date,
        end_date=data.end_date,
        check_in_time=data.check_in_time,
        check_out_time=data.check_out_time,
        total_price=data.total_price,
        is_paid=False,
        status="pending",
        created_at=now,
    )
    db.add(booking)
    await db.flush()
    await db.refresh(booking)

    logger.info("Booking %s created by user %s for listing %s", booking.id, user_id, data.listing_id)
    return booking


async def confirm_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    """Mark a booking paid and confirmed after a trusted payment event.

    No ownership or state check is applied; confirming twice is a no-op.

    Raises:
        NotFoundError: If the booking does not exist.
    """
    booking = await get_booking_or_404(db, booking_id)
    booking.is_paid = True
    booking.status = "confirmed"
    await db.flush()
    await db.refresh(booking)

    logger.info("Booking %s confirmed", booking.id)
    return booking


async def cancel_booking(
    db: AsyncSession,
    booking_id: uuid.UUID,
    requester: User,
    now: datetime,
) -> Booking:
    """Cancel a pending or confirmed booking before its check-in cutoff.

    Only the booking's owner or an admin may cancel.

    Raises:
        NotFoundError: If the booking does not exist.
        ForbiddenError: If the requester is neither the owner nor an admin.
        InvalidTransitionError: If the booking is already terminal or the
            check-in cutoff has been reached.
    """
    booking = await get_booking_or_404(db, booking_id)

    if booking.user_id != requester.id and not requester.is_admin:
        raise ForbiddenError("Not authorized to cancel this booking")

    if booking.status not in CANCELLABLE_STATUSES:
        raise InvalidTransitionError(f"Cannot cancel a booking that is {booking.status}")

    if now >= check_in_cutoff(booking):
        raise InvalidTransitionError("Cannot cancel after check-in time.")

    booking.status = "cancelled"
    await db.flush()
    await db.refresh(booking)

    logger.info("Booking %s cancelled by user %s", booking.id, requester.id)
    return booking


async def delete_booking(db: AsyncSession, booking_id: uuid.UUID) -> None:
    """Hard-delete a booking regardless of its state (admin only).

    Raises:
        NotFoundError: If the booking does not exist.
    """
    booking = await get_booking_or_404(db, booking_id)
    await db.delete(booking)
    await db.flush()
    logger.info("Booking %s deleted", booking_id)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_booking(db: AsyncSession, booking_id: uuid.UUID, requester: User) -> Booking:
    """Return one booking visible to its owner or an admin."""
    booking = await get_booking_or_404(db, booking_id)
    if booking.user_id != requester.id and not requester.is_admin:
        raise ForbiddenError("Not authorized to view this booking")
    return booking


async def count_bookings_for_listing(db: AsyncSession, listing_id: uuid.UUID) -> int:
    """Total bookings ever made against a listing, any status."""
    result = await db.execute(select(func.count()).select_from(Booking).where(Booking.listing_id == listing_id))
    return result.scalar_one()


async def count_active_bookings_for_listing(db: AsyncSession, listing_id: uuid.UUID, now: datetime) -> int:
    """Confirmed bookings on a listing that have not yet ended."""
    return await count_active_bookings(db, listing_id, now)


async def list_bookings(db: AsyncSession, listing_id: uuid.UUID | None = None) -> list[Booking]:
    """All bookings, optionally for one listing, newest first."""
    query = select(Booking)
    if listing_id is not None:
        query = query.where(Booking.listing_id == listing_id)
    result = await db.execute(query.order_by(Booking.created_at.desc()))
    return list(result.scalars().all())


async def list_user_bookings(db: AsyncSession, user_id: uuid.UUID) -> list[Booking]:
    """Bookings owned by a user; each carries its listing."""
    result = await db.execute(
        select(Booking).where(Booking.user_id == user_id).order_by(Booking.start_date.desc())
    )
    return list(result.scalars().all())


async def list_all_bookings(db: AsyncSession) -> list[Booking]:
    """Every booking with its user and listing loaded, for admin review."""
    return await list_bookings(db)


async def list_users_with_bookings(db: AsyncSession) -> list[User]:
    """Distinct users who hold at least one booking."""
    has_booking = select(Booking.id).where(Booking.user_id == User.id).exists()
    result = await db.execute(select(User).where(has_booking).order_by(User.name))
    return list(result.scalars().all())
