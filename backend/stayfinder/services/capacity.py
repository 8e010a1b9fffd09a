"""Capacity checker: may a listing admit another confirmed reservation?

Capacity counts confirmed bookings that have not yet ended, regardless of
whether their dates overlap the requested stay. Pending, cancelled, expired
and completed bookings never consume capacity.
"""

import logging
import uuid
from datetime import date, datetime, time, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stayfinder.errors import NotFoundError
from stayfinder.models.booking import Booking
from stayfinder.models.listing import Listing

logger = logging.getLogger(__name__)


async def get_listing(db: AsyncSession, listing_id: uuid.UUID, *, lock: bool = False) -> Listing:
    """Load a listing or raise :class:`NotFoundError`.

    With ``lock=True`` the row is selected ``FOR UPDATE`` so concurrent
    admissions against the same listing serialize until the caller's
    transaction ends. Databases without row locks ignore the clause.
    """
    query = select(Listing).where(Listing.id == listing_id)
    if lock:
        query = query.with_for_update()
    result = await db.execute(query)
    listing = result.scalar_one_or_none()
    if listing is None:
        raise NotFoundError("Listing not found")
    return listing


def first_active_end_date(as_of: datetime) -> date:
    """Earliest end date still active at ``as_of``.

    An end date stands for midnight at the start of that day, so a stay
    ending today stops counting as soon as the day has begun.
    """
    if as_of.time() == time.min:
        return as_of.date()
    return as_of.date() + timedelta(days=1)


async def count_active_bookings(db: AsyncSession, listing_id: uuid.UUID, as_of: datetime) -> int:
    """Count confirmed bookings on a listing whose end date is not before ``as_of``."""
    result = await db.execute(
        select(func.count())
        .select_from(Booking)
        .where(
            Booking.listing_id == listing_id,
            Booking.status == "confirmed",
            Booking.end_date >= first_active_end_date(as_of),
        )
    )
    return result.scalar_one()


async def can_admit(
    db: AsyncSession,
    listing_id: uuid.UUID,
    as_of: datetime,
    *,
    lock: bool = False,
) -> bool:
    """Return True if the listing has a free reservation slot as of ``as_of``.

    Raises:
        NotFoundError: If the listing does not exist.
    """
    listing = await get_listing(db, listing_id, lock=lock)
    active = await count_active_bookings(db, listing_id, as_of)
    admitted = active < listing.max_reservations
    if not admitted:
        logger.info(
            "Listing %s at capacity (%d/%d active confirmed bookings)",
            listing_id,
            active,
            listing.max_reservations,
        )
    return admitted
