"""Expiry sweep: advance booking status based on elapsed time.

Two independent passes run on every sweep:

1. Unpaid expiry: pending, unpaid bookings older than the payment window
   become ``expired`` in one bulk UPDATE.
2. Completion: confirmed, paid bookings whose checkout cutoff has passed
   become ``completed``, one row at a time because the cutoff depends on each
   booking's own check-out time.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stayfinder.clock import Clock
from stayfinder.config import settings
from stayfinder.models.booking import Booking
from stayfinder.services.booking_service import check_out_cutoff

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Counts produced by one sweep run."""

    expired: int = 0
    completed: int = 0
    failed: int = 0


async def expire_unpaid_bookings(
    db: AsyncSession,
    now: datetime,
    ttl: timedelta | None = None,
) -> int:
    """Expire pending, unpaid bookings created at or before ``now - ttl``.

    Returns:
        Number of bookings moved to ``expired``.
    """
    ttl = ttl if ttl is not None else timedelta(minutes=settings.unpaid_booking_ttl_minutes)
    result = await db.execute(
        update(Booking)
        .where(
            Booking.is_paid.is_(False),
            Booking.status == "pending",
            Booking.created_at <= now - ttl,
        )
        .values(status="expired")
        .execution_options(synchronize_session=False)
    )
    return result.rowcount or 0


async def complete_booking(db: AsyncSession, booking_id: uuid.UUID) -> bool:
    """Move one confirmed booking to ``completed`` and commit.

    Returns False when the row no longer exists or is no longer confirmed,
    e.g. deleted or cancelled after the scan.
    """
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking_id, Booking.status == "confirmed")
        .values(status="completed")
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    return bool(result.rowcount)


async def complete_finished_bookings(db: AsyncSession, now: datetime) -> tuple[int, int]:
    """Complete confirmed, paid bookings whose checkout cutoff is before ``now``.

    Each completion is committed on its own. A booking that fails is logged
    and skipped; completions already committed stay applied.

    Returns:
        ``(completed, failed)`` counts.
    """
    result = await db.execute(select(Booking).where(Booking.status == "confirmed", Booking.is_paid.is_(True)))
    due: list[uuid.UUID] = []
    failed = 0

    for booking in result.scalars().all():
        try:
            if now > check_out_cutoff(booking):
                due.append(booking.id)
        except ValueError:
            failed += 1
            logger.exception("Booking %s has an invalid check-out time %r", booking.id, booking.check_out_time)

    completed = 0
    for booking_id in due:
        try:
            if await complete_booking(db, booking_id):
                completed += 1
            else:
                logger.info("Booking %s changed before completion, skipping", booking_id)
        except Exception:
            await db.rollback()
            failed += 1
            logger.exception("Failed to complete booking %s", booking_id)

    return completed, failed


async def run_booking_sweep(session_factory: async_sessionmaker[AsyncSession], clock: Clock) -> SweepResult:
    """Run both sweep passes, each in its own session and transaction.

    A failure in one pass is logged and does not prevent the other.
    """
    now = clock()
    outcome = SweepResult()

    try:
        async with session_factory() as db:
            outcome.expired = await expire_unpaid_bookings(db, now)
            await db.commit()
    except Exception:
        logger.exception("Unpaid booking expiry pass failed")

    try:
        async with session_factory() as db:
            outcome.completed, outcome.failed = await complete_finished_bookings(db, now)
            await db.commit()
    except Exception:
        logger.exception("Booking completion pass failed")

    logger.info(
        "Booking cleanup job ran. %d unpaid bookings expired, %d bookings completed.",
        outcome.expired,
        outcome.completed,
    )
    return outcome
