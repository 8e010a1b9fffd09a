"""Admin API router: moderation of listings, bookings, and the sweep.

Every route requires the ``admin`` role.
"""

import logging
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stayfinder.api.deps import get_clock, get_db, get_session_factory, require_admin
from stayfinder.api.v1.listings import apply_listing_update
from stayfinder.clock import Clock
from stayfinder.models.booking import Booking
from stayfinder.models.listing import Listing
from stayfinder.models.user import User
from stayfinder.schemas.auth import MessageResponse, UserSummary
from stayfinder.schemas.booking import (
    BookingAdminResponse,
    BookingCancelResponse,
    BookingResponse,
    SweepResponse,
)
from stayfinder.schemas.listing import ListingResponse, ListingUpdate
from stayfinder.services import booking_service
from stayfinder.services.capacity import get_listing
from stayfinder.services.sweep import run_booking_sweep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/admin", tags=["admin"], dependencies=[Depends(require_admin)])


# ---------------------------------------------------------------------------
# Listings
# ---------------------------------------------------------------------------


@router.get("/listings", response_model=list[ListingResponse], summary="List every listing")
async def list_all_listings(db: AsyncSession = Depends(get_db)) -> list[Listing]:
    result = await db.execute(select(Listing).order_by(Listing.created_at.desc()))
    return list(result.scalars().all())


@router.put("/listings/{listing_id}", response_model=ListingResponse, summary="Update any listing")
async def update_any_listing(
    listing_id: uuid.UUID,
    body: ListingUpdate,
    db: AsyncSession = Depends(get_db),
) -> Listing:
    listing = await get_listing(db, listing_id)
    return await apply_listing_update(db, listing, body)


@router.delete("/listings/{listing_id}", response_model=MessageResponse, summary="Delete any listing")
async def delete_any_listing(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
) -> MessageResponse:
    listing = await get_listing(db, listing_id)
    await db.delete(listing)
    await db.flush()

    logger.info("Admin %s deleted listing %s", admin.id, listing_id)
    return MessageResponse(message="Listing deleted successfully")


# ---------------------------------------------------------------------------
# Bookings
# ---------------------------------------------------------------------------


@router.get(
    "/bookings",
    response_model=list[BookingAdminResponse],
    summary="List every booking with user and listing",
)
async def list_all_bookings(db: AsyncSession = Depends(get_db)) -> list[Booking]:
    return await booking_service.list_all_bookings(db)


@router.get(
    "/users-with-bookings",
    response_model=list[UserSummary],
    summary="Users holding at least one booking",
)
async def list_users_with_bookings(db: AsyncSession = Depends(get_db)) -> list[User]:
    return await booking_service.list_users_with_bookings(db)


@router.patch(
    "/bookings/{booking_id}/cancel",
    response_model=BookingCancelResponse,
    summary="Cancel any booking before check-in",
)
async def cancel_any_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
    clock: Clock = Depends(get_clock),
) -> BookingCancelResponse:
    booking = await booking_service.cancel_booking(db, booking_id, admin, clock())
    return BookingCancelResponse(
        message="Booking cancelled successfully.",
        booking=BookingResponse.model_validate(booking),
    )


@router.delete("/bookings/{booking_id}", response_model=MessageResponse, summary="Delete any booking")
async def delete_any_booking(
    booking_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Hard delete, bypassing lifecycle rules."""
    await booking_service.delete_booking(db, booking_id)
    return MessageResponse(message="Booking deleted successfully")


# ---------------------------------------------------------------------------
# Sweep
# ---------------------------------------------------------------------------


@router.post("/sweep", response_model=SweepResponse, summary="Run the booking expiry sweep now")
async def run_sweep_now(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    clock: Clock = Depends(get_clock),
) -> SweepResponse:
    result = await run_booking_sweep(session_factory, clock)
    return SweepResponse(expired=result.expired, completed=result.completed, failed=result.failed)
