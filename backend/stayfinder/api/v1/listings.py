"""Listings API routes: public reads, host- or admin-scoped writes."""

import logging
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stayfinder.api.deps import get_current_active_user, get_db
from stayfinder.errors import ForbiddenError
from stayfinder.models.listing import Listing
from stayfinder.models.user import User
from stayfinder.schemas.auth import MessageResponse
from stayfinder.schemas.listing import (
    ListingCreate,
    ListingListResponse,
    ListingResponse,
    ListingUpdate,
)
from stayfinder.services.capacity import get_listing

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/listings", tags=["listings"])


async def _get_listing_for_mutation(db: AsyncSession, listing_id: uuid.UUID, user: User) -> Listing:
    """Fetch a listing the user may modify: its host, or any admin."""
    listing = await get_listing(db, listing_id)
    if listing.host_id != user.id and not user.is_admin:
        raise ForbiddenError("Not authorized to modify this listing")
    return listing


async def apply_listing_update(db: AsyncSession, listing: Listing, body: ListingUpdate) -> Listing:
    """Apply the explicitly set fields of ``body`` to ``listing``."""
    for field, value in body.model_dump(exclude_unset=True).items():
        if value is None and field != "description":
            continue
        setattr(listing, field, value)
    db.add(listing)
    await db.flush()
    await db.refresh(listing)
    return listing


@router.get(
    "",
    response_model=ListingListResponse,
    summary="List all listings",
)
async def list_listings(
    location: str | None = Query(None, description="Case-insensitive substring match on location"),
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> ListingListResponse:
    """Return paginated listings, newest first. Public."""
    filters = []
    if location:
        filters.append(Listing.location.ilike(f"%{location}%"))

    total_result = await db.execute(select(func.count()).select_from(Listing).where(*filters))
    total = total_result.scalar_one()

    items_query = select(Listing).where(*filters).order_by(Listing.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(items_query)

    return ListingListResponse(
        items=[ListingResponse.model_validate(item) for item in result.scalars().all()],
        total=total,
    )


@router.get(
    "/{listing_id}",
    response_model=ListingResponse,
    summary="Get a listing by ID",
)
async def get_listing_detail(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> ListingResponse:
    """Retrieve a single listing. Public."""
    return ListingResponse.model_validate(await get_listing(db, listing_id))


@router.post(
    "",
    response_model=ListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a new listing",
)
async def create_listing(
    body: ListingCreate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ListingResponse:
    """Create a listing hosted by the authenticated user."""
    listing = Listing(host_id=current_user.id, **body.model_dump())
    db.add(listing)
    await db.flush()
    await db.refresh(listing)

    logger.info("Listing %s published by user %s", listing.id, current_user.id)
    return ListingResponse.model_validate(listing)


@router.api_route(
    "/{listing_id}",
    methods=["PUT", "PATCH"],
    response_model=ListingResponse,
    summary="Update a listing",
)
async def update_listing(
    listing_id: uuid.UUID,
    body: ListingUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> ListingResponse:
    """Partially update a listing. Only its host or an admin may do so."""
    listing = await _get_listing_for_mutation(db, listing_id, current_user)
    listing = await apply_listing_update(db, listing, body)
    return ListingResponse.model_validate(listing)


@router.delete(
    "/{listing_id}",
    response_model=MessageResponse,
    summary="Delete a listing",
)
async def delete_listing(
    listing_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    """Delete a listing and its bookings. Only its host or an admin may do so."""
    listing = await _get_listing_for_mutation(db, listing_id, current_user)
    await db.delete(listing)
    await db.flush()

    logger.info("Listing %s deleted by user %s", listing_id, current_user.id)
    return MessageResponse(message="Listing deleted successfully")
