"""Pydantic v2 request/response schemas for listing endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class ListingCreate(BaseModel):
    """Schema for publishing a new listing."""

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    price_per_night: Decimal = Field(..., ge=0)
    location: str = Field(..., min_length=1, max_length=255)
    image_urls: list[str] = Field(default_factory=list, max_length=5)
    max_reservations: int = Field(..., ge=1)


class ListingUpdate(BaseModel):
    """Schema for partially updating a listing. All fields optional."""

    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    price_per_night: Decimal | None = Field(None, ge=0)
    location: str | None = Field(None, min_length=1, max_length=255)
    image_urls: list[str] | None = Field(None, max_length=5)
    max_reservations: int | None = Field(None, ge=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class ListingResponse(BaseModel):
    """Public listing information returned from the API."""

    id: uuid.UUID
    host_id: uuid.UUID
    title: str
    description: str | None = None
    price_per_night: Decimal
    location: str
    image_urls: list[str] = []
    max_reservations: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ListingTitle(BaseModel):
    """Listing reference reduced to its title, for administrative review."""

    id: uuid.UUID
    title: str

    model_config = ConfigDict(from_attributes=True)


class ListingListResponse(BaseModel):
    """Paginated list of listings."""

    items: list[ListingResponse]
    total: int
