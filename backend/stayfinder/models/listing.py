"""Listing model: one bookable inventory unit published by a host."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, CheckConstraint, ForeignKey, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stayfinder.database import Base, UUIDPrimaryKeyMixin


class Listing(UUIDPrimaryKeyMixin, Base):
    """A rentable place with a nightly price and a reservation capacity."""

    __tablename__ = "listings"

    host_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    price_per_night: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    location: Mapped[str] = mapped_column(String(255), nullable=False)
    image_urls: Mapped[list[str]] = mapped_column(JSON, default=list)
    max_reservations: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(server_default=func.now(), onupdate=func.now())

    # Relationships
    host: Mapped["User"] = relationship(back_populates="listings", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    bookings: Mapped[list["Booking"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        back_populates="listing", lazy="raise", cascade="all, delete-orphan", passive_deletes=True
    )

    __table_args__ = (CheckConstraint("max_reservations >= 1", name="ck_listings_max_reservations_positive"),)

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, title={self.title!r}, max_reservations={self.max_reservations})>"
