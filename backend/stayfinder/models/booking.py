"""Booking model: a guest's reservation of a listing for a date range."""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Date, ForeignKey, Index, Numeric, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stayfinder.database import Base, UUIDPrimaryKeyMixin

BOOKING_STATUSES = ("pending", "confirmed", "expired", "cancelled", "completed")
CANCELLABLE_STATUSES = ("pending", "confirmed")


class Booking(UUIDPrimaryKeyMixin, Base):
    """A reservation linking a user to a listing for specific dates."""

    __tablename__ = "bookings"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    listing_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("listings.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    check_in_time: Mapped[str] = mapped_column(String(5), nullable=False, default="15:00")
    check_out_time: Mapped[str] = mapped_column(String(5), nullable=False, default="11:00")
    total_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    is_paid: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        default="pending",
        index=True,
    )  # pending, confirmed, expired, cancelled, completed

    created_at: Mapped[datetime] = mapped_column(server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(),
        onupdate=func.now(),
    )

    # Relationships
    user: Mapped["User"] = relationship(back_populates="bookings", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821
    listing: Mapped["Listing"] = relationship(back_populates="bookings", lazy="selectin")  # type: ignore[name-defined]  # noqa: F821

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_bookings_dates_ordered"),
        Index("ix_bookings_listing_status_end", "listing_id", "status", "end_date"),
    )

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, listing_id={self.listing_id}, user_id={self.user_id}, status={self.status})>"
