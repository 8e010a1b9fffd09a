"""SQLAlchemy models for StayFinder.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from stayfinder.models.booking import Booking
from stayfinder.models.listing import Listing
from stayfinder.models.user import User

__all__ = [
    "Booking",
    "Listing",
    "User",
]
