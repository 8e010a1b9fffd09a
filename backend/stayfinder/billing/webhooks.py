"""Stripe webhook event handlers: turn successful payments into confirmations."""

import logging
import uuid

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from stayfinder.errors import NotFoundError
from stayfinder.services.booking_service import confirm_booking

logger = logging.getLogger(__name__)


def _get_booking_id(obj) -> uuid.UUID | None:
    """Read ``metadata["booking_id"]`` from a Stripe object, if present and valid."""
    metadata = getattr(obj, "metadata", None)
    try:
        raw = metadata["booking_id"] if metadata else None
    except (KeyError, TypeError):
        raw = None
    if not raw:
        return None
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        logger.warning("Stripe object %s carries malformed booking_id %r", getattr(obj, "id", "?"), raw)
        return None


async def _confirm_from_payment(db: AsyncSession, obj, source: str) -> None:
    booking_id = _get_booking_id(obj)
    if booking_id is None:
        logger.info("%s %s has no booking_id metadata, skipping", source, obj.id)
        return
    try:
        await confirm_booking(db, booking_id)
    except NotFoundError:
        # Booking deleted by an admin before the payment settled
        logger.warning("%s %s references unknown booking %s", source, obj.id, booking_id)


async def handle_checkout_session_completed(db: AsyncSession, event: stripe.Event) -> None:
    """Handle checkout.session.completed: confirm the booking once paid."""
    session = event.data.object
    if getattr(session, "payment_status", None) != "paid":
        logger.info("Checkout session %s completed without payment, skipping", session.id)
        return
    await _confirm_from_payment(db, session, "Checkout session")


async def handle_payment_intent_succeeded(db: AsyncSession, event: stripe.Event) -> None:
    """Handle payment_intent.succeeded: confirm the booking it paid for."""
    await _confirm_from_payment(db, event.data.object, "Payment intent")
