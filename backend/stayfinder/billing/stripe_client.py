"""Async Stripe API wrapper for collecting booking payments."""

import logging
from decimal import Decimal

import stripe
from stripe import StripeClient

from stayfinder.config import settings
from stayfinder.models.booking import Booking

logger = logging.getLogger(__name__)


def get_stripe_client() -> StripeClient:
    """Create a StripeClient instance with async HTTP support."""
    return StripeClient(
        settings.stripe_secret_key,
        http_client=stripe.HTTPXClient(),
    )


def _amount_in_minor_units(amount: Decimal) -> int:
    return int((amount * 100).to_integral_value())


async def create_booking_checkout_session(
    booking: Booking,
    success_url: str,
    cancel_url: str,
) -> stripe.checkout.Session:
    """Create a one-time Stripe Checkout Session paying for a booking.

    The booking id travels in the session and payment-intent metadata so the
    webhook can confirm the booking once Stripe reports the payment.
    """
    client = get_stripe_client()
    metadata = {"booking_id": str(booking.id)}
    logger.info("Creating checkout session for booking %s", booking.id)
    return await client.v1.checkout.sessions.create_async(
        params={
            "mode": "payment",
            "client_reference_id": str(booking.id),
            "line_items": [
                {
                    "quantity": 1,
                    "price_data": {
                        "currency": settings.stripe_currency,
                        "unit_amount": _amount_in_minor_units(booking.total_price or Decimal("0")),
                        "product_data": {"name": f"Stay at {booking.listing.title}"},
                    },
                }
            ],
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
    )


def construct_webhook_event(payload: bytes, sig_header: str) -> stripe.Event:
    """Verify and construct a Stripe webhook event (synchronous)."""
    client = get_stripe_client()
    return client.construct_event(payload, sig_header, settings.stripe_webhook_secret)
