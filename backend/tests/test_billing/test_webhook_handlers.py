"""Tests for Stripe webhook handler functions with mocked Stripe events."""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from conftest import StripeObj, create_booking, make_stripe_event
from stayfinder.billing.webhooks import (
    _get_booking_id,
    handle_checkout_session_completed,
    handle_payment_intent_succeeded,
)
from stayfinder.models.listing import Listing
from stayfinder.models.user import User


class TestGetBookingId:
    def test_reads_metadata(self):
        booking_id = uuid.uuid4()
        obj = StripeObj(id="cs_1", metadata={"booking_id": str(booking_id)})
        assert _get_booking_id(obj) == booking_id

    def test_missing_metadata(self):
        assert _get_booking_id(StripeObj(id="cs_1", metadata={})) is None
        assert _get_booking_id(StripeObj(id="cs_1", metadata=None)) is None
        assert _get_booking_id(StripeObj(id="cs_1")) is None

    def test_malformed_id(self):
        assert _get_booking_id(StripeObj(id="cs_1", metadata={"booking_id": "nope"})) is None


class TestCheckoutSessionCompleted:
    async def test_paid_session_confirms_booking(
        self, db_session: AsyncSession, test_user: User, test_listing: Listing
    ):
        booking = await create_booking(db_session, test_user, test_listing)
        event = make_stripe_event(
            "checkout.session.completed",
            {"id": "cs_test_1", "payment_status": "paid", "metadata": {"booking_id": str(booking.id)}},
        )

        await handle_checkout_session_completed(db_session, event)

        await db_session.refresh(booking)
        assert booking.status == "confirmed"
        assert booking.is_paid is True

    async def test_unpaid_session_skipped(self, db_session: AsyncSession, test_user: User, test_listing: Listing):
        booking = await create_booking(db_session, test_user, test_listing)
        event = make_stripe_event(
            "checkout.session.completed",
            {"id": "cs_test_2", "payment_status": "unpaid", "metadata": {"booking_id": str(booking.id)}},
        )

        await handle_checkout_session_completed(db_session, event)

        await db_session.refresh(booking)
        assert booking.status == "pending"
        assert booking.is_paid is False

    async def test_session_without_booking_skipped(self, db_session: AsyncSession):
        event = make_stripe_event("checkout.session.completed", {"id": "cs_test_3", "payment_status": "paid", "metadata": {}})
        # Must not raise
        await handle_checkout_session_completed(db_session, event)

    async def test_unknown_booking_logged_not_raised(self, db_session: AsyncSession, caplog):
        event = make_stripe_event(
            "checkout.session.completed",
            {"id": "cs_test_4", "payment_status": "paid", "metadata": {"booking_id": str(uuid.uuid4())}},
        )
        await handle_checkout_session_completed(db_session, event)
        assert "references unknown booking" in caplog.text


class TestPaymentIntentSucceeded:
    async def test_confirms_booking(self, db_session: AsyncSession, test_user: User, test_listing: Listing):
        booking = await create_booking(db_session, test_user, test_listing)
        event = make_stripe_event(
            "payment_intent.succeeded",
            {"id": "pi_test_1", "metadata": {"booking_id": str(booking.id)}},
        )

        await handle_payment_intent_succeeded(db_session, event)

        await db_session.refresh(booking)
        assert booking.status == "confirmed"
        assert booking.is_paid is True

    async def test_already_confirmed_is_noop(self, db_session: AsyncSession, test_user: User, test_listing: Listing):
        booking = await create_booking(db_session, test_user, test_listing, status="confirmed", is_paid=True)
        event = make_stripe_event(
            "payment_intent.succeeded",
            {"id": "pi_test_2", "metadata": {"booking_id": str(booking.id)}},
        )

        await handle_payment_intent_succeeded(db_session, event)

        await db_session.refresh(booking)
        assert booking.status == "confirmed"
