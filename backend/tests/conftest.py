"""Shared test configuration and fixtures.

Uses a transactional rollback strategy per test for full isolation:
- Each test gets a fresh schema and a connection-level transaction that
  rolls back after the test.
- ``TEST_DATABASE_URL`` selects the database; it defaults to in-memory
  SQLite (aiosqlite). Point it at a PostgreSQL database to exercise row locks.
- The clock is frozen and injected through ``app.dependency_overrides``.
"""

import os

os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("SWEEP_ENABLED", "false")

import uuid
from collections.abc import AsyncGenerator
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from stayfinder.auth.jwt import create_token_pair
from stayfinder.auth.passwords import hash_password
from stayfinder.clock import get_clock
from stayfinder.database import Base, get_db, get_session_factory
from stayfinder.main import app
from stayfinder.models.booking import Booking
from stayfinder.models.listing import Listing
from stayfinder.models.user import User

TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# Fixed "now" shared by every test: 2025-05-20 12:00 UTC
NOW = datetime(2025, 5, 20, 12, 0)


def _make_engine():
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_async_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_async_engine(TEST_DATABASE_URL, pool_pre_ping=True)


class FrozenClock:
    """Injectable clock that only moves when told to."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)

    def set(self, now: datetime) -> None:
        self.now = now


# ---------------------------------------------------------------------------
# Database: fresh schema per test, transactional rollback for isolation
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def test_engine():
    """Create an engine with all tables; drop them afterwards."""
    engine = _make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_connection(test_engine) -> AsyncGenerator[AsyncConnection, None]:
    """A connection inside a transaction that always rolls back."""
    async with test_engine.connect() as connection:
        transaction = await connection.begin()
        try:
            yield connection
        finally:
            if transaction.is_active:
                await transaction.rollback()


@pytest_asyncio.fixture
async def db_session(db_connection: AsyncConnection) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async session joined to the rolled-back test transaction."""
    session = AsyncSession(bind=db_connection, expire_on_commit=False)
    try:
        yield session
    finally:
        await session.close()


@pytest.fixture
def session_factory(db_connection: AsyncConnection) -> async_sessionmaker[AsyncSession]:
    """Session factory for code that opens its own sessions (sweep, webhooks)."""
    return async_sessionmaker(bind=db_connection, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(NOW)


@pytest_asyncio.fixture
async def client(
    db_session: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    clock: FrozenClock,
) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient wired to the test DB session and clock."""

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_clock] = lambda: clock

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac

    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Users and auth headers
# ---------------------------------------------------------------------------


async def create_user(db_session: AsyncSession, role: str = "user", name: str = "Test User", **kwargs) -> User:
    """Insert a user directly in the DB."""
    unique = uuid.uuid4().hex[:8]
    user = User(
        email=kwargs.pop("email", f"{role}-{unique}@test.com"),
        hashed_password=hash_password(kwargs.pop("password", "testpass123")),
        name=name,
        role=role,
        is_active=kwargs.pop("is_active", True),
    )
    db_session.add(user)
    await db_session.flush()
    await db_session.refresh(user)
    return user


def headers_for(user: User) -> dict[str, str]:
    tokens = create_token_pair(str(user.id), user.role)
    return {"Authorization": f"Bearer {tokens['access_token']}"}


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    """The guest making bookings."""
    return await create_user(db_session, name="Guest User")


@pytest_asyncio.fixture
async def auth_headers(test_user: User) -> dict[str, str]:
    return headers_for(test_user)


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, name="Other Guest")


@pytest_asyncio.fixture
async def other_auth_headers(other_user: User) -> dict[str, str]:
    return headers_for(other_user)


@pytest_asyncio.fixture
async def host_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, name="Host User")


@pytest_asyncio.fixture
async def host_headers(host_user: User) -> dict[str, str]:
    return headers_for(host_user)


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await create_user(db_session, role="admin", name="Admin User")


@pytest_asyncio.fixture
async def admin_headers(admin_user: User) -> dict[str, str]:
    return headers_for(admin_user)


# ---------------------------------------------------------------------------
# Listings and bookings
# ---------------------------------------------------------------------------


async def create_listing(db_session: AsyncSession, host: User, max_reservations: int = 1, **kwargs) -> Listing:
    """Insert a listing directly in the DB."""
    listing = Listing(
        host_id=host.id,
        title=kwargs.pop("title", "Beach House"),
        description=kwargs.pop("description", "Steps from the sand."),
        price_per_night=kwargs.pop("price_per_night", Decimal("120.00")),
        location=kwargs.pop("location", "Lisbon, Portugal"),
        image_urls=kwargs.pop("image_urls", ["https://img.test/1.jpg"]),
        max_reservations=max_reservations,
    )
    db_session.add(listing)
    await db_session.flush()
    await db_session.refresh(listing)
    return listing


async def create_booking(
    db_session: AsyncSession,
    user: User,
    listing: Listing,
    *,
    start_date: date = date(2025, 6, 1),
    end_date: date = date(2025, 6, 5),
    status: str = "pending",
    is_paid: bool = False,
    created_at: datetime = NOW,
    check_in_time: str = "15:00",
    check_out_time: str = "11:00",
) -> Booking:
    """Insert a booking directly in the DB, bypassing capacity checks."""
    booking = Booking(
        user_id=user.id,
        listing_id=listing.id,
        start_date=start_date,
        end_date=end_date,
        check_in_time=check_in_time,
        check_out_time=check_out_time,
        total_price=Decimal("480.00"),
        status=status,
        is_paid=is_paid,
        created_at=created_at,
    )
    db_session.add(booking)
    await db_session.flush()
    await db_session.refresh(booking)
    return booking


@pytest_asyncio.fixture
async def test_listing(db_session: AsyncSession, host_user: User) -> Listing:
    """A single-unit listing hosted by ``host_user``."""
    return await create_listing(db_session, host_user, max_reservations=1)


# ---------------------------------------------------------------------------
# Stripe events
# ---------------------------------------------------------------------------


class StripeObj(SimpleNamespace):
    """SimpleNamespace with bracket notation support (like Stripe API objects)."""

    def __getitem__(self, key: str):
        return getattr(self, key)


def make_stripe_event(event_type: str, data_object: dict) -> StripeObj:
    """Create a fake Stripe Event-like object."""
    return StripeObj(
        type=event_type,
        id=f"evt_test_{uuid.uuid4().hex[:8]}",
        data=StripeObj(object=StripeObj(**data_object)),
    )
