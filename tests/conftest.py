"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  ``StaticPool`` keeps every session of a test
on the same in-memory connection; each test gets a fresh engine.  Redis is
replaced by an ``AsyncMock``.
"""

import itertools
from datetime import timedelta
from decimal import Decimal
from typing import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from ridehail.domain.clock import utcnow
from ridehail.domain.entities import (
    AdminRegistration,
    DriverRegistration,
    RiderRegistration,
    TripProposal,
)
from ridehail.domain.enums import VehicleType
from ridehail.infrastructure import models  # noqa: F401  (registers tables)
from ridehail.infrastructure.database import Base
from ridehail.services.accounts import AccountService
from ridehail.services.trips import TripService

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"
PASSWORD = "secret123"


# ── Database ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


# ── Accounts ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def admin(db_session):
    """The platform admin (owner of the only admin wallet)."""
    return await AccountService(db_session).register(
        AdminRegistration(email="admin@ridehail.test", password=PASSWORD, name="Platform")
    )


@pytest.fixture
def make_driver(db_session):
    counter = itertools.count(1)

    async def _make(**overrides):
        n = next(counter)
        fields = {
            "email": f"driver{n}@ridehail.test",
            "password": PASSWORD,
            "name": f"Driver {n}",
            "license_number": f"LIC-{n:04d}",
            "vehicle_info": "Grey sedan",
        }
        fields.update(overrides)
        return await AccountService(db_session).register(DriverRegistration(**fields))

    return _make


@pytest.fixture
def make_rider(db_session):
    counter = itertools.count(1)

    async def _make(**overrides):
        n = next(counter)
        fields = {
            "email": f"rider{n}@ridehail.test",
            "password": PASSWORD,
            "name": f"Rider {n}",
        }
        fields.update(overrides)
        return await AccountService(db_session).register(RiderRegistration(**fields))

    return _make


@pytest_asyncio.fixture
async def driver(make_driver):
    return await make_driver()


@pytest_asyncio.fixture
async def rider(make_rider):
    return await make_rider()


# ── Trips ─────────────────────────────────────────────────────────────


@pytest.fixture
def make_trip(db_session):
    """Propose a trip for *driver*; keyword overrides go to ``TripProposal``."""

    async def _make(driver, **overrides):
        now = utcnow()
        fields = {
            "pickup_address": "Casa Port",
            "pickup_lat": 33.5970,
            "pickup_lng": -7.6160,
            "destination_address": "Mohammed V Airport",
            "destination_lat": 33.3675,
            "destination_lng": -7.5898,
            "proposed_price": Decimal("100.00"),
            "departure_time": now + timedelta(hours=2),
            "estimated_duration_minutes": 40,
            "vehicle_type": VehicleType.SEDAN,
            "expires_at": now + timedelta(hours=1),
        }
        fields.update(overrides)
        return await TripService(db_session).propose(driver, TripProposal(**fields))

    return _make


# ── API client ────────────────────────────────────────────────────────


@pytest.fixture
def fake_redis():
    redis = AsyncMock()
    redis.exists = AsyncMock(return_value=0)
    redis.set = AsyncMock(return_value=True)
    return redis


@pytest_asyncio.fixture
async def client(session_factory, fake_redis) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient over the ASGI app, wired to the test database."""
    from ridehail.api.app import create_app
    from ridehail.api.dependencies import get_db
    from ridehail.api.middleware import limiter
    from ridehail.infrastructure.redis_client import get_redis

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def _test_redis():
        return fake_redis

    limiter.enabled = False
    app = create_app()
    app.dependency_overrides[get_db] = _test_db
    app.dependency_overrides[get_redis] = _test_redis

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
