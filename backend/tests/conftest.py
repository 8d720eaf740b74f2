"""
Pytest fixtures for test database, services, client, and authentication.

Each test gets its own SQLite database file (via aiosqlite) with the full
schema, including the confirmed-seat partial unique index. NullPool gives
every session its own connection, as separate request handlers would have.
"""

from datetime import date, timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from seamless_ride.core.config import Settings
from seamless_ride.core.security import create_session_token, hash_password
from seamless_ride.db.base import Base
from seamless_ride.db.session import create_session_factory
from seamless_ride.main import create_app
from seamless_ride.models.trip import Trip
from seamless_ride.models.user import User
from seamless_ride.services.container import Services, build_services
from seamless_ride.services.interfaces import LocalTripClaim


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        ENVIRONMENT="test",
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        REDIS_ENABLED=False,
        SEED_TRIPS=False,
        SECRET_KEY="test-secret-key-with-enough-length-for-hs256",
        CLAIM_STRATEGY="local",
    )


@pytest_asyncio.fixture
async def db_engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    """Create tables, yield engine, then drop tables for isolation."""
    engine = create_async_engine(settings.DATABASE_URL, poolclass=NullPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def services(settings: Settings, session_factory) -> Services:
    return build_services(settings, session_factory, redis_client=None, claim=LocalTripClaim())


@pytest_asyncio.fixture
async def client(settings: Settings, services: Services) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against an app wired to the test services (lifespan is not run)."""
    app = create_app(settings)
    app.state.services = services

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _add_user(db_session: AsyncSession, matric_number: str, full_name: str) -> User:
    user = User(
        full_name=full_name,
        matric_number=matric_number,
        hashed_password=hash_password("testpassword123"),
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "CSC/2020/001", "Ada Obi")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession) -> User:
    return await _add_user(db_session, "CSC/2020/002", "Tunde Bello")


@pytest.fixture
def auth_headers(settings: Settings, test_user: User) -> dict:
    token, _ = create_session_token(settings, test_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(settings: Settings, other_user: User) -> dict:
    token, _ = create_session_token(settings, other_user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def travel_date() -> date:
    return date.today() + timedelta(days=3)


@pytest_asyncio.fixture
async def test_trip(db_session: AsyncSession, travel_date: date) -> Trip:
    trip = Trip(origin="Malete Campus", destination="Lagos", departure_date=travel_date, price=15000)
    db_session.add(trip)
    await db_session.commit()
    await db_session.refresh(trip)
    return trip


@pytest_asyncio.fixture
async def other_trip(db_session: AsyncSession, travel_date: date) -> Trip:
    trip = Trip(origin="Lagos", destination="Abuja", departure_date=travel_date, price=18000)
    db_session.add(trip)
    await db_session.commit()
    await db_session.refresh(trip)
    return trip
