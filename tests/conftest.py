import os

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["ENVIRONMENT"] = "test"

from datetime import datetime

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base, get_db
from app.main import app
from app.models.user import User, UserRole
from app.stores.rides import RideStore

DEPARTURE = datetime(2030, 5, 17, 8, 30)


def ride_columns(**overrides):
    data = {
        "vehicle_model": "Corolla",
        "vehicle_color": "blue",
        "vehicle_license_plate": "KA-01-1234",
        "from_city": "Bangalore",
        "from_address": "MG Road",
        "from_latitude": 12.975,
        "from_longitude": 77.606,
        "to_city": "Mysore",
        "to_address": "Palace Road",
        "to_latitude": None,
        "to_longitude": None,
        "departure_time": DEPARTURE,
        "estimated_duration": 180,
        "available_seats": 3,
        "price_per_seat": 100.0,
        "rules": ["No smoking"],
        "notes": "Leaving on time",
    }
    data.update(overrides)
    return data


def ride_payload(**overrides):
    data = {
        "vehicle": {"model": "Corolla", "color": "blue", "license_plate": "KA-01-1234"},
        "origin": {"city": "Bangalore", "address": "MG Road", "latitude": 12.975, "longitude": 77.606},
        "destination": {"city": "Mysore", "address": "Palace Road"},
        "departure_time": DEPARTURE.isoformat(),
        "estimated_duration": 180,
        "available_seats": 3,
        "price_per_seat": 100,
        "rules": ["No smoking"],
    }
    data.update(overrides)
    return data


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
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


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def reload_ride(session_factory):
    """Read a ride back through a fresh session."""
    async def _reload(ride_id):
        async with session_factory() as session:
            return await RideStore(session).get(ride_id)
    return _reload


async def _add_user(db, name, role):
    user = User(
        name=name,
        email=f"{name.lower()}@example.com",
        role=role,
        rating=0.0,
        total_rides=0,
        total_earnings=0.0,
    )
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
async def driver(db):
    return await _add_user(db, "Dana", UserRole.DRIVER)


@pytest.fixture
async def passenger(db):
    return await _add_user(db, "Priya", UserRole.PASSENGER)


@pytest.fixture
async def second_passenger(db):
    return await _add_user(db, "Quinn", UserRole.PASSENGER)


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def as_user(user_id):
    return {"X-User-Id": str(user_id)}