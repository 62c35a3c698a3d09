"""
Centralized Test Configuration.
"""

from datetime import datetime, timezone

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event, select, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool, Pool

from fieldops.app.main import app
from fieldops.app.db.session import get_db, Base
from fieldops.app.core.jwt import create_access_token
from fieldops.app.core.redis_client import get_redis
from fieldops.app.models.enums import UserRole, MissionStatus, MissionEventType, ServiceType, LocationType
from fieldops.app.models.mission import Mission
from fieldops.app.models.mission_event import MissionEvent
from fieldops.app.models.rate_card import RateCard
from fieldops.app.models.user import User
from fieldops.app.services.storage import LocalStorageProvider, get_storage

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}
        self._closed = False

    async def ping(self):
        return not self._closed

    async def get(self, key):
        if self._closed:
            return None
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        if self._closed:
            return False
        self.store[key] = value
        return True

    async def delete(self, key):
        if self._closed:
            return 0
        return 1 if self.store.pop(key, None) is not None else 0

    async def flushdb(self):
        if not self._closed:
            self.store = {}

    async def aclose(self):
        self._closed = True
        self.store = {}


@pytest.fixture
async def engine():
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
def redis_client():
    return MockRedis()


@pytest.fixture
def storage(tmp_path):
    return LocalStorageProvider(base_dir=str(tmp_path), public_base_url="http://test")


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, redis_client, storage):
    """Point the app at the per-test database, Redis stand-in and temp storage."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_get_redis():
        return redis_client

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_storage] = lambda: storage
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# Users

async def create_user(db, external_id, role, name="Test User", onboarding_complete=True):
    user = User(
        external_id=external_id,
        email=f"{external_id}@example.com",
        name=name,
        role=role,
        onboarding_complete=onboarding_complete
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def auth_headers(user_or_subject) -> dict:
    subject = getattr(user_or_subject, "external_id", user_or_subject)
    token = create_access_token(data={"sub": subject})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def admin(db_session):
    return await create_user(db_session, "user_admin", UserRole.ADMIN, name="Ada Admin")


@pytest.fixture
async def client_user(db_session):
    return await create_user(db_session, "user_client_a", UserRole.CLIENT, name="Acme Travel")


@pytest.fixture
async def other_client(db_session):
    return await create_user(db_session, "user_client_b", UserRole.CLIENT, name="Globex Tours")


@pytest.fixture
async def agent(db_session):
    return await create_user(db_session, "user_agent_a", UserRole.AGENT, name="Alex Agent")


@pytest.fixture
async def other_agent(db_session):
    return await create_user(db_session, "user_agent_b", UserRole.AGENT, name="Sam Agent")


# Missions and rate cards

async def create_mission(db, client, agent=None, status=MissionStatus.SCHEDULED,
                         location_type=LocationType.AIRPORT, **fields):
    values = {
        "passenger_name": "Jane Traveller",
        "pickup_location": "CDG Terminal 2E",
        "scheduled_at": datetime(2026, 6, 6, 23, 0, tzinfo=timezone.utc),
        "service_type": ServiceType.MEET_AND_GREET,
    }
    values.update(fields)
    mission = Mission(
        client_id=client.id,
        agent_id=agent.id if agent else None,
        status=status,
        location_type=location_type,
        attachments=[],
        **values
    )
    db.add(mission)
    await db.commit()
    await db.refresh(mission)
    return mission


async def create_rate_card(db, **fields):
    values = {
        "name": "Airport Meet & Greet",
        "service_type": ServiceType.MEET_AND_GREET,
        "location_type": LocationType.AIRPORT,
        "base_price": 5500,
        "is_active": True,
    }
    values.update(fields)
    rate_card = RateCard(**values)
    db.add(rate_card)
    await db.commit()
    await db.refresh(rate_card)
    return rate_card


async def count_status_changes(db, mission_id, new_status):
    result = await db.execute(
        select(func.count(MissionEvent.id)).where(
            MissionEvent.mission_id == mission_id,
            MissionEvent.event_type == MissionEventType.STATUS_CHANGE,
            MissionEvent.new_status == MissionStatus(new_status).value
        )
    )
    return result.scalar()
