"""Pytest configuration and fixtures."""

import httpx
import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from estate_crm.domain.events import EventBus
from estate_crm.persistence.database import Base, get_db
from estate_crm.persistence.models import *  # noqa: F401, F403


@pytest.fixture
async def db_session():
    """Create a test database session."""
    # In-memory SQLite shared by every connection of the engine
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    # Enforce foreign keys the way Postgres does
    @event.listens_for(engine.sync_engine, "connect")
    def enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session() as session:
        yield session

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def event_bus():
    """Isolated event bus that records every published event."""
    bus = EventBus()
    bus.published = []

    def record(topic, payload):
        bus.published.append((topic, payload))

    bus.subscribe("*", record)
    return bus


@pytest.fixture
async def client(db_session):
    """Create a test HTTP client against the FastAPI app."""
    from estate_crm.main import app

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()
