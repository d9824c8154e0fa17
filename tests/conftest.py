# tests/conftest.py
import os

# Must be set before app modules build their engine / settings
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["SEED_SAMPLE_DATA"] = "false"
os.environ["INIT_DB_ON_STARTUP"] = "false"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.database import Base
from app.dependencies import get_db
from app.main import app
from app.models.stock_item import StockItem  # noqa: F401  registers the table
from app.schemas.stock import StockItemCreate
from app.services.websockets.relay import relay

TEST_DATABASE_URL = "sqlite+aiosqlite://"


def make_test_engine():
    # One shared in-memory connection so every session sees the same tables
    return create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture(scope="function")
async def test_engine():
    """Create and configure the test database engine (function-scoped)."""
    engine = make_test_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_session(test_engine):
    """Provide a database session for tests"""
    async_session_local = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with async_session_local() as session:
        yield session


@pytest.fixture
def test_client():
    """
    TestClient over a fresh in-memory database.

    Tables are created lazily on the first request so that the engine is only
    ever used from the client's own event loop.
    """
    engine = make_test_engine()
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    state = {"ready": False}

    async def override_get_db():
        if not state["ready"]:
            async with engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            state["ready"] = True
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    relay.active_connections.clear()
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
    relay.active_connections.clear()


@pytest.fixture
def sample_item_data():
    """Provide sample stock item data for tests"""
    return {
        "reference": "GL-100",
        "name": "Latex gloves (box of 100)",
        "currentStock": 45,
        "pendingArrival": 10,
        "threshold": 50,
        "unit": "boxes",
        "location": "Cabinet A1",
        "supplier": "MediSupply",
    }


@pytest.fixture
def make_item():
    """Factory for StockItemCreate with sensible defaults"""
    def _make(reference="GL-100", name="Latex gloves", current_stock=10, pending_arrival=0, threshold=5, **extra):
        return StockItemCreate(
            reference=reference,
            name=name,
            current_stock=current_stock,
            pending_arrival=pending_arrival,
            threshold=threshold,
            **extra
        )
    return _make
