import os

os.environ.setdefault("LOG_TO_FILE", "false")
os.environ.setdefault("SEED_ON_STARTUP", "false")

import pytest
from typing import AsyncGenerator
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from main import app
from backoffice.core.database import get_async_session
from backoffice.models import *  # Import all models
from backoffice.models.base import Base
from backoffice.db.seeds.initial_data import create_initial_data

# Test database URL
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def test_engine():
    """Fresh in-memory database for every test"""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_maker(test_engine):
    maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    # Create initial data
    async with maker() as session:
        await create_initial_data(session)
    return maker


@pytest.fixture
async def db_session(session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker) -> AsyncGenerator[AsyncClient, None]:
    """Create test client"""
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers() -> dict:
    return {"X-User-Id": "7"}


@pytest.fixture
async def catalog(client: AsyncClient) -> dict:
    """Ids of the seeded units and warehouses plus a supplier and two products"""
    units = (await client.get("/api/v1/units/")).json()["data"]
    unit_ids = {u["short_name"]: u["id"] for u in units}

    warehouses = (await client.get("/api/v1/warehouses/")).json()["data"]
    warehouse_ids = {w["type"]: w["id"] for w in warehouses}

    supplier = await client.post("/api/v1/suppliers/", json={"name": "Fresh Farm", "inn": "7701234567"})
    flour = await client.post(
        "/api/v1/products/", json={"name": "Flour", "article": "FL-001", "unit_id": unit_ids["kg"]}
    )
    milk = await client.post(
        "/api/v1/products/", json={"name": "Milk", "article": "MK-001", "unit_id": unit_ids["l"]}
    )

    return {
        "units": unit_ids,
        "main": warehouse_ids["MAIN"],
        "kitchen": warehouse_ids["KITCHEN"],
        "supplier": supplier.json()["data"]["id"],
        "flour": flour.json()["data"]["id"],
        "milk": milk.json()["data"]["id"],
    }
