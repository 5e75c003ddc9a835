from __future__ import annotations

from collections.abc import AsyncIterator
from datetime import date

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from stock_dashboard.api import create_app
from stock_dashboard.codes import CodeResolver
from stock_dashboard.config import Settings
from stock_dashboard.database import Base, create_engine, get_session
from stock_dashboard.domain import ClientRecord, ProductRecord

TODAY = date(2024, 3, 15)


@pytest.fixture()
def products() -> list[ProductRecord]:
    return [
        ProductRecord(id="fr-std", code="FR", name="Papa a la francesa 2.5 kg", weight_kg=2.5),
        ProductRecord(id="ca-std", code="CA", name="Papas en cascos estándar", weight_kg=2.5),
        ProductRecord(id="fr-old", code=" fr ", name="Papa francesa (antigua)", weight_kg=1.0),
        ProductRecord(id="mx", code="MX", name="Mezcla especial", weight_kg=5.0),
        ProductRecord(id="blank", code=None, name="Sin código"),
    ]


@pytest.fixture()
def resolver(products: list[ProductRecord]) -> CodeResolver:
    return CodeResolver(products)


@pytest.fixture()
def clients() -> list[ClientRecord]:
    return [
        ClientRecord(id="sol", name="Restaurante Sol"),
        ClientRecord(id="luna", name="Hotel Luna"),
    ]


@pytest.fixture()
def test_settings(tmp_path) -> Settings:
    db_path = tmp_path / "test.db"
    return Settings(
        database_url=f"sqlite+aiosqlite:///{db_path}",
        environment="test",
        app_name="Test Stock Dashboard",
        log_json=False,
        log_level="WARNING",
    )


@pytest.fixture()
async def app(test_settings: Settings) -> AsyncIterator[FastAPI]:
    engine = create_engine(test_settings)
    async_session = async_sessionmaker(bind=engine, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async def override_get_session() -> AsyncIterator[AsyncSession]:
        async with async_session() as session:
            yield session

    app = create_app(test_settings, clock=lambda: TODAY)
    app.dependency_overrides[get_session] = override_get_session

    yield app

    await engine.dispose()


@pytest.fixture()
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
