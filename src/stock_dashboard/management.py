"""Utility helpers for administrative tasks."""
from __future__ import annotations

import asyncio
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from .codes import STANDARD_PACKAGE_KG, STANDARD_PRODUCT_CODES, normalize_code, standard_label
from .database import Base, engine
from .models import Product

logger = logging.getLogger(__name__)


async def init_database(db_engine: AsyncEngine | None = None) -> None:
    """Create database tables for the application."""

    engine_to_use = db_engine or engine
    async with engine_to_use.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed_catalog(db_engine: AsyncEngine | None = None) -> list[str]:
    """Insert a standard product for every canonical code missing from the catalog.

    Returns the codes that were created.
    """

    session_factory = async_sessionmaker(bind=db_engine or engine, expire_on_commit=False)
    async with session_factory() as session:
        result = await session.execute(select(Product.code))
        present = {normalize_code(code) for code in result.scalars().all()}
        created: list[str] = []
        for code in STANDARD_PRODUCT_CODES:
            if code in present:
                continue
            session.add(
                Product(
                    code=code,
                    name=standard_label(code, STANDARD_PACKAGE_KG),
                    weight_kg=STANDARD_PACKAGE_KG,
                )
            )
            created.append(code)
        await session.commit()
    if created:
        logger.info("Seeded standard products", extra={"codes": created})
    return created


async def _bootstrap() -> None:
    await init_database()
    await seed_catalog()


def cli_init_database() -> None:
    """CLI wrapper executed from :mod:`python -m`."""

    asyncio.run(_bootstrap())


if __name__ == "__main__":
    cli_init_database()
