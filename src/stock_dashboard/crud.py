"""Business logic for interacting with the database."""
from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date

from sqlalchemy import case, func, select
from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from . import schemas
from .domain import (
    ClientRecord,
    DashboardSnapshot,
    InventorySummaryRow,
    ProductionRecord,
    ProductRecord,
    ShipmentRecord,
)
from .history import shift_months
from .models import Client, Product, ProductionEntry, ShipmentEntry

logger = logging.getLogger(__name__)


class SnapshotLoadError(RuntimeError):
    """Raised when any of the dashboard reads fails; carries a user-facing message."""


async def create_product(session: AsyncSession, data: schemas.ProductCreate) -> Product:
    product = Product(**data.model_dump())
    session.add(product)
    await session.flush()
    return product


async def list_products(session: AsyncSession) -> Sequence[Product]:
    stmt = select(Product).order_by(Product.name)
    result = await session.execute(stmt)
    return result.scalars().all()


async def get_product(session: AsyncSession, product_id: str) -> Product:
    product = await session.get(Product, product_id)
    if product is None:
        raise NoResultFound(f"Product {product_id} not found")
    return product


async def create_client(session: AsyncSession, data: schemas.ClientCreate) -> Client:
    client = Client(**data.model_dump())
    session.add(client)
    await session.flush()
    return client


async def list_clients(session: AsyncSession) -> Sequence[Client]:
    stmt = select(Client).order_by(Client.name)
    result = await session.execute(stmt)
    return result.scalars().all()


async def _ensure_references(
    session: AsyncSession, *, product_id: str | None = None, client_id: str | None = None
) -> None:
    if product_id is not None and await session.get(Product, product_id) is None:
        raise ValueError(f"Unknown product: {product_id}")
    if client_id is not None and await session.get(Client, client_id) is None:
        raise ValueError(f"Unknown client: {client_id}")


async def create_production(
    session: AsyncSession, data: schemas.ProductionCreate
) -> ProductionEntry:
    await _ensure_references(session, product_id=data.product_id)
    entry = ProductionEntry(**data.model_dump())
    session.add(entry)
    await session.flush()
    logger.info("Production entry created", extra={"entry_id": entry.id})
    return entry


async def get_production(session: AsyncSession, entry_id: int) -> ProductionEntry:
    entry = await session.get(ProductionEntry, entry_id)
    if entry is None:
        raise NoResultFound(f"Production entry {entry_id} not found")
    return entry


async def list_production(
    session: AsyncSession, *, since: date | None = None
) -> Sequence[ProductionEntry]:
    stmt = select(ProductionEntry)
    if since is not None:
        stmt = stmt.where(ProductionEntry.production_date >= since)
    stmt = stmt.order_by(ProductionEntry.production_date, ProductionEntry.id)
    result = await session.execute(stmt)
    return result.scalars().all()


async def update_production(
    session: AsyncSession, entry: ProductionEntry, data: schemas.ProductionUpdate
) -> ProductionEntry:
    changes = data.model_dump(exclude_unset=True)
    await _ensure_references(session, product_id=changes.get("product_id"))
    for field, value in changes.items():
        setattr(entry, field, value)
    await session.flush()
    logger.info("Production entry updated", extra={"entry_id": entry.id})
    return entry


async def delete_production(session: AsyncSession, entry: ProductionEntry) -> None:
    entry_id = entry.id
    await session.delete(entry)
    await session.flush()
    logger.info("Production entry deleted", extra={"entry_id": entry_id})


async def create_shipment(session: AsyncSession, data: schemas.ShipmentCreate) -> ShipmentEntry:
    await _ensure_references(session, product_id=data.product_id, client_id=data.client_id)
    entry = ShipmentEntry(**data.model_dump())
    session.add(entry)
    await session.flush()
    logger.info("Shipment entry created", extra={"entry_id": entry.id})
    return entry


async def get_shipment(session: AsyncSession, entry_id: int) -> ShipmentEntry:
    entry = await session.get(ShipmentEntry, entry_id)
    if entry is None:
        raise NoResultFound(f"Shipment entry {entry_id} not found")
    return entry


async def list_shipments(
    session: AsyncSession, *, since: date | None = None
) -> Sequence[ShipmentEntry]:
    stmt = select(ShipmentEntry)
    if since is not None:
        stmt = stmt.where(ShipmentEntry.shipment_date >= since)
    stmt = stmt.order_by(ShipmentEntry.shipment_date, ShipmentEntry.id)
    result = await session.execute(stmt)
    return result.scalars().all()


async def update_shipment(
    session: AsyncSession, entry: ShipmentEntry, data: schemas.ShipmentUpdate
) -> ShipmentEntry:
    changes = data.model_dump(exclude_unset=True)
    await _ensure_references(
        session, product_id=changes.get("product_id"), client_id=changes.get("client_id")
    )
    for field, value in changes.items():
        setattr(entry, field, value)
    await session.flush()
    logger.info("Shipment entry updated", extra={"entry_id": entry.id})
    return entry


async def delete_shipment(session: AsyncSession, entry: ShipmentEntry) -> None:
    entry_id = entry.id
    await session.delete(entry)
    await session.flush()
    logger.info("Shipment entry deleted", extra={"entry_id": entry_id})


async def inventory_summary(session: AsyncSession) -> list[InventorySummaryRow]:
    """Per-product produced, shipped and stock totals over all recorded entries."""

    produced = (
        select(
            ProductionEntry.product_id.label("product_id"),
            func.sum(ProductionEntry.packages).label("packages"),
        )
        .group_by(ProductionEntry.product_id)
        .subquery()
    )
    shipped = (
        select(
            ShipmentEntry.product_id.label("product_id"),
            func.sum(ShipmentEntry.packages).label("packages"),
        )
        .group_by(ShipmentEntry.product_id)
        .subquery()
    )
    produced_total = func.coalesce(produced.c.packages, 0)
    shipped_total = func.coalesce(shipped.c.packages, 0)
    net = produced_total - shipped_total

    stmt = (
        select(
            Product.id.label("product_id"),
            Product.code,
            Product.name,
            produced_total.label("total_produced_packages"),
            shipped_total.label("total_shipped_packages"),
            case((net < 0, 0), else_=net).label("stock_packages"),
            Product.weight_kg,
        )
        .outerjoin(produced, produced.c.product_id == Product.id)
        .outerjoin(shipped, shipped.c.product_id == Product.id)
        .order_by(Product.name)
    )
    result = await session.execute(stmt)
    return [
        InventorySummaryRow(
            product_id=row.product_id,
            code=row.code,
            name=row.name,
            total_produced_packages=row.total_produced_packages,
            total_shipped_packages=row.total_shipped_packages,
            stock_packages=row.stock_packages,
            weight_kg=row.weight_kg,
        )
        for row in result.all()
    ]


async def list_production_for_export(session: AsyncSession) -> list[ProductionRecord]:
    """Every production entry, oldest first. Exports ignore the snapshot window."""

    return [ProductionRecord.from_model(entry) for entry in await list_production(session)]


async def list_shipments_for_export(session: AsyncSession) -> list[ShipmentRecord]:
    return [ShipmentRecord.from_model(entry) for entry in await list_shipments(session)]


async def load_snapshot(
    session: AsyncSession, today: date, *, window_months: int = 12
) -> DashboardSnapshot:
    """Read everything the dashboard needs.

    Production and shipments are limited to the trailing ``window_months``.
    Either every read succeeds or :class:`SnapshotLoadError` is raised.
    """

    since = shift_months(today, -window_months)
    try:
        products = await list_products(session)
        clients = await list_clients(session)
        production = await list_production(session, since=since)
        shipments = await list_shipments(session, since=since)
        inventory = await inventory_summary(session)
    except SQLAlchemyError as exc:
        logger.error("Snapshot load failed", exc_info=True)
        raise SnapshotLoadError(f"Could not load dashboard data: {exc}") from exc

    return DashboardSnapshot(
        products=tuple(ProductRecord.from_model(product) for product in products),
        clients=tuple(ClientRecord.from_model(client) for client in clients),
        production=tuple(ProductionRecord.from_model(entry) for entry in production),
        shipments=tuple(ShipmentRecord.from_model(entry) for entry in shipments),
        inventory=tuple(inventory),
    )


__all__ = [name for name in globals() if not name.startswith("_")]
