"""In-memory records the reporting core works on.

The persistence layer converts ORM rows into these frozen dataclasses so the
aggregation code can run over any snapshot, including hand-built ones.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any


@dataclass(frozen=True)
class ProductRecord:
    """A catalog entry. ``code`` is free text and may be blank."""

    id: str
    name: str
    code: str | None = None
    weight_kg: float | None = None

    @classmethod
    def from_model(cls, model: Any) -> "ProductRecord":
        return cls(id=model.id, name=model.name, code=model.code, weight_kg=model.weight_kg)


@dataclass(frozen=True)
class ClientRecord:
    id: str
    name: str

    @classmethod
    def from_model(cls, model: Any) -> "ClientRecord":
        return cls(id=model.id, name=model.name)


@dataclass(frozen=True)
class ProductionRecord:
    """A day's production of one product.

    ``production_date`` is usually a :class:`date`, but rows imported from
    text sources may carry an ISO string, possibly a malformed one.
    """

    production_date: date | str
    product_id: str
    packages: int
    id: int | None = None
    notes: str | None = None

    @property
    def event_date(self) -> date | str:
        return self.production_date

    @classmethod
    def from_model(cls, model: Any) -> "ProductionRecord":
        return cls(
            id=model.id,
            production_date=model.production_date,
            product_id=model.product_id,
            packages=model.packages,
            notes=model.notes,
        )


@dataclass(frozen=True)
class ShipmentRecord:
    shipment_date: date | str
    product_id: str
    client_id: str
    packages: int
    id: int | None = None
    notes: str | None = None

    @property
    def event_date(self) -> date | str:
        return self.shipment_date

    @classmethod
    def from_model(cls, model: Any) -> "ShipmentRecord":
        return cls(
            id=model.id,
            shipment_date=model.shipment_date,
            product_id=model.product_id,
            client_id=model.client_id,
            packages=model.packages,
            notes=model.notes,
        )


@dataclass(frozen=True)
class InventorySummaryRow:
    """One row of the per-product inventory summary view."""

    product_id: str
    name: str
    code: str | None = None
    total_produced_packages: int | None = None
    total_shipped_packages: int | None = None
    stock_packages: int | None = None
    weight_kg: float | None = None


@dataclass(frozen=True)
class DashboardSnapshot:
    """Everything one refresh reads from the store."""

    products: tuple[ProductRecord, ...] = ()
    clients: tuple[ClientRecord, ...] = ()
    production: tuple[ProductionRecord, ...] = ()
    shipments: tuple[ShipmentRecord, ...] = ()
    inventory: tuple[InventorySummaryRow, ...] = ()

    def counts(self) -> dict[str, int]:
        return {
            "products": len(self.products),
            "clients": len(self.clients),
            "production": len(self.production),
            "shipments": len(self.shipments),
            "inventory": len(self.inventory),
        }


__all__ = [
    "ClientRecord",
    "DashboardSnapshot",
    "InventorySummaryRow",
    "ProductRecord",
    "ProductionRecord",
    "ShipmentRecord",
]
