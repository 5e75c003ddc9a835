"""Pydantic schemas used by the API."""
from __future__ import annotations

from datetime import date, datetime
from typing import ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ORMModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class ProductBase(BaseModel):
    name: str = Field(..., min_length=1)
    code: str | None = Field(None, description="Catalog code; FR and CA are reported on.")
    weight_kg: float | None = Field(None, gt=0, description="Unit weight of one package.")


class ProductCreate(ProductBase):
    pass


class ProductOut(ProductBase, ORMModel):
    id: str


class StandardProductOptionOut(ORMModel):
    id: str
    code: str
    label: str
    weight_kg: float


class ClientCreate(BaseModel):
    name: str = Field(..., min_length=1)


class ClientOut(ORMModel):
    id: str
    name: str
    created_at: datetime | None = None


class EntryUpdate(BaseModel):
    """Partial update: omitted fields are left alone, only ``notes`` may be cleared."""

    nullable_fields: ClassVar[frozenset[str]] = frozenset({"notes"})

    @model_validator(mode="after")
    def _reject_cleared_required_fields(self) -> "EntryUpdate":
        cleared = sorted(
            name
            for name in self.model_fields_set
            if name not in self.nullable_fields and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"Fields cannot be null: {', '.join(cleared)}")
        return self


class ProductionCreate(BaseModel):
    production_date: date
    product_id: str
    packages: int = Field(..., ge=0)
    notes: str | None = None


class ProductionUpdate(EntryUpdate):
    production_date: date | None = None
    product_id: str | None = None
    packages: int | None = Field(default=None, ge=0)
    notes: str | None = None


class ProductionOut(ORMModel):
    id: int
    production_date: date
    product_id: str
    packages: int
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class ShipmentCreate(BaseModel):
    shipment_date: date
    product_id: str
    client_id: str
    packages: int = Field(..., ge=0)
    notes: str | None = None


class ShipmentUpdate(EntryUpdate):
    shipment_date: date | None = None
    product_id: str | None = None
    client_id: str | None = None
    packages: int | None = Field(default=None, ge=0)
    notes: str | None = None


class ShipmentOut(ORMModel):
    id: int
    shipment_date: date
    product_id: str
    client_id: str
    packages: int
    notes: str | None = None
    created_at: datetime
    updated_at: datetime


class InventorySummaryOut(ORMModel):
    product_id: str
    code: str | None
    name: str
    total_produced_packages: int | None
    total_shipped_packages: int | None
    stock_packages: int | None
    weight_kg: float | None


class GroupedInventoryOut(ORMModel):
    code: str
    name: str
    total_produced_packages: int
    total_shipped_packages: int
    stock_packages: int
    weight_kg: float
    stock_weight_kg: float


class PackageTotalsOut(ORMModel):
    FR: int
    CA: int
    total: int


class PeriodComparisonOut(ORMModel):
    current: PackageTotalsOut
    previous: PackageTotalsOut
    trend: float | None = Field(None, description="Percent change; null when there is no baseline.")


class DailyPackagesOut(ORMModel):
    day: date
    packages: int


class ClientShipmentTotalOut(ORMModel):
    client_id: str
    name: str
    packages: int


class StockPointOut(ORMModel):
    day: date
    stock: int


class SummaryReportOut(ORMModel):
    today: date
    inventory: list[GroupedInventoryOut]
    stock: PackageTotalsOut
    stock_weight_kg: float
    production_today: PackageTotalsOut
    shipments_today: PackageTotalsOut
    production_month: PeriodComparisonOut
    shipments_month: PeriodComparisonOut
    production_month_kg: float
    shipments_month_kg: float
    production_by_day: list[DailyPackagesOut]
    top_clients: list[ClientShipmentTotalOut]
    stock_history: list[StockPointOut]


class PeriodReportOut(ORMModel):
    label: str
    start: date | None
    end: date | None
    custom_range: bool
    production: PackageTotalsOut
    shipments: PackageTotalsOut
    inventory: list[GroupedInventoryOut]
    production_by_day: list[DailyPackagesOut]
    top_clients: list[ClientShipmentTotalOut]
    stock_history: list[StockPointOut]


class CalendarDayOut(ORMModel):
    day: date
    production: PackageTotalsOut
    shipments: PackageTotalsOut


class DashboardStateOut(BaseModel):
    last_updated: datetime | None
    error: str | None
    summary: SummaryReportOut | None


class HealthStatus(BaseModel):
    status: Literal["ok"] = "ok"
    environment: str


__all__ = [
    "CalendarDayOut",
    "ClientCreate",
    "ClientOut",
    "DashboardStateOut",
    "GroupedInventoryOut",
    "HealthStatus",
    "InventorySummaryOut",
    "PeriodReportOut",
    "ProductCreate",
    "ProductOut",
    "ProductionCreate",
    "ProductionOut",
    "ProductionUpdate",
    "ShipmentCreate",
    "ShipmentOut",
    "ShipmentUpdate",
    "StandardProductOptionOut",
    "SummaryReportOut",
]
