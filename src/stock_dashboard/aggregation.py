"""Package totals per canonical code.

All functions here are pure: they read a snapshot of production/shipment
records and return fresh totals. Rows whose product is non-standard are left
out of every code-bucketed total. Rows with a malformed date are left out of
date-filtered totals, and the number skipped is reported in
:attr:`PackageTotals.skipped` and logged.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import NamedTuple, Protocol

from .codes import (
    STANDARD_PACKAGE_KG,
    STANDARD_PRODUCT_CODES,
    CodeResolver,
    StandardCode,
    is_standard_code,
    normalize_code,
    standard_label,
)
from .domain import ClientRecord, InventorySummaryRow, ShipmentRecord

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT_LABEL = "Cliente"


class DatedEvent(Protocol):
    product_id: str
    packages: int

    @property
    def event_date(self) -> date | str: ...


class DateInterval(NamedTuple):
    """Inclusive range of calendar days."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


def parse_event_date(value: date | datetime | str | None) -> date | None:
    """Return the calendar day of ``value`` or ``None`` when it cannot be read."""

    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


@dataclass
class PackageTotals:
    FR: int = 0
    CA: int = 0
    total: int = 0
    skipped: int = field(default=0, compare=False)

    def add(self, code: StandardCode, packages: int) -> None:
        setattr(self, code, getattr(self, code) + packages)
        self.total += packages

    def by_code(self, code: str) -> int:
        normalized = normalize_code(code)
        if normalized not in STANDARD_PRODUCT_CODES:
            raise KeyError(code)
        return getattr(self, normalized)

    def as_dict(self) -> dict[str, int]:
        return {"FR": self.FR, "CA": self.CA, "total": self.total}


def _in_interval(event: DatedEvent, interval: DateInterval | None) -> bool | None:
    """``True``/``False`` for a readable date, ``None`` when the date is malformed."""

    if interval is None:
        return True
    day = parse_event_date(event.event_date)
    if day is None:
        return None
    return interval.contains(day)


def _packages(event: DatedEvent) -> int:
    return int(event.packages or 0)


def sum_packages_by_code(
    events: Iterable[DatedEvent],
    resolver: CodeResolver,
    interval: DateInterval | None = None,
) -> PackageTotals:
    """Sum packages per canonical code, optionally within ``interval``."""

    totals = PackageTotals()
    for event in events:
        included = _in_interval(event, interval)
        if included is None:
            totals.skipped += 1
            continue
        if not included:
            continue
        code = resolver.code_for(event.product_id)
        if code is None:
            continue
        totals.add(code, _packages(event))

    if totals.skipped:
        logger.warning(
            "Skipped records with unreadable dates",
            extra={"skipped": totals.skipped, "interval": interval},
        )
    return totals


def packages_by_day(
    events: Iterable[DatedEvent],
    resolver: CodeResolver,
    interval: DateInterval | None = None,
) -> dict[date, int]:
    """Total standard-product packages per calendar day."""

    totals: dict[date, int] = {}
    skipped = 0
    for event in events:
        day = parse_event_date(event.event_date)
        if day is None:
            skipped += 1
            continue
        if interval is not None and not interval.contains(day):
            continue
        if resolver.code_for(event.product_id) is None:
            continue
        totals[day] = totals.get(day, 0) + _packages(event)

    if skipped:
        logger.warning("Skipped records with unreadable dates", extra={"skipped": skipped})
    return totals


@dataclass
class DailyTotals:
    production: PackageTotals = field(default_factory=PackageTotals)
    shipments: PackageTotals = field(default_factory=PackageTotals)


def daily_totals_by_code(
    production: Iterable[DatedEvent],
    shipments: Iterable[DatedEvent],
    resolver: CodeResolver,
    interval: DateInterval | None = None,
) -> dict[date, DailyTotals]:
    """Per-day FR/CA totals for production and shipments, in date order."""

    days: dict[date, DailyTotals] = {}
    for attribute, events in (("production", production), ("shipments", shipments)):
        for event in events:
            code = resolver.code_for(event.product_id)
            if code is None:
                continue
            day = parse_event_date(event.event_date)
            if day is None or (interval is not None and not interval.contains(day)):
                continue
            entry = days.setdefault(day, DailyTotals())
            getattr(entry, attribute).add(code, _packages(event))
    return dict(sorted(days.items()))


@dataclass(frozen=True)
class ClientShipmentTotal:
    client_id: str
    name: str
    packages: int


def shipments_by_client(
    shipments: Iterable[ShipmentRecord],
    clients: Iterable[ClientRecord] | Mapping[str, ClientRecord],
    interval: DateInterval | None = None,
    limit: int | None = 6,
) -> list[ClientShipmentTotal]:
    """Rank clients by shipped packages, largest first."""

    if isinstance(clients, Mapping):
        client_map = dict(clients)
    else:
        client_map = {client.id: client for client in clients}

    totals: dict[str, int] = {}
    for shipment in shipments:
        if _in_interval(shipment, interval) is not True:
            continue
        totals[shipment.client_id] = totals.get(shipment.client_id, 0) + _packages(shipment)

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]
    return [
        ClientShipmentTotal(
            client_id=client_id,
            name=client_map[client_id].name if client_id in client_map else UNKNOWN_CLIENT_LABEL,
            packages=packages,
        )
        for client_id, packages in ranked
    ]


@dataclass
class GroupedInventoryRow:
    code: StandardCode
    name: str
    total_produced_packages: int
    total_shipped_packages: int
    stock_packages: int
    weight_kg: float

    @property
    def stock_weight_kg(self) -> float:
        return self.stock_packages * self.weight_kg


def group_inventory_by_code(rows: Iterable[InventorySummaryRow]) -> list[GroupedInventoryRow]:
    """Merge per-product summary rows into one row per canonical code.

    Counts are summed; the unit weight comes from the last row merged for the
    code. The result lists FR before CA and leaves out codes with no rows.
    """

    grouped: dict[str, GroupedInventoryRow] = {}
    for row in rows:
        if not is_standard_code(row.code):
            continue
        code = normalize_code(row.code)
        weight = STANDARD_PACKAGE_KG if row.weight_kg is None else row.weight_kg
        produced = row.total_produced_packages or 0
        shipped = row.total_shipped_packages or 0
        stock = row.stock_packages or 0

        existing = grouped.get(code)
        if existing is None:
            grouped[code] = GroupedInventoryRow(
                code=code,  # type: ignore[arg-type]
                name=standard_label(code, weight),
                total_produced_packages=produced,
                total_shipped_packages=shipped,
                stock_packages=stock,
                weight_kg=weight,
            )
            continue

        existing.total_produced_packages += produced
        existing.total_shipped_packages += shipped
        existing.stock_packages += stock
        existing.weight_kg = weight
        existing.name = standard_label(code, weight)

    return [grouped[code] for code in STANDARD_PRODUCT_CODES if code in grouped]


__all__ = [
    "ClientShipmentTotal",
    "DailyTotals",
    "DateInterval",
    "GroupedInventoryRow",
    "PackageTotals",
    "UNKNOWN_CLIENT_LABEL",
    "daily_totals_by_code",
    "group_inventory_by_code",
    "packages_by_day",
    "parse_event_date",
    "shipments_by_client",
    "sum_packages_by_code",
]
