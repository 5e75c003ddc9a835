"""Dashboard reports assembled from a :class:`DashboardSnapshot`."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from .aggregation import (
    ClientShipmentTotal,
    DateInterval,
    GroupedInventoryRow,
    PackageTotals,
    daily_totals_by_code,
    group_inventory_by_code,
    packages_by_day,
    shipments_by_client,
    sum_packages_by_code,
)
from .codes import STANDARD_PACKAGE_KG, CodeResolver
from .domain import DashboardSnapshot
from .history import (
    StockPoint,
    date_range,
    month_interval,
    reconstruct_stock_history,
    shift_months,
    trailing_days,
    trend_value,
)

MONTH_NAMES = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)
ALL_PERIODS_LABEL = "Total"


@dataclass(frozen=True)
class DailyPackages:
    day: date
    packages: int


@dataclass(frozen=True)
class PeriodComparison:
    """Totals for the current and previous calendar month."""

    current: PackageTotals
    previous: PackageTotals
    trend: float | None


@dataclass(frozen=True)
class SummaryReport:
    today: date
    inventory: list[GroupedInventoryRow]
    stock: PackageTotals
    stock_weight_kg: float
    production_today: PackageTotals
    shipments_today: PackageTotals
    production_month: PeriodComparison
    shipments_month: PeriodComparison
    production_month_kg: float
    shipments_month_kg: float
    production_by_day: list[DailyPackages]
    top_clients: list[ClientShipmentTotal]
    stock_history: list[StockPoint]


@dataclass(frozen=True)
class PeriodReport:
    label: str
    interval: DateInterval | None
    production: PackageTotals
    shipments: PackageTotals
    inventory: list[GroupedInventoryRow]
    production_by_day: list[DailyPackages]
    top_clients: list[ClientShipmentTotal]
    stock_history: list[StockPoint]

    @property
    def custom_range(self) -> bool:
        return self.interval is not None

    @property
    def start(self) -> date | None:
        return self.interval.start if self.interval else None

    @property
    def end(self) -> date | None:
        return self.interval.end if self.interval else None


@dataclass(frozen=True)
class CalendarDay:
    day: date
    production: PackageTotals
    shipments: PackageTotals


def _stock_totals(inventory: list[GroupedInventoryRow]) -> PackageTotals:
    totals = PackageTotals()
    for row in inventory:
        totals.add(row.code, row.stock_packages)
    return totals


def _daily_series(days: list[date], by_day: dict[date, int]) -> list[DailyPackages]:
    return [DailyPackages(day=day, packages=by_day.get(day, 0)) for day in days]


def _compare(
    events, resolver: CodeResolver, current: DateInterval, previous: DateInterval
) -> PeriodComparison:
    current_totals = sum_packages_by_code(events, resolver, current)
    previous_totals = sum_packages_by_code(events, resolver, previous)
    return PeriodComparison(
        current=current_totals,
        previous=previous_totals,
        trend=trend_value(current_totals.total, previous_totals.total),
    )


def build_summary_report(
    snapshot: DashboardSnapshot,
    today: date,
    *,
    history_days: int = 30,
    top_clients: int = 6,
    package_kg: float = STANDARD_PACKAGE_KG,
) -> SummaryReport:
    """The landing view: stock now, today's activity and month-over-month trends."""

    resolver = CodeResolver(snapshot.products)
    inventory = group_inventory_by_code(snapshot.inventory)
    stock = _stock_totals(inventory)

    today_interval = DateInterval(today, today)
    current_month = month_interval(today.year, today.month)
    previous_day = shift_months(today, -1)
    previous_month = month_interval(previous_day.year, previous_day.month)

    days = trailing_days(today, history_days)
    produced = packages_by_day(snapshot.production, resolver)
    shipped = packages_by_day(snapshot.shipments, resolver)
    production_month = _compare(snapshot.production, resolver, current_month, previous_month)
    shipments_month = _compare(snapshot.shipments, resolver, current_month, previous_month)

    return SummaryReport(
        today=today,
        inventory=inventory,
        stock=stock,
        stock_weight_kg=stock.total * package_kg,
        production_today=sum_packages_by_code(snapshot.production, resolver, today_interval),
        shipments_today=sum_packages_by_code(snapshot.shipments, resolver, today_interval),
        production_month=production_month,
        shipments_month=shipments_month,
        production_month_kg=production_month.current.total * package_kg,
        shipments_month_kg=shipments_month.current.total * package_kg,
        production_by_day=_daily_series(days, produced),
        top_clients=shipments_by_client(
            snapshot.shipments, snapshot.clients, current_month, limit=top_clients
        ),
        stock_history=reconstruct_stock_history(days, produced, shipped, stock.total),
    )


def period_label(month: int | None, year: int | None) -> str:
    if month is None or year is None:
        return ALL_PERIODS_LABEL
    return f"{MONTH_NAMES[month - 1]} {year}"


def build_period_report(
    snapshot: DashboardSnapshot,
    today: date,
    *,
    month: int | None = None,
    year: int | None = None,
    history_days: int = 30,
    top_clients: int = 6,
) -> PeriodReport:
    """Totals for one calendar month, or for the whole snapshot.

    A month needs both ``month`` and ``year``; with either missing the report
    covers everything loaded and the stock curve uses the trailing window.
    """

    resolver = CodeResolver(snapshot.products)
    inventory = group_inventory_by_code(snapshot.inventory)
    interval = month_interval(year, month) if month is not None and year is not None else None

    if interval is not None:
        days = date_range(interval.start, interval.end)
    else:
        days = trailing_days(today, history_days)

    produced = packages_by_day(snapshot.production, resolver, interval)
    shipped = packages_by_day(snapshot.shipments, resolver, interval)

    return PeriodReport(
        label=period_label(month, year),
        interval=interval,
        production=sum_packages_by_code(snapshot.production, resolver, interval),
        shipments=sum_packages_by_code(snapshot.shipments, resolver, interval),
        inventory=inventory,
        production_by_day=_daily_series(days, produced),
        top_clients=shipments_by_client(
            snapshot.shipments, snapshot.clients, interval, limit=top_clients
        ),
        stock_history=reconstruct_stock_history(
            days,
            produced,
            shipped,
            _stock_totals(inventory).total,
            custom_range=interval is not None,
        ),
    )


def build_calendar_month(snapshot: DashboardSnapshot, year: int, month: int) -> list[CalendarDay]:
    """FR/CA totals for each day of the month that has any activity."""

    resolver = CodeResolver(snapshot.products)
    totals = daily_totals_by_code(
        snapshot.production, snapshot.shipments, resolver, month_interval(year, month)
    )
    return [
        CalendarDay(day=day, production=entry.production, shipments=entry.shipments)
        for day, entry in totals.items()
    ]


__all__ = [
    "ALL_PERIODS_LABEL",
    "CalendarDay",
    "DailyPackages",
    "MONTH_NAMES",
    "PeriodComparison",
    "PeriodReport",
    "SummaryReport",
    "build_calendar_month",
    "build_period_report",
    "build_summary_report",
    "period_label",
]
