"""Stock history reconstruction, period windows and trends.

No daily stock snapshot is persisted, so the stock curve is rebuilt from the
daily net deltas (produced minus shipped). The trailing window is anchored at
the current total reported by the inventory summary and walked forward. A
custom range starts from zero instead: nothing in the visible range tells us
the true stock before it.
"""
from __future__ import annotations

import calendar
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date, timedelta

from .aggregation import DateInterval


@dataclass(frozen=True)
class StockPoint:
    day: date
    stock: int


def date_range(start: date, end: date) -> list[date]:
    """Every calendar day from ``start`` to ``end``, both included."""

    if end < start:
        return []
    return [start + timedelta(days=offset) for offset in range((end - start).days + 1)]


def trailing_days(today: date, count: int) -> list[date]:
    """The ``count`` days ending on ``today``."""

    if count < 1:
        raise ValueError("A trailing window needs at least one day")
    return date_range(today - timedelta(days=count - 1), today)


def month_interval(year: int, month: int) -> DateInterval:
    if not 1 <= month <= 12:
        raise ValueError(f"Invalid month: {month}")
    last_day = calendar.monthrange(year, month)[1]
    return DateInterval(date(year, month, 1), date(year, month, last_day))


def shift_months(day: date, months: int) -> date:
    """Move ``day`` by ``months``, clamping to the end of shorter months."""

    index = day.year * 12 + (day.month - 1) + months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def net_deltas(
    days: Sequence[date],
    produced_by_day: Mapping[date, int],
    shipped_by_day: Mapping[date, int],
) -> list[int]:
    return [produced_by_day.get(day, 0) - shipped_by_day.get(day, 0) for day in days]


def reconstruct_stock_history(
    days: Sequence[date],
    produced_by_day: Mapping[date, int],
    shipped_by_day: Mapping[date, int],
    current_total_stock: int | None = None,
    *,
    custom_range: bool = False,
) -> list[StockPoint]:
    """Rebuild one stock value per day in ``days``.

    The running balance is clamped at zero on every day, so a day whose
    shipments exceed the stock on hand reports ``0`` and the following days
    continue from there.
    """

    deltas = net_deltas(days, produced_by_day, shipped_by_day)
    if custom_range:
        balance = 0
    else:
        if current_total_stock is None:
            raise ValueError("current_total_stock is required outside a custom range")
        balance = current_total_stock - sum(deltas)

    history: list[StockPoint] = []
    for day, delta in zip(days, deltas):
        balance = max(balance + delta, 0)
        history.append(StockPoint(day=day, stock=balance))
    return history


def trend_value(current: float, previous: float) -> float | None:
    """Percentage change from ``previous`` to ``current``.

    Returns ``None`` when there is no baseline to compare against.
    """

    if previous == 0:
        return None
    return (current - previous) / previous * 100


__all__ = [
    "StockPoint",
    "date_range",
    "month_interval",
    "net_deltas",
    "reconstruct_stock_history",
    "shift_months",
    "trailing_days",
    "trend_value",
]
