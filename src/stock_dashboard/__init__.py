"""Production, shipment and stock reporting service."""
from __future__ import annotations

from .aggregation import group_inventory_by_code, sum_packages_by_code
from .codes import CodeResolver
from .export import to_csv
from .history import reconstruct_stock_history, trend_value

__all__ = [
    "CodeResolver",
    "group_inventory_by_code",
    "reconstruct_stock_history",
    "sum_packages_by_code",
    "to_csv",
    "trend_value",
]
