from __future__ import annotations

import logging
from datetime import date, datetime

from stock_dashboard.aggregation import (
    DateInterval,
    daily_totals_by_code,
    group_inventory_by_code,
    packages_by_day,
    parse_event_date,
    shipments_by_client,
    sum_packages_by_code,
)
from stock_dashboard.codes import CodeResolver
from stock_dashboard.domain import InventorySummaryRow, ProductionRecord, ShipmentRecord


def _production(day, product_id: str, packages: int) -> ProductionRecord:
    return ProductionRecord(production_date=day, product_id=product_id, packages=packages)


def _shipment(day, product_id: str, packages: int, client_id: str = "sol") -> ShipmentRecord:
    return ShipmentRecord(
        shipment_date=day, product_id=product_id, client_id=client_id, packages=packages
    )


def test_parse_event_date() -> None:
    assert parse_event_date(date(2024, 1, 1)) == date(2024, 1, 1)
    assert parse_event_date(datetime(2024, 1, 1, 23, 59)) == date(2024, 1, 1)
    assert parse_event_date("2024-01-01") == date(2024, 1, 1)
    assert parse_event_date(" 2024-01-01 ") == date(2024, 1, 1)
    assert parse_event_date("2024-01-01T00:00:00.000Z") == date(2024, 1, 1)
    assert parse_event_date("2024-13-01") is None
    assert parse_event_date("yesterday") is None
    assert parse_event_date("") is None
    assert parse_event_date(None) is None


def test_single_day_scenario(resolver: CodeResolver) -> None:
    production = [_production("2024-01-01", "fr-std", 10)]
    shipments = [_shipment("2024-01-01", "fr-std", 4)]
    day = DateInterval(date(2024, 1, 1), date(2024, 1, 1))

    produced = sum_packages_by_code(production, resolver, day)
    shipped = sum_packages_by_code(shipments, resolver, day)

    assert produced.as_dict() == {"FR": 10, "CA": 0, "total": 10}
    assert shipped.as_dict() == {"FR": 4, "CA": 0, "total": 4}
    assert produced.FR - shipped.FR == 6


def test_total_is_sum_of_codes(resolver: CodeResolver) -> None:
    production = [
        _production("2024-01-01", "fr-std", 10),
        _production("2024-01-02", "ca-std", 7),
        _production("2024-01-03", "fr-old", 3),
        _production("2024-01-03", "mx", 50),
        _production("2024-01-04", "blank", 9),
        _production("2024-01-04", "missing", 1),
    ]

    totals = sum_packages_by_code(production, resolver)

    assert totals.FR == 13
    assert totals.CA == 7
    assert totals.total == totals.FR + totals.CA == 20


def test_interval_is_inclusive(resolver: CodeResolver) -> None:
    production = [
        _production(date(2024, 1, 31), "fr-std", 1),
        _production(date(2024, 2, 1), "fr-std", 2),
        _production(date(2024, 2, 29), "ca-std", 4),
        _production(date(2024, 3, 1), "ca-std", 8),
    ]

    totals = sum_packages_by_code(production, resolver, DateInterval(date(2024, 2, 1), date(2024, 2, 29)))

    assert totals.as_dict() == {"FR": 2, "CA": 4, "total": 6}


def test_narrower_interval_never_increases_totals(resolver: CodeResolver) -> None:
    production = [
        _production(date(2024, 1, day), "fr-std" if day % 2 else "ca-std", day)
        for day in range(1, 31)
    ]
    wide = DateInterval(date(2024, 1, 1), date(2024, 1, 31))
    narrow = DateInterval(date(2024, 1, 10), date(2024, 1, 20))

    wide_totals = sum_packages_by_code(production, resolver, wide)
    narrow_totals = sum_packages_by_code(production, resolver, narrow)
    unfiltered = sum_packages_by_code(production, resolver)

    for code in ("FR", "CA"):
        assert narrow_totals.by_code(code) <= wide_totals.by_code(code) <= unfiltered.by_code(code)


def test_malformed_dates_are_skipped_only_when_filtering(resolver: CodeResolver, caplog) -> None:
    production = [
        _production("2024-01-05", "fr-std", 10),
        _production("05/01/2024", "fr-std", 99),
        _production("not a date", "ca-std", 7),
    ]

    unfiltered = sum_packages_by_code(production, resolver)
    assert unfiltered.as_dict() == {"FR": 109, "CA": 7, "total": 116}
    assert unfiltered.skipped == 0

    with caplog.at_level(logging.WARNING, logger="stock_dashboard.aggregation"):
        filtered = sum_packages_by_code(
            production, resolver, DateInterval(date(2024, 1, 1), date(2024, 1, 31))
        )

    assert filtered.as_dict() == {"FR": 10, "CA": 0, "total": 10}
    assert filtered.skipped == 2
    assert any(getattr(record, "skipped", None) == 2 for record in caplog.records)


def test_negative_packages_are_kept(resolver: CodeResolver) -> None:
    totals = sum_packages_by_code(
        [_production("2024-01-01", "fr-std", 5), _production("2024-01-02", "fr-std", -2)],
        resolver,
    )
    assert totals.FR == 3


def test_packages_by_day_groups_standard_products(resolver: CodeResolver) -> None:
    production = [
        _production("2024-01-01", "fr-std", 10),
        _production("2024-01-01T08:00:00", "ca-std", 5),
        _production("2024-01-02", "mx", 40),
        _production("2024-01-03", "fr-old", 2),
        _production("garbage", "fr-std", 1),
    ]

    assert packages_by_day(production, resolver) == {
        date(2024, 1, 1): 15,
        date(2024, 1, 3): 2,
    }
    assert packages_by_day(
        production, resolver, DateInterval(date(2024, 1, 2), date(2024, 1, 3))
    ) == {date(2024, 1, 3): 2}


def test_daily_totals_by_code(resolver: CodeResolver) -> None:
    production = [
        _production("2024-01-02", "fr-std", 10),
        _production("2024-01-01", "ca-std", 5),
        _production("2024-01-02", "mx", 99),
    ]
    shipments = [_shipment("2024-01-02", "fr-old", 3), _shipment("2024-01-04", "ca-std", 1)]

    totals = daily_totals_by_code(production, shipments, resolver)

    assert list(totals) == [date(2024, 1, 1), date(2024, 1, 2), date(2024, 1, 4)]
    assert totals[date(2024, 1, 2)].production.as_dict() == {"FR": 10, "CA": 0, "total": 10}
    assert totals[date(2024, 1, 2)].shipments.FR == 3
    assert totals[date(2024, 1, 4)].production.total == 0
    assert totals[date(2024, 1, 4)].shipments.CA == 1


def test_shipments_by_client_ranks_and_limits(clients) -> None:
    shipments = [
        _shipment("2024-01-01", "fr-std", 5, client_id="sol"),
        _shipment("2024-01-02", "ca-std", 20, client_id="luna"),
        _shipment("2024-01-03", "fr-std", 7, client_id="sol"),
        _shipment("2024-01-03", "fr-std", 1, client_id="gone"),
        _shipment("2024-02-01", "fr-std", 100, client_id="sol"),
    ]

    ranked = shipments_by_client(
        shipments, clients, DateInterval(date(2024, 1, 1), date(2024, 1, 31))
    )

    assert [(row.name, row.packages) for row in ranked] == [
        ("Hotel Luna", 20),
        ("Restaurante Sol", 12),
        ("Cliente", 1),
    ]
    assert len(shipments_by_client(shipments, clients, limit=1)) == 1
    assert shipments_by_client(shipments, clients, limit=1)[0].packages == 112


def test_group_inventory_merges_duplicates_in_fixed_order() -> None:
    rows = [
        InventorySummaryRow(
            product_id="ca", code="CA", name="Cascos",
            total_produced_packages=10, total_shipped_packages=4, stock_packages=6,
            weight_kg=2.5,
        ),
        InventorySummaryRow(
            product_id="fr-old", code="fr ", name="Francesa vieja",
            total_produced_packages=5, total_shipped_packages=5, stock_packages=0,
            weight_kg=1.0,
        ),
        InventorySummaryRow(
            product_id="mx", code="MX", name="Mezcla",
            total_produced_packages=100, total_shipped_packages=0, stock_packages=100,
            weight_kg=5.0,
        ),
        InventorySummaryRow(
            product_id="fr", code="FR", name="Francesa",
            total_produced_packages=20, total_shipped_packages=8, stock_packages=12,
            weight_kg=None,
        ),
    ]

    grouped = group_inventory_by_code(rows)

    assert [row.code for row in grouped] == ["FR", "CA"]
    fr = grouped[0]
    assert fr.total_produced_packages == 25
    assert fr.total_shipped_packages == 13
    assert fr.stock_packages == 12
    assert fr.weight_kg == 2.5
    assert fr.name == "Papa a la francesa (2.5 kg)"
    assert fr.stock_weight_kg == 30.0
    assert grouped[1].stock_packages == 6


def test_group_inventory_omits_codes_without_rows() -> None:
    rows = [
        InventorySummaryRow(
            product_id="ca", code="ca", name="Cascos",
            total_produced_packages=None, total_shipped_packages=None, stock_packages=None,
            weight_kg=1.0,
        )
    ]

    grouped = group_inventory_by_code(rows)

    assert len(grouped) == 1
    assert grouped[0].code == "CA"
    assert grouped[0].stock_packages == 0
    assert grouped[0].name == "Papas en cascos (1 kg)"
    assert group_inventory_by_code([]) == []
