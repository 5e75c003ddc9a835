"""CSV exports of production and shipment entries."""
from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Union

from .aggregation import UNKNOWN_CLIENT_LABEL
from .codes import STANDARD_PACKAGE_KG, CodeResolver
from .domain import ClientRecord, ProductionRecord, ShipmentRecord

CsvValue = Union[str, int, float, bool, None]

PRODUCTION_EXPORT_FILENAME = "produccion.csv"
SHIPMENTS_EXPORT_FILENAME = "envios.csv"

_QUOTE_TRIGGERS = (",", '"', "\n")


def _format_value(value: CsvValue) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def escape_csv_value(value: CsvValue) -> str:
    text = _format_value(value)
    if any(trigger in text for trigger in _QUOTE_TRIGGERS):
        return '"' + text.replace('"', '""') + '"'
    return text


def to_csv(rows: Sequence[Mapping[str, CsvValue]]) -> str:
    """Serialize uniform records to CSV text.

    The header is the key order of the first record. Lines are joined with
    ``\\n`` and there is no trailing newline; an empty list gives ``""``.
    """

    if not rows:
        return ""
    headers = list(rows[0].keys())
    lines = [",".join(headers)]
    for row in rows:
        lines.append(",".join(escape_csv_value(row.get(key)) for key in headers))
    return "\n".join(lines)


def _iso(value: Any) -> str:
    return value.isoformat() if hasattr(value, "isoformat") else str(value)


def production_export_rows(
    entries: Iterable[ProductionRecord],
    resolver: CodeResolver,
    package_kg: float = STANDARD_PACKAGE_KG,
) -> list[dict[str, CsvValue]]:
    return [
        {
            "fecha": _iso(entry.production_date),
            "producto": resolver.label_for(entry.product_id),
            "paquetes": entry.packages,
            "peso_kg": (entry.packages or 0) * package_kg,
            "notas": entry.notes or "",
        }
        for entry in entries
    ]


def shipment_export_rows(
    entries: Iterable[ShipmentRecord],
    resolver: CodeResolver,
    clients: Iterable[ClientRecord],
    package_kg: float = STANDARD_PACKAGE_KG,
) -> list[dict[str, CsvValue]]:
    client_names = {client.id: client.name for client in clients}
    return [
        {
            "fecha": _iso(entry.shipment_date),
            "cliente": client_names.get(entry.client_id, UNKNOWN_CLIENT_LABEL),
            "producto": resolver.label_for(entry.product_id),
            "paquetes": entry.packages,
            "peso_kg": (entry.packages or 0) * package_kg,
            "notas": entry.notes or "",
        }
        for entry in entries
    ]


__all__ = [
    "PRODUCTION_EXPORT_FILENAME",
    "SHIPMENTS_EXPORT_FILENAME",
    "escape_csv_value",
    "production_export_rows",
    "shipment_export_rows",
    "to_csv",
]
