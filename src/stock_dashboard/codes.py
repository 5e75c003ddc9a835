"""Canonical product codes and catalog disambiguation.

Only two product lines are reported on: ``FR`` (french fries) and ``CA``
(potato wedges). The catalog is free text and carries legacy duplicates, so
every lookup goes through :class:`CodeResolver`, which picks one canonical
product per code and maps any product id to its code, or to ``None`` when the
product is non-standard.
"""
from __future__ import annotations

import unicodedata
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from .domain import ProductRecord

StandardCode = Literal["FR", "CA"]

STANDARD_PACKAGE_KG = 2.5
STANDARD_PRODUCT_CODES: tuple[StandardCode, ...] = ("FR", "CA")

_STANDARD_BASE_LABELS: dict[str, str] = {
    "FR": "Papa a la francesa",
    "CA": "Papas en cascos",
}
_FALLBACK_PRODUCT_LABEL = "Producto"

_WEIGHT_TOLERANCE_KG = 0.01
_STANDARD_TERMS = ("estandar", "standard")
_PACKAGE_TERMS = ("bolsa", "bag", "package")
_WEIGHT_TERMS = ("2.5", "2,5")


def normalize_code(code: str | None) -> str:
    return (code or "").strip().upper()


def is_standard_code(code: str | None) -> bool:
    return normalize_code(code) in STANDARD_PRODUCT_CODES


def format_weight(weight_kg: float) -> str:
    """Format a weight with one decimal, dropping a trailing ``.0``."""

    fixed = f"{weight_kg:.1f}"
    return fixed[:-2] if fixed.endswith(".0") else fixed


def standard_label(
    code: str | None,
    weight_kg: float = STANDARD_PACKAGE_KG,
    *,
    compact: bool = False,
) -> str:
    base = _STANDARD_BASE_LABELS.get(normalize_code(code))
    if base is None:
        return _FALLBACK_PRODUCT_LABEL
    weight = format_weight(weight_kg)
    suffix = f"{weight}kg" if compact else f"{weight} kg"
    return f"{base} ({suffix})"


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def score_product(product: ProductRecord) -> int:
    """Score how likely ``product`` is the canonical entry for its code."""

    score = 0
    if (
        product.weight_kg is not None
        and abs(product.weight_kg - STANDARD_PACKAGE_KG) < _WEIGHT_TOLERANCE_KG
    ):
        score += 3
    name = _fold(product.name or "")
    if any(term in name for term in _STANDARD_TERMS):
        score += 2
    if any(term in name for term in _PACKAGE_TERMS):
        score += 1
    if any(term in name for term in _WEIGHT_TERMS):
        score += 1
    return score


@dataclass(frozen=True)
class StandardProductOption:
    """The canonical product offered for a code in entry forms."""

    id: str
    code: StandardCode
    label: str
    weight_kg: float


class CodeResolver:
    """Resolve catalog products to canonical codes.

    ``products`` should arrive in a deterministic order (the store reads them
    ordered by name): when two candidates for one code score the same, the
    first one seen wins.
    """

    def __init__(self, products: Iterable[ProductRecord]) -> None:
        self._products: dict[str, ProductRecord] = {}
        self._canonical: dict[str, ProductRecord] = {}
        for product in products:
            self._products[product.id] = product
            if not is_standard_code(product.code):
                continue
            code = normalize_code(product.code)
            existing = self._canonical.get(code)
            if existing is None or score_product(product) > score_product(existing):
                self._canonical[code] = product

    def canonical_product(self, code: str | None) -> ProductRecord | None:
        return self._canonical.get(normalize_code(code))

    def product(self, product_id: str) -> ProductRecord | None:
        return self._products.get(str(product_id))

    def code_for(self, product_id: str) -> StandardCode | None:
        """Return the canonical code of ``product_id`` or ``None`` if non-standard."""

        product = self.product(product_id)
        if product is None or not is_standard_code(product.code):
            return None
        return normalize_code(product.code)  # type: ignore[return-value]

    def label_for(self, product_id: str) -> str:
        """Display label for raw listings; non-standard products keep their name."""

        product = self.product(product_id)
        if product is None:
            return _FALLBACK_PRODUCT_LABEL
        if is_standard_code(product.code):
            return standard_label(product.code, _weight_or_default(product.weight_kg))
        return product.name or _FALLBACK_PRODUCT_LABEL

    def options(self) -> list[StandardProductOption]:
        options: list[StandardProductOption] = []
        for code in STANDARD_PRODUCT_CODES:
            product = self._canonical.get(code)
            if product is None:
                continue
            weight = _weight_or_default(product.weight_kg)
            options.append(
                StandardProductOption(
                    id=product.id,
                    code=code,
                    label=standard_label(code, weight, compact=True),
                    weight_kg=weight,
                )
            )
        return options


def _weight_or_default(weight_kg: float | None) -> float:
    return STANDARD_PACKAGE_KG if weight_kg is None else weight_kg


__all__ = [
    "CodeResolver",
    "STANDARD_PACKAGE_KG",
    "STANDARD_PRODUCT_CODES",
    "StandardCode",
    "StandardProductOption",
    "format_weight",
    "is_standard_code",
    "normalize_code",
    "score_product",
    "standard_label",
]
