"""Fail-closed nutrition sources normalizing raw API payloads."""

import logging
import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from nutrition_estimator.adapters.calorie_ninjas_client import CalorieNinjasClient
from nutrition_estimator.adapters.open_food_facts_client import OpenFoodFactsClient
from nutrition_estimator.domain.nutrition import Basis, SourceKind, SourceResult
from nutrition_estimator.units import (
    finite_non_negative,
    round_half_up,
    round_one_decimal,
)

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

MAX_QUERY_LENGTH = 1500
SOURCE_CONFIDENCE = "±10%"
_OFF_ENERGY_KEY = "energy-kcal_100g"

_logger = logging.getLogger(__name__)


@dataclass
class NaturalLanguageSource:
    """CalorieNinjas lookup that understands quantities inside the query.

    Returns absolute totals for everything described, so the result is never
    rescaled by grams. A missing client means no API key is configured.
    """

    client: CalorieNinjasClient | None
    max_query_length: int = MAX_QUERY_LENGTH

    async def fetch(self, query: str) -> SourceResult | None:
        """Return summed nutrition for all items in the query, or None."""
        if self.client is None:
            return None
        trimmed = query.strip()[: self.max_query_length]
        if not trimmed:
            return None
        client = self.client
        payload = await _fetch_or_none(
            lambda: client.get_nutrition(trimmed), action="calorieninjas"
        )
        if payload is None:
            return None
        return _parse_calorie_ninjas(payload)


@dataclass
class ProductDatabaseSource:
    """Open Food Facts lookup returning per-100 g values."""

    client: OpenFoodFactsClient
    page_size: int = 3

    async def fetch(self, query: str) -> SourceResult | None:
        """Return the first searched product that reports energy per 100 g."""
        trimmed = query.strip()
        if not trimmed:
            return None
        payload = await _fetch_or_none(
            lambda: self.client.search_products(trimmed, page_size=self.page_size),
            action="openfoodfacts:search",
        )
        if payload is None:
            return None
        products = payload.get("products")
        if not isinstance(products, list):
            return None
        for product in products:
            result = _parse_off_product(product)
            if result is not None:
                return result
        return None

    async def lookup_barcode(self, barcode: str) -> SourceResult | None:
        """Return per-100 g values for a product barcode, or None."""
        code = barcode.strip()
        if not code.isdigit():
            return None
        payload = await _fetch_or_none(
            lambda: self.client.get_product(code),
            action=f"openfoodfacts:product:{code}",
        )
        if payload is None:
            return None
        return _parse_off_product(payload.get("product"))


async def _fetch_or_none(
    func: "Callable[[], Awaitable[dict[str, object]]]", *, action: str
) -> dict[str, object] | None:
    """Run a single lookup attempt, turning any failure into None."""
    try:
        payload = await func()
    except Exception as exc:
        _logger.warning(
            "Nutrition source %s failed (status=%s): %s",
            action,
            _status_code_from_exception(exc),
            exc,
        )
        return None
    if not isinstance(payload, dict):
        _logger.warning("Nutrition source %s returned a non-object payload", action)
        return None
    return payload


def _status_code_from_exception(exc: Exception) -> str:
    """Extract HTTP status code from an exception, if available."""
    response = getattr(exc, "response", None)
    status_code = getattr(response, "status_code", None)
    if isinstance(status_code, int):
        return str(status_code)
    return "n/a"


def _finite_number(value: object) -> float | None:
    """Return value as a finite float, or None for anything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def _parse_calorie_ninjas(payload: dict[str, object]) -> SourceResult | None:
    """Sum calories and macros across all returned items."""
    raw_items = payload.get("items")
    if not isinstance(raw_items, list):
        return None
    items = [
        item
        for item in raw_items
        if isinstance(item, dict) and _finite_number(item.get("calories")) is not None
    ]
    if not items:
        return None
    calories = sum(finite_non_negative(item.get("calories")) for item in items)
    protein_g = sum(finite_non_negative(item.get("protein_g")) for item in items)
    carbs_g = sum(
        finite_non_negative(item.get("carbohydrates_total_g")) for item in items
    )
    fat_g = sum(finite_non_negative(item.get("fat_total_g")) for item in items)
    names = [str(item["name"]) for item in items if item.get("name")]
    return SourceResult(
        source=SourceKind.NATURAL_LANGUAGE_API,
        calories=round_one_decimal(calories),
        protein_g=round_one_decimal(protein_g),
        carbs_g=round_one_decimal(carbs_g),
        fat_g=round_one_decimal(fat_g),
        basis=Basis.TOTAL_FOR_QUERY,
        confidence=SOURCE_CONFIDENCE,
        label=", ".join(names) or None,
    )


def _parse_off_product(product: object) -> SourceResult | None:
    """Normalize one Open Food Facts product, requiring energy per 100 g."""
    if not isinstance(product, dict):
        return None
    nutriments = product.get("nutriments")
    if not isinstance(nutriments, dict):
        return None
    kcal = _finite_number(nutriments.get(_OFF_ENERGY_KEY))
    if kcal is None or kcal < 0:
        return None
    name = product.get("product_name")
    return SourceResult(
        source=SourceKind.PRODUCT_DATABASE,
        calories=float(round_half_up(kcal)),
        protein_g=round_one_decimal(
            finite_non_negative(nutriments.get("proteins_100g"))
        ),
        carbs_g=round_one_decimal(
            finite_non_negative(nutriments.get("carbohydrates_100g"))
        ),
        fat_g=round_one_decimal(finite_non_negative(nutriments.get("fat_100g"))),
        basis=Basis.PER_100_GRAMS,
        confidence=SOURCE_CONFIDENCE,
        label=str(name) if name else None,
    )
