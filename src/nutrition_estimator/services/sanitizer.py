"""Correction of unit-confused calorie values."""

import math
import re

from nutrition_estimator.units import (
    JOULES_PER_KCAL,
    MAX_KCAL_PER_SERVING,
    round_half_up,
)

# The ceiling expressed in joules; anything at or above it is clamped.
IMPLAUSIBLE_ENERGY = MAX_KCAL_PER_SERVING * JOULES_PER_KCAL

_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")


def sanitize_calories(raw: object) -> int | None:
    """Return a sane kcal integer for a raw calorie value, or None.

    Values above the per-serving ceiling are assumed to be joules and
    converted; absurd values are clamped to the ceiling.
    """
    value = _to_number(raw)
    if value is None or not math.isfinite(value) or value <= 0:
        return None
    if value <= MAX_KCAL_PER_SERVING:
        return round_half_up(value)
    if value < IMPLAUSIBLE_ENERGY:
        kcal = round_half_up(value / JOULES_PER_KCAL)
        if kcal <= 0:
            return None
        return min(kcal, MAX_KCAL_PER_SERVING)
    return MAX_KCAL_PER_SERVING


def _to_number(raw: object) -> float | None:
    """Read a number from a numeric value or text such as "about 350 kcal"."""
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int | float):
        return float(raw)
    if isinstance(raw, str):
        match = _NUMBER.search(raw.replace(",", ""))
        if match is None:
            return None
        return float(match.group())
    return None
