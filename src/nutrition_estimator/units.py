"""Energy unit constants and rounding helpers."""

import math

MAX_KCAL_PER_SERVING = 2000
JOULES_PER_KCAL = 4184
DEFAULT_SERVING_GRAMS = 100.0


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def round_one_decimal(value: float) -> float:
    """Round a gram amount to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def finite_non_negative(value: object) -> float:
    """Coerce a raw macro value to a finite, non-negative float."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    return number
