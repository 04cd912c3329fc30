"""Quantity extraction from free-text food descriptions."""

import re

MAX_PARSED_GRAMS = 1000

_UNIT_WORD = r"(?:g|gm|gms|grams?|kg|ml|oz|lbs?)"
_GRAMS = re.compile(r"(?<![\d.])(\d+)\s*(?:g|gm|gms|grams?)\b", re.IGNORECASE)
_LEADING_COUNT = re.compile(
    rf"^\s*(\d+)(?![\d.])(?!\s*{_UNIT_WORD}\b)", re.IGNORECASE
)


def parse_grams(text: str) -> int | None:
    """Parse a gram weight from text like "5g butter" or "10 grams oil"."""
    match = _GRAMS.search(text)
    if match is None:
        return None
    grams = int(match.group(1))
    if 0 < grams <= MAX_PARSED_GRAMS:
        return grams
    return None


def count_near(text: str, keyword: str) -> int | None:
    """Return the number written just before a keyword, e.g. "3 boiled eggs".

    One descriptive word may sit between the number and the keyword; unit
    words ("5g eggs") do not count as descriptions.
    """
    pattern = re.compile(
        rf"(?<![\d.])(\d+)\s*(?:(?!{_UNIT_WORD}\b)[a-z]+\s+)?(?:{keyword})",
        re.IGNORECASE,
    )
    match = pattern.search(text)
    if match is None:
        return None
    return int(match.group(1))


def leading_count(text: str) -> int | None:
    """Return a bare count at the start of the text, ignoring weights."""
    match = _LEADING_COUNT.search(text)
    if match is None:
        return None
    return int(match.group(1))


def extract_count(text: str, keyword: str, *, default: int, maximum: int) -> int:
    """Return an item count clamped to ``[1, maximum]``."""
    count = count_near(text, keyword)
    if count is None:
        count = leading_count(text)
    if count is None:
        count = default
    return max(1, min(maximum, count))
