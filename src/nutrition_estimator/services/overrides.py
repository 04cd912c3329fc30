"""Override rules for categories that sources routinely get wrong.

Density clamping cannot fix a wrong item count or a wrong serving assumption,
so these rules floor, cap or replace the calorie value for a few foods. Rules
run in table order: floors raise, caps lower, replacements substitute both
calories and macros.
"""

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from nutrition_estimator.domain.nutrition import MacroProfile
from nutrition_estimator.services.categories import (
    BREAD_CATEGORY,
    EGG_CATEGORY,
    FAT_CATEGORY,
    PROTEIN_POWDER_CATEGORY,
    category_for,
)
from nutrition_estimator.services.quantities import extract_count, parse_grams
from nutrition_estimator.units import round_half_up

MAX_SCOOPS = 5
MAX_EGGS = 20
MAX_FLATBREADS = 10
MAX_FAT_GRAMS = 500

WHEY_PER_SCOOP = MacroProfile(calories=120, protein_g=24, fat_g=1.5, carbs_g=2)
WHEY_MIN_KCAL_PER_SCOOP = 70
EGG_PER_UNIT = MacroProfile(calories=70, protein_g=6.3, fat_g=4.8, carbs_g=0.4)
EGG_MAX_KCAL = 90
FLATBREAD_MAX_KCAL = 90
BUTTER_KCAL_PER_GRAM = 7.2
OIL_KCAL_PER_GRAM = 9.0
COMBINED_FAT_KCAL_PER_GRAM = 7.0
FAT_FLOOR_FACTOR = 0.8
FAT_GRAMS_PER_GRAM = 0.99
MIN_PLAUSIBLE_FAT_KCAL_PER_GRAM = 5.0

GRAMS_PER_SCOOP = 30
GRAMS_PER_EGG = 50
GRAMS_PER_FLATBREAD = 40

_WHEY = re.compile(r"\b(?:whey|protein\s*powder|sc(?:h)?oops?)\b", re.IGNORECASE)
_EGG = re.compile(r"\beggs?\b", re.IGNORECASE)
_BUTTER = re.compile(r"\b(?:butter|ghee|amul)\b", re.IGNORECASE)
_OIL = re.compile(r"\b(?:oils?|olive)\b", re.IGNORECASE)
_FLATBREAD = re.compile(
    r"\b(?:roti|chapati|chapatti|phulka|paratha|naan|kulcha|flatbread)s?\b",
    re.IGNORECASE,
)

_SCOOP_WORD = r"sc(?:h)?oops?\b"
_EGG_WORD = r"eggs?\b"
_FLATBREAD_WORD = (
    r"(?:roti|chapati|chapatti|phulka|paratha|naan|kulcha|flatbread)s?\b"
)


class OverrideMode(str, Enum):
    """How a rule changes the current value."""

    FLOOR = "floor"
    CAP = "cap"
    REPLACE = "replace"


@dataclass(frozen=True)
class OverrideTarget:
    """Limit computed for one query, plus the macros that go with it.

    FLOOR and REPLACE fire when calories are below ``limit_kcal``; CAP fires
    when they are above it.
    """

    limit_kcal: float
    macros: MacroProfile | None = None


@dataclass(frozen=True)
class OverrideRule:
    """One row of the override table."""

    name: str
    mode: OverrideMode
    trigger: Callable[[str], bool]
    target: Callable[[str, float | None], OverrideTarget | None]
    note: str | None = None


@dataclass(frozen=True)
class OverrideOutcome:
    """Result of running the override table over an estimate."""

    profile: MacroProfile
    applied: tuple[str, ...]
    note: str | None

    @property
    def fired(self) -> bool:
        """True when any rule changed the estimate."""
        return bool(self.applied)


def _is_fat(text: str) -> bool:
    return bool(_BUTTER.search(text) or _OIL.search(text))


def _is_plain_fat(text: str) -> bool:
    """True when the fat is the food itself, not part of "butter chicken"."""
    return _is_fat(text) and category_for(text).name == FAT_CATEGORY


def _fat_grams(text: str, declared_grams: float | None) -> float | None:
    grams = declared_grams if declared_grams and declared_grams > 0 else None
    if grams is None:
        grams = parse_grams(text)
    if grams is None or grams > MAX_FAT_GRAMS:
        return None
    return float(grams)


def min_plausible_fat_kcal(text: str, declared_grams: float | None) -> float | None:
    """Lowest believable kcal for a weighed cooking fat, or None if not one."""
    if not _is_plain_fat(text):
        return None
    grams = _fat_grams(text, declared_grams)
    if grams is None:
        return None
    return grams * MIN_PLAUSIBLE_FAT_KCAL_PER_GRAM


def _fat_macros(grams: float, calories: float) -> MacroProfile:
    return MacroProfile(
        calories=calories,
        protein_g=0.0,
        fat_g=grams * FAT_GRAMS_PER_GRAM,
        carbs_g=0.0,
    )


def _egg_count(text: str) -> int:
    return extract_count(text, _EGG_WORD, default=1, maximum=MAX_EGGS)


def _whey_target(text: str, declared_grams: float | None) -> OverrideTarget:
    scoops = extract_count(text, _SCOOP_WORD, default=1, maximum=MAX_SCOOPS)
    return OverrideTarget(
        limit_kcal=WHEY_MIN_KCAL_PER_SCOOP * scoops,
        macros=WHEY_PER_SCOOP.scaled(scoops),
    )


def _egg_with_fat_target(text: str, declared_grams: float | None) -> OverrideTarget:
    eggs = _egg_count(text)
    fat_grams = _fat_grams(text, declared_grams) or 0.0
    fat_kcal = fat_grams * COMBINED_FAT_KCAL_PER_GRAM * FAT_FLOOR_FACTOR
    limit = round_half_up(eggs * EGG_PER_UNIT.calories + fat_kcal)
    macros = EGG_PER_UNIT.scaled(eggs) + _fat_macros(fat_grams, fat_kcal)
    return OverrideTarget(limit_kcal=limit, macros=macros)


def _fat_target(text: str, declared_grams: float | None) -> OverrideTarget | None:
    grams = _fat_grams(text, declared_grams)
    if grams is None:
        return None
    per_gram = BUTTER_KCAL_PER_GRAM if _BUTTER.search(text) else OIL_KCAL_PER_GRAM
    limit = round_half_up(grams * per_gram * FAT_FLOOR_FACTOR)
    return OverrideTarget(limit_kcal=limit, macros=_fat_macros(grams, limit))


def _egg_floor_target(text: str, declared_grams: float | None) -> OverrideTarget:
    eggs = _egg_count(text)
    return OverrideTarget(
        limit_kcal=EGG_PER_UNIT.calories * eggs,
        macros=EGG_PER_UNIT.scaled(eggs),
    )


def _flatbread_target(text: str, declared_grams: float | None) -> OverrideTarget:
    pieces = extract_count(
        text, _FLATBREAD_WORD, default=2, maximum=MAX_FLATBREADS
    )
    return OverrideTarget(limit_kcal=FLATBREAD_MAX_KCAL * pieces)


def _egg_cap_target(text: str, declared_grams: float | None) -> OverrideTarget:
    limit = EGG_MAX_KCAL * _egg_count(text)
    if _is_fat(text):
        # Never cap below the egg+fat floor.
        limit = max(limit, _egg_with_fat_target(text, declared_grams).limit_kcal)
    return OverrideTarget(limit_kcal=limit)


# Order matters: whey floor, egg+fat floor, fat floor, egg floor,
# flatbread cap, egg cap.
OVERRIDE_RULES: tuple[OverrideRule, ...] = (
    OverrideRule(
        name="whey_floor",
        mode=OverrideMode.REPLACE,
        trigger=lambda text: bool(_WHEY.search(text)),
        target=_whey_target,
        note="typical scoop",
    ),
    OverrideRule(
        name="egg_with_fat_floor",
        mode=OverrideMode.FLOOR,
        trigger=lambda text: bool(_EGG.search(text)) and _is_fat(text),
        target=_egg_with_fat_target,
        note="typical",
    ),
    OverrideRule(
        name="fat_floor",
        mode=OverrideMode.FLOOR,
        trigger=_is_plain_fat,
        target=_fat_target,
        note="typical",
    ),
    OverrideRule(
        name="egg_floor",
        mode=OverrideMode.FLOOR,
        trigger=lambda text: bool(_EGG.search(text)),
        target=_egg_floor_target,
    ),
    OverrideRule(
        name="flatbread_cap",
        mode=OverrideMode.CAP,
        trigger=lambda text: bool(_FLATBREAD.search(text)),
        target=_flatbread_target,
    ),
    OverrideRule(
        name="egg_cap",
        mode=OverrideMode.CAP,
        trigger=lambda text: bool(_EGG.search(text)),
        target=_egg_cap_target,
    ),
)


def apply_overrides(
    food_text: str,
    current: MacroProfile,
    declared_grams: float | None = None,
    rules: tuple[OverrideRule, ...] = OVERRIDE_RULES,
) -> OverrideOutcome:
    """Run the override table over the current estimate."""
    profile = current
    applied: list[str] = []
    note: str | None = None
    for rule in rules:
        if not rule.trigger(food_text):
            continue
        target = rule.target(food_text, declared_grams)
        if target is None:
            continue
        updated = _apply_rule(rule.mode, profile, target)
        if updated is None:
            continue
        profile = updated
        applied.append(rule.name)
        if note is None:
            note = rule.note
    return OverrideOutcome(profile=profile, applied=tuple(applied), note=note)


def _apply_rule(
    mode: OverrideMode, profile: MacroProfile, target: OverrideTarget
) -> MacroProfile | None:
    """Return the changed profile, or None when the rule does not fire."""
    calories = profile.calories
    if mode is OverrideMode.CAP:
        if calories <= target.limit_kcal:
            return None
        ratio = target.limit_kcal / calories
        scaled = profile.scaled(ratio)
        return MacroProfile(
            calories=target.limit_kcal,
            protein_g=scaled.protein_g,
            fat_g=scaled.fat_g,
            carbs_g=scaled.carbs_g,
        )
    if calories >= target.limit_kcal:
        return None
    macros = target.macros or profile
    if mode is OverrideMode.REPLACE:
        return macros
    return MacroProfile(
        calories=target.limit_kcal,
        protein_g=macros.protein_g,
        fat_g=macros.fat_g,
        carbs_g=macros.carbs_g,
    )


def implied_serving_grams(food_text: str) -> float | None:
    """Weight implied by the description, e.g. 2 eggs -> 100 g.

    Unit weights only apply when the food's category is the unit's food, so
    "whey shake with milk" is not sized as a single scoop.
    """
    category = category_for(food_text).name
    if category == PROTEIN_POWDER_CATEGORY and _WHEY.search(food_text):
        scoops = extract_count(
            food_text, _SCOOP_WORD, default=1, maximum=MAX_SCOOPS
        )
        return float(scoops * GRAMS_PER_SCOOP)
    if category == EGG_CATEGORY:
        fat_grams = _fat_grams(food_text, None) if _is_fat(food_text) else None
        return float(_egg_count(food_text) * GRAMS_PER_EGG + (fat_grams or 0.0))
    if category == BREAD_CATEGORY and _FLATBREAD.search(food_text):
        pieces = extract_count(
            food_text, _FLATBREAD_WORD, default=2, maximum=MAX_FLATBREADS
        )
        return float(pieces * GRAMS_PER_FLATBREAD)
    grams = parse_grams(food_text)
    return float(grams) if grams is not None else None
