"""Category energy-density bounds for calorie estimates.

Stops implausible values from the sources or the model (5000 kcal of rice,
10 kcal of eggs) by bounding the implied kcal per 100 g.
"""

import math
import re
from dataclasses import dataclass

from nutrition_estimator.units import DEFAULT_SERVING_GRAMS, round_half_up

EGG_CATEGORY = "egg"
BREAD_CATEGORY = "bread"
FAT_CATEGORY = "fat"
PROTEIN_POWDER_CATEGORY = "protein_powder"


@dataclass(frozen=True)
class CategoryRule:
    """Plausible kcal per 100 g for foods matching a pattern."""

    name: str
    pattern: re.Pattern[str]
    min_kcal_per_100g: float
    max_kcal_per_100g: float

    def matches(self, text: str) -> bool:
        """Return True when the food text belongs to this category."""
        return self.pattern.search(text) is not None


def _rule(name: str, pattern: str, low: float, high: float) -> CategoryRule:
    return CategoryRule(
        name=name,
        pattern=re.compile(pattern, re.IGNORECASE),
        min_kcal_per_100g=low,
        max_kcal_per_100g=high,
    )


# Order matters: the first matching rule wins.
CATEGORY_RULES: tuple[CategoryRule, ...] = (
    _rule(EGG_CATEGORY, r"\beggs?\b", 130, 200),
    _rule("rice", r"\b(?:rice|chawal|biryani)\b", 100, 200),
    _rule("lentil_curry", r"\b(?:dal|daal|lentils?|curry|sambar)\b", 80, 180),
    _rule("lean_protein", r"\b(?:chicken|murg|paneer|tofu)\b", 120, 280),
    _rule(
        BREAD_CATEGORY,
        r"\b(?:roti|chapati|chapatti|phulka|paratha|naan|bread)s?\b",
        200,
        380,
    ),
    _rule("milk", r"\b(?:milk|doodh)\b", 40, 70),
    _rule("fruit", r"\b(?:bananas?|apples?|fruits?)\b", 50, 100),
    _rule("potato", r"\b(?:potato(?:es)?|aloo)\b", 60, 100),
    _rule(FAT_CATEGORY, r"\b(?:butter|ghee|amul|oils?)\b", 650, 900),
    _rule(PROTEIN_POWDER_CATEGORY, r"\b(?:whey|protein\s*powder)\b", 350, 450),
    _rule("vegetable", r"\b(?:vegetables?|sabzi|curry)\b", 20, 120),
    _rule("seafood", r"\b(?:fish|prawns?|shrimps?)\b", 80, 180),
    _rule("red_meat", r"\b(?:beef|mutton|lamb)\b", 150, 350),
    _rule("sugar", r"\b(?:sugar|honey|jaggery)\b", 300, 400),
    _rule("nuts", r"\b(?:nuts|almonds?|peanuts?|cashews?)\b", 500, 650),
    _rule("yogurt", r"\b(?:curd|yogurt|yoghurt|dahi)\b", 50, 120),
    _rule("flour", r"\b(?:flour|atta|maida)\b", 330, 380),
)

# Anything unmatched still gets bounded to catch obvious garbage.
DEFAULT_RULE = CategoryRule(
    name="default",
    pattern=re.compile(r"(?!)"),
    min_kcal_per_100g=30,
    max_kcal_per_100g=500,
)


def category_for(text: str) -> CategoryRule:
    """Return the first category matching the text, or the default rule."""
    for rule in CATEGORY_RULES:
        if rule.matches(text):
            return rule
    return DEFAULT_RULE


def clamp_calories_by_category(
    food_text: str, calories: float, grams: float | None
) -> float:
    """Clamp calories so their kcal per 100 g fits the food's category.

    Uses 100 g when grams are missing or not positive. Non-positive and
    non-finite calories are returned unchanged. Applying the clamp to its own
    result returns the same value.
    """
    if not math.isfinite(calories) or calories <= 0:
        return calories
    effective_grams = (
        grams
        if grams is not None and math.isfinite(grams) and grams > 0
        else DEFAULT_SERVING_GRAMS
    )
    kcal_per_100g = calories / effective_grams * 100
    rule = category_for(food_text)
    clamped = max(rule.min_kcal_per_100g, min(rule.max_kcal_per_100g, kcal_per_100g))
    return round_half_up(clamped * effective_grams / 100)
