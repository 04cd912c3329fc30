"""Nutrition estimate domain models."""

import math
from dataclasses import dataclass, field
from enum import Enum

from nutrition_estimator.domain.profile import UserContext


class SourceKind(str, Enum):
    """Where a nutrition value came from."""

    NATURAL_LANGUAGE_API = "calorieninjas"
    PRODUCT_DATABASE = "openfoodfacts"
    MODEL_FALLBACK = "model_fallback"


class Basis(str, Enum):
    """What quantity of food a source result describes."""

    TOTAL_FOR_QUERY = "total_for_query"
    PER_100_GRAMS = "per_100_grams"


@dataclass(frozen=True)
class MacroProfile:
    """Calories and macronutrients for some amount of food."""

    calories: float
    protein_g: float
    fat_g: float
    carbs_g: float

    def scaled(self, factor: float) -> "MacroProfile":
        """Return the profile multiplied by a factor."""
        return MacroProfile(
            calories=self.calories * factor,
            protein_g=self.protein_g * factor,
            fat_g=self.fat_g * factor,
            carbs_g=self.carbs_g * factor,
        )

    def __add__(self, other: "MacroProfile") -> "MacroProfile":
        return MacroProfile(
            calories=self.calories + other.calories,
            protein_g=self.protein_g + other.protein_g,
            fat_g=self.fat_g + other.fat_g,
            carbs_g=self.carbs_g + other.carbs_g,
        )


@dataclass(frozen=True)
class FoodQuery:
    """A single estimation request."""

    description: str
    declared_grams: float | None = None
    user_context: UserContext | None = None

    @property
    def grams(self) -> float | None:
        """Declared grams, or None when missing or not a positive number."""
        value = self.declared_grams
        if value is None or not math.isfinite(value) or value <= 0:
            return None
        return float(value)


@dataclass(frozen=True)
class SourceResult:
    """Normalized nutrition data from one external source."""

    source: SourceKind
    calories: float
    protein_g: float
    carbs_g: float
    fat_g: float
    basis: Basis
    confidence: str
    label: str | None = None

    @property
    def macros(self) -> MacroProfile:
        """Values as a macro profile."""
        return MacroProfile(
            calories=self.calories,
            protein_g=self.protein_g,
            fat_g=self.fat_g,
            carbs_g=self.carbs_g,
        )


@dataclass(frozen=True)
class ReconciledEstimate:
    """Final calorie and macro estimate returned to callers."""

    calories: int
    protein_g: float
    carbs_g: float
    fat_g: float
    confidence_range: str
    source: str
    serving_grams: float
    applied_overrides: tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict[str, object]:
        """Serialize to the shape stored and rendered by callers."""
        return {
            "estimated_calories": self.calories,
            "confidence_range": self.confidence_range,
            "macros": {
                "protein_g": self.protein_g,
                "carbs_g": self.carbs_g,
                "fat_g": self.fat_g,
            },
            "source": self.source,
            "serving_grams": self.serving_grams,
            "applied_overrides": list(self.applied_overrides),
        }
