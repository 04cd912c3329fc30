"""Reconciliation of nutrition sources into a single estimate."""

import asyncio
import logging
from dataclasses import dataclass

from nutrition_estimator.domain.nutrition import (
    FoodQuery,
    MacroProfile,
    ReconciledEstimate,
    SourceKind,
    SourceResult,
)
from nutrition_estimator.services.categories import clamp_calories_by_category
from nutrition_estimator.services.fallback import FallbackEstimateError, ModelFallback
from nutrition_estimator.services.overrides import (
    apply_overrides,
    implied_serving_grams,
    min_plausible_fat_kcal,
)
from nutrition_estimator.services.sanitizer import sanitize_calories
from nutrition_estimator.services.sources import (
    SOURCE_CONFIDENCE,
    NaturalLanguageSource,
    ProductDatabaseSource,
)
from nutrition_estimator.units import (
    DEFAULT_SERVING_GRAMS,
    MAX_KCAL_PER_SERVING,
    finite_non_negative,
    round_one_decimal,
)

DEFAULT_FALLBACK_CONFIDENCE = "±20%"

_logger = logging.getLogger(__name__)


@dataclass
class Reconciler:
    """Combines nutrition sources, overrides and clamps into one estimate.

    Precedence: natural-language API totals, then product database values
    scaled to the declared grams (100 g when none), then the model fallback.
    The serving weight, which may be implied by the text, is the clamp weight.
    """

    natural_language: NaturalLanguageSource
    product_database: ProductDatabaseSource
    fallback: ModelFallback | None = None
    debug: bool = False

    async def reconcile(self, query: FoodQuery) -> ReconciledEstimate:
        """Return the reconciled estimate for a food query.

        Raises FallbackEstimateError only when no source had data and the
        model fallback failed too.
        """
        text = query.description or ""
        serving_grams = resolve_serving_grams(text, query.grams)
        language_result, product_result = await asyncio.gather(
            self.natural_language.fetch(text),
            self.product_database.fetch(text),
        )

        if language_result is not None:
            return self._finish(
                query,
                language_result.macros,
                source=language_result.source,
                confidence=language_result.confidence,
                serving_grams=serving_grams,
            )

        hint: SourceResult | None = None
        if product_result is not None:
            product_grams = query.grams or DEFAULT_SERVING_GRAMS
            scaled = product_result.macros.scaled(product_grams / 100)
            minimum = min_plausible_fat_kcal(text, query.grams)
            if minimum is not None and scaled.calories < minimum:
                if self.debug:
                    _logger.info(
                        "Product database value %.1f kcal implausible for %r",
                        scaled.calories,
                        text,
                    )
                hint = product_result
            else:
                return self._finish(
                    query,
                    scaled,
                    source=product_result.source,
                    confidence=product_result.confidence,
                    serving_grams=serving_grams,
                )

        return await self._from_fallback(query, hint, serving_grams)

    async def _from_fallback(
        self,
        query: FoodQuery,
        hint: SourceResult | None,
        serving_grams: float,
    ) -> ReconciledEstimate:
        """Estimate from the model when no source value can be trusted."""
        if self.fallback is None:
            raise FallbackEstimateError(
                "No nutrition source returned data and no model fallback is set"
            )
        estimate = await self.fallback.estimate(query, hint)
        calories = sanitize_calories(estimate.estimated_calories)
        profile = MacroProfile(
            calories=float(calories or 0),
            protein_g=estimate.macros.protein_g,
            fat_g=estimate.macros.fat_g,
            carbs_g=estimate.macros.carbs_g,
        )
        return self._finish(
            query,
            profile,
            source=SourceKind.MODEL_FALLBACK,
            confidence=estimate.confidence_range or DEFAULT_FALLBACK_CONFIDENCE,
            serving_grams=serving_grams,
        )

    def _finish(
        self,
        query: FoodQuery,
        profile: MacroProfile,
        *,
        source: SourceKind,
        confidence: str,
        serving_grams: float,
    ) -> ReconciledEstimate:
        """Apply overrides, the category clamp and the ceiling."""
        text = query.description or ""
        outcome = apply_overrides(text, profile, query.grams)
        raw_calories = finite_non_negative(outcome.profile.calories)
        calories = clamp_calories_by_category(text, raw_calories, serving_grams)
        if raw_calories > 0:
            calories = max(1, calories)
        final_calories = int(min(calories, MAX_KCAL_PER_SERVING))

        if outcome.note:
            confidence = f"{SOURCE_CONFIDENCE} ({outcome.note})"

        if self.debug:
            _logger.info(
                "Reconciled %r via %s: raw=%.1f final=%s overrides=%s",
                text,
                source.value,
                profile.calories,
                final_calories,
                ",".join(outcome.applied) or "none",
            )
        macros = outcome.profile
        return ReconciledEstimate(
            calories=final_calories,
            protein_g=round_one_decimal(finite_non_negative(macros.protein_g)),
            carbs_g=round_one_decimal(finite_non_negative(macros.carbs_g)),
            fat_g=round_one_decimal(finite_non_negative(macros.fat_g)),
            confidence_range=confidence,
            source=source.value,
            serving_grams=serving_grams,
            applied_overrides=outcome.applied,
        )


def resolve_serving_grams(food_text: str, declared_grams: float | None) -> float:
    """Declared grams, else a weight implied by the text, else 100 g."""
    if declared_grams is not None and declared_grams > 0:
        return float(declared_grams)
    implied = implied_serving_grams(food_text)
    if implied is not None and implied > 0:
        return implied
    return DEFAULT_SERVING_GRAMS
