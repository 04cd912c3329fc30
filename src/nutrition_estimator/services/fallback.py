"""Model fallback estimation via a chat completion model."""

import json
import logging
from dataclasses import dataclass
from typing import Protocol

from pydantic import ValidationError

from nutrition_estimator.domain.fallback import FallbackEstimate
from nutrition_estimator.domain.nutrition import FoodQuery, SourceResult
from nutrition_estimator.domain.profile import UserContext

_logger = logging.getLogger(__name__)

FALLBACK_SYSTEM_PROMPT = """ROLE
You are a nutrition estimator inside a fitness app. You estimate calories and
macros for a food description, with Indian food context in mind.

RULES
- Use approximate values and always give a confidence range.
- Calories are kilocalories (kcal) for the whole described portion, never joules.
- If "grams" is given, size the portion to that weight.
- If "api_nutrition_hint" is given, it came from a nutrition database and may be
  wrong; use it only if it is plausible for the description.
- No medical advice.

INPUT
JSON with intent, food_text, grams (number or null), user_context and an
optional api_nutrition_hint.

OUTPUT (VALID JSON ONLY, NO MARKDOWN OR EXTRA TEXT)
{
  "response_type": "food_estimation",
  "message": "Short human-readable reply for the user",
  "data": {
    "estimated_calories": 0,
    "confidence_range": "±15%",
    "macros": {"protein_g": 0, "carbs_g": 0, "fat_g": 0}
  },
  "ui_hint": "show_confirm_button"
}"""


class FallbackEstimateError(RuntimeError):
    """Raised when the model fallback cannot produce an estimate."""


class ChatClient(Protocol):
    """Interface for a JSON-returning chat completion model."""

    async def complete_json(
        self,
        *,
        model: str,
        system_prompt: str,
        user_input: str,
        temperature: float,
    ) -> dict[str, object]:
        """Return the assistant reply parsed as a JSON object."""


@dataclass
class ModelFallback:
    """Service that prompts the model and validates its estimate."""

    client: ChatClient
    model: str
    default_context: UserContext
    temperature: float = 0.3
    system_prompt: str = FALLBACK_SYSTEM_PROMPT

    async def estimate(
        self, query: FoodQuery, hint: SourceResult | None = None
    ) -> FallbackEstimate:
        """Ask the model for an estimate of the query."""
        user_input = build_user_input(query, self.default_context, hint)
        raw = await self.client.complete_json(
            model=self.model,
            system_prompt=self.system_prompt,
            user_input=user_input,
            temperature=self.temperature,
        )
        try:
            return FallbackEstimate.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Model fallback returned an invalid estimate: %s", exc)
            raise FallbackEstimateError("Model returned an invalid estimate") from exc


def build_user_input(
    query: FoodQuery,
    default_context: UserContext,
    hint: SourceResult | None = None,
) -> str:
    """Serialize the request the model sees as user content."""
    context = query.user_context or default_context
    payload: dict[str, object] = {
        "intent": "food_estimation",
        "food_text": query.description,
        "grams": query.grams,
        "user_context": context.model_dump(),
    }
    if hint is not None:
        payload["api_nutrition_hint"] = {
            "calories": hint.calories,
            "protein_g": hint.protein_g,
            "carbs_g": hint.carbs_g,
            "fat_g": hint.fat_g,
            "basis": hint.basis.value,
            "source": hint.source.value,
        }
    return json.dumps(payload, ensure_ascii=False)
