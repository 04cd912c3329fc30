"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from nutrition_estimator.domain.profile import (
    ActivityLevel,
    Diet,
    Equipment,
    Gender,
    Goal,
    UserContext,
)

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    calorie_ninjas_api_key: str | None = None
    calorie_ninjas_base_url: str = "https://api.calorieninjas.com/v1"
    open_food_facts_base_url: str = "https://world.openfoodfacts.org"
    open_food_facts_user_agent: str = "NutritionEstimator/1.0"
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    openai_model: str = "llama-3.3-70b-versatile"
    openai_temperature: float = 0.3
    source_timeout_seconds: float = 15.0
    debug: bool = False
    environment: str = _ENVIRONMENT

    default_age: int = 30
    default_height_cm: float = 170.0
    default_weight_kg: float = 70.0
    default_activity_level: ActivityLevel = "moderate"
    default_goal: Goal = "general_fitness"
    default_diet: Diet = "non-vegetarian"
    default_gender: Gender = "other"
    default_equipment: Equipment = "gym"

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )

    def default_user_context(self) -> UserContext:
        """Profile used when a request carries no user context."""
        return UserContext(
            age=self.default_age,
            height_cm=self.default_height_cm,
            weight_kg=self.default_weight_kg,
            activity_level=self.default_activity_level,
            goal=self.default_goal,
            diet=self.default_diet,
            gender=self.default_gender,
            equipment=self.default_equipment,
        )


def clean_api_key(raw: str | None) -> str | None:
    """Return a stripped API key, or None when blank."""
    if raw is None:
        return None
    cleaned = raw.strip()
    return cleaned or None
