"""Models for model-fallback estimation results."""

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from nutrition_estimator.units import finite_non_negative

_MACRO_KEYS = ("protein_g", "carbs_g", "fat_g")


class FallbackMacros(BaseModel):
    """Macros stated by the model, in grams."""

    model_config = ConfigDict(extra="ignore")

    protein_g: float = 0.0
    carbs_g: float = 0.0
    fat_g: float = 0.0

    @field_validator("protein_g", "carbs_g", "fat_g", mode="before")
    @classmethod
    def _non_negative(cls, value: object) -> float:
        return finite_non_negative(value)


class FallbackEstimate(BaseModel):
    """Structured output of the model fallback.

    Calories are kept raw: the model has no unit discipline, so the value is
    sanitized by the caller rather than validated here.
    """

    model_config = ConfigDict(extra="ignore")

    estimated_calories: float | str | None = Field(
        default=None,
        validation_alias=AliasChoices("estimated_calories", "calories"),
    )
    confidence_range: str | None = None
    macros: FallbackMacros = Field(default_factory=FallbackMacros)
    message: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _unwrap(cls, raw: object) -> object:
        """Accept both the response envelope and a bare estimate object."""
        if not isinstance(raw, dict):
            return raw
        data = raw.get("data")
        payload = dict(data) if isinstance(data, dict) else dict(raw)
        if "message" not in payload and isinstance(raw.get("message"), str):
            payload["message"] = raw["message"]
        if not isinstance(payload.get("macros"), dict):
            payload["macros"] = {key: payload.get(key) for key in _MACRO_KEYS}
        return payload
