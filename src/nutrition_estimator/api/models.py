"""Request models for the estimation API."""

from pydantic import BaseModel, Field

from nutrition_estimator.domain.profile import UserContext


class EstimateRequest(BaseModel):
    """Body of an estimation request."""

    food_text: str = ""
    grams: float | None = Field(default=None)
    user_context: UserContext | None = None
