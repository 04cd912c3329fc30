"""User context sent alongside model fallback requests."""

from typing import Literal

from pydantic import BaseModel, Field

ActivityLevel = Literal["sedentary", "moderate", "active"]
Goal = Literal["fat_loss", "muscle_gain", "general_fitness"]
Diet = Literal["vegetarian", "vegan", "non-vegetarian"]
Gender = Literal["male", "female", "other"]
Equipment = Literal["home", "gym", "none"]


class UserContext(BaseModel):
    """Profile details that help the model size a portion."""

    age: int = Field(gt=0, le=120)
    height_cm: float = Field(gt=0)
    weight_kg: float = Field(gt=0)
    activity_level: ActivityLevel
    goal: Goal
    diet: Diet
    gender: Gender
    health_conditions: list[str] = Field(default_factory=list)
    injuries: list[str] = Field(default_factory=list)
    equipment: Equipment
