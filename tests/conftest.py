"""Shared test fixtures."""

from dataclasses import dataclass, field

import pytest

from nutrition_estimator.adapters.calorie_ninjas_client import CalorieNinjasClient
from nutrition_estimator.adapters.open_food_facts_client import OpenFoodFactsClient
from nutrition_estimator.config import Settings
from nutrition_estimator.containers import AppContainer
from nutrition_estimator.services.fallback import ChatClient, ModelFallback
from nutrition_estimator.services.reconciler import Reconciler
from nutrition_estimator.services.sources import (
    NaturalLanguageSource,
    ProductDatabaseSource,
)


def calorie_ninjas_payload(
    calories: float,
    protein_g: float = 0.0,
    carbs_g: float = 0.0,
    fat_g: float = 0.0,
    name: str = "food",
) -> dict[str, object]:
    """Build a single-item CalorieNinjas response."""
    return {
        "items": [
            {
                "name": name,
                "calories": calories,
                "protein_g": protein_g,
                "carbohydrates_total_g": carbs_g,
                "fat_total_g": fat_g,
                "serving_size_g": 100,
            }
        ]
    }


def off_search_payload(
    kcal_per_100g: float,
    protein_g: float = 0.0,
    carbs_g: float = 0.0,
    fat_g: float = 0.0,
    name: str = "Product",
) -> dict[str, object]:
    """Build an Open Food Facts search response with one product."""
    return {
        "products": [
            {
                "product_name": name,
                "nutriments": {
                    "energy-kcal_100g": kcal_per_100g,
                    "proteins_100g": protein_g,
                    "carbohydrates_100g": carbs_g,
                    "fat_100g": fat_g,
                },
            }
        ]
    }


def fallback_payload(
    calories: object,
    confidence_range: str | None = "±15%",
    protein_g: float = 0.0,
    carbs_g: float = 0.0,
    fat_g: float = 0.0,
) -> dict[str, object]:
    """Build a model reply in the response envelope."""
    return {
        "response_type": "food_estimation",
        "message": "Here is your estimate.",
        "data": {
            "estimated_calories": calories,
            "confidence_range": confidence_range,
            "macros": {"protein_g": protein_g, "carbs_g": carbs_g, "fat_g": fat_g},
        },
        "ui_hint": "show_confirm_button",
    }


@dataclass
class FakeCalorieNinjasClient(CalorieNinjasClient):
    """Fake CalorieNinjas client returning a fixed payload or raising."""

    payload: dict[str, object] | None = None
    error: Exception | None = None
    queries: list[str] = field(default_factory=list)

    async def get_nutrition(self, query: str) -> dict[str, object]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.payload or {"items": []}


@dataclass
class FakeOpenFoodFactsClient(OpenFoodFactsClient):
    """Fake Open Food Facts client returning fixed payloads or raising."""

    search_payload: dict[str, object] | None = None
    product_payload: dict[str, object] | None = None
    error: Exception | None = None
    queries: list[str] = field(default_factory=list)
    barcodes: list[str] = field(default_factory=list)

    async def search_products(
        self, query: str, page_size: int = 3
    ) -> dict[str, object]:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.search_payload or {"products": []}

    async def get_product(self, barcode: str) -> dict[str, object]:
        self.barcodes.append(barcode)
        if self.error is not None:
            raise self.error
        return self.product_payload or {"status": 0}


@dataclass
class FakeChatClient(ChatClient):
    """Fake chat client returning a fixed JSON reply."""

    payload: dict[str, object] = field(default_factory=lambda: fallback_payload(250))
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def complete_json(
        self,
        *,
        model: str,
        system_prompt: str,
        user_input: str,
        temperature: float,
    ) -> dict[str, object]:
        self.calls.append(
            {
                "model": model,
                "system_prompt": system_prompt,
                "user_input": user_input,
                "temperature": temperature,
            }
        )
        if self.error is not None:
            raise self.error
        return self.payload


def build_reconciler(
    settings: Settings,
    *,
    calorie_ninjas: FakeCalorieNinjasClient | None = None,
    open_food_facts: FakeOpenFoodFactsClient | None = None,
    chat: FakeChatClient | None = None,
) -> Reconciler:
    """Wire a reconciler around fake clients."""
    fallback = (
        ModelFallback(
            client=chat,
            model=settings.openai_model,
            default_context=settings.default_user_context(),
            temperature=settings.openai_temperature,
        )
        if chat is not None
        else None
    )
    return Reconciler(
        natural_language=NaturalLanguageSource(calorie_ninjas),
        product_database=ProductDatabaseSource(
            open_food_facts or FakeOpenFoodFactsClient()
        ),
        fallback=fallback,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        calorie_ninjas_api_key="cn-key",
        openai_api_key="openai-key",
    )


@pytest.fixture
def calorie_ninjas_client() -> FakeCalorieNinjasClient:
    return FakeCalorieNinjasClient()


@pytest.fixture
def open_food_facts_client() -> FakeOpenFoodFactsClient:
    return FakeOpenFoodFactsClient()


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def container(
    settings: Settings,
    calorie_ninjas_client: FakeCalorieNinjasClient,
    open_food_facts_client: FakeOpenFoodFactsClient,
    chat_client: FakeChatClient,
) -> AppContainer:
    reconciler = build_reconciler(
        settings,
        calorie_ninjas=calorie_ninjas_client,
        open_food_facts=open_food_facts_client,
        chat=chat_client,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        natural_language_source=reconciler.natural_language,
        product_database_source=reconciler.product_database,
        reconciler=reconciler,
        close_resources=close_resources,
    )
