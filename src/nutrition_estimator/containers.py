"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from nutrition_estimator.adapters.calorie_ninjas_client import (
    HttpxCalorieNinjasClient,
)
from nutrition_estimator.adapters.open_food_facts_client import (
    HttpxOpenFoodFactsClient,
)
from nutrition_estimator.adapters.openai_chat_client import OpenAIChatClient
from nutrition_estimator.config import Settings, clean_api_key
from nutrition_estimator.services.fallback import ModelFallback
from nutrition_estimator.services.reconciler import Reconciler
from nutrition_estimator.services.sources import (
    NaturalLanguageSource,
    ProductDatabaseSource,
)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    natural_language_source: NaturalLanguageSource
    product_database_source: ProductDatabaseSource
    reconciler: Reconciler
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container.

    Sources without credentials are left unconfigured and report no data.
    """
    resolved_settings = settings or Settings()
    timeout = resolved_settings.source_timeout_seconds

    calorie_ninjas_key = clean_api_key(resolved_settings.calorie_ninjas_api_key)
    calorie_ninjas_client = (
        HttpxCalorieNinjasClient.create(
            api_key=calorie_ninjas_key,
            base_url=resolved_settings.calorie_ninjas_base_url,
            timeout_seconds=timeout,
        )
        if calorie_ninjas_key
        else None
    )
    open_food_facts_client = HttpxOpenFoodFactsClient.create(
        base_url=resolved_settings.open_food_facts_base_url,
        user_agent=resolved_settings.open_food_facts_user_agent,
        timeout_seconds=timeout,
    )

    openai_key = clean_api_key(resolved_settings.openai_api_key)
    chat_client = (
        OpenAIChatClient.create(
            api_key=openai_key, base_url=resolved_settings.openai_base_url
        )
        if openai_key
        else None
    )
    fallback = (
        ModelFallback(
            client=chat_client,
            model=resolved_settings.openai_model,
            default_context=resolved_settings.default_user_context(),
            temperature=resolved_settings.openai_temperature,
        )
        if chat_client
        else None
    )

    natural_language_source = NaturalLanguageSource(calorie_ninjas_client)
    product_database_source = ProductDatabaseSource(open_food_facts_client)
    reconciler = Reconciler(
        natural_language=natural_language_source,
        product_database=product_database_source,
        fallback=fallback,
        debug=resolved_settings.debug,
    )

    async def close_resources() -> None:
        if calorie_ninjas_client is not None:
            await calorie_ninjas_client.close()
        await open_food_facts_client.close()
        if chat_client is not None:
            await chat_client.close()

    return AppContainer(
        settings=resolved_settings,
        natural_language_source=natural_language_source,
        product_database_source=product_database_source,
        reconciler=reconciler,
        close_resources=close_resources,
    )
