"""Tests for container wiring."""

import asyncio

from nutrition_estimator.config import Settings
from nutrition_estimator.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    container = build_container(settings)

    assert container.reconciler.fallback is not None
    assert container.natural_language_source.client is not None
    assert container.reconciler.product_database is container.product_database_source
    asyncio.run(container.close_resources())


def test_build_container_without_keys_leaves_sources_unset() -> None:
    container = build_container(
        Settings(calorie_ninjas_api_key="  ", openai_api_key=None)
    )

    assert container.natural_language_source.client is None
    assert container.reconciler.fallback is None
    asyncio.run(container.close_resources())
