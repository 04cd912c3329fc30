"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from nutrition_estimator.api.models import EstimateRequest
from nutrition_estimator.app_logging import configure_logging
from nutrition_estimator.containers import AppContainer
from nutrition_estimator.domain.nutrition import FoodQuery, SourceResult
from nutrition_estimator.services.fallback import FallbackEstimateError

RETRY_MESSAGE = "Something went wrong. Please try again."
_NO_MATCH: dict[str, object] = {"calories": None, "source": "no_match"}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.debug)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/estimate", response_model=None)
    async def estimate(
        body: EstimateRequest, request: Request
    ) -> dict[str, object] | JSONResponse:
        """Reconcile a calorie and macro estimate for a food description."""
        state_container: AppContainer = request.app.state.container
        query = FoodQuery(
            description=body.food_text,
            declared_grams=body.grams,
            user_context=body.user_context,
        )
        try:
            result = await state_container.reconciler.reconcile(query)
        except FallbackEstimateError:
            logger.exception("Estimation failed for %r", body.food_text)
            return JSONResponse(
                status_code=status.HTTP_502_BAD_GATEWAY,
                content={"message": RETRY_MESSAGE},
            )
        return result.to_payload()

    @app.get("/food/nutrition", response_model=None)
    async def food_nutrition(
        request: Request, q: str | None = None
    ) -> dict[str, object] | JSONResponse:
        """Search the product database for per-100 g nutrition."""
        if q is None or not q.strip():
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"error": "Missing query parameter: q"},
            )
        state_container: AppContainer = request.app.state.container
        result = await state_container.product_database_source.fetch(q)
        return _source_payload(result)

    @app.get("/food/barcode/{barcode}")
    async def food_barcode(barcode: str, request: Request) -> dict[str, object]:
        """Look up per-100 g nutrition for a product barcode."""
        state_container: AppContainer = request.app.state.container
        result = await state_container.product_database_source.lookup_barcode(
            barcode
        )
        return _source_payload(result)

    return app


def _source_payload(result: SourceResult | None) -> dict[str, object]:
    """Serialize a source result, or the no-match marker."""
    if result is None:
        return dict(_NO_MATCH)
    return {
        "calories": result.calories,
        "protein_g": result.protein_g,
        "carbs_g": result.carbs_g,
        "fat_g": result.fat_g,
        "basis": result.basis.value,
        "source": result.source.value,
        "confidence_range": result.confidence,
        "label": result.label,
    }
