"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Query, Request

from food_lookup.app_logging import configure_logging
from food_lookup.config import config_health
from food_lookup.containers import AppContainer
from food_lookup.services.nutrition import macros_for_weight


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        health = config_health(app.state.container.settings)
        if not health.healthy:
            logger.warning("Product source configuration issues: %s", health.issues)
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/health/sources")
    async def sources_health(request: Request) -> dict[str, object]:
        """Report FatSecret configuration health without calling the API."""
        state_container: AppContainer = request.app.state.container
        result = config_health(state_container.settings)
        return {
            "healthy": result.healthy,
            "enabled": result.enabled,
            "has_credentials": result.has_credentials,
            "issues": result.issues,
            "checked_at": result.checked_at.isoformat(),
        }

    @app.get("/products/search")
    async def search_products(
        request: Request,
        q: str = Query(default=""),
        limit: int | None = Query(default=None, ge=1, le=100),
    ) -> dict[str, object]:
        """Search products across local and external sources."""
        state_container: AppContainer = request.app.state.container
        products = await state_container.product_service.search_products(q, limit)
        return {"products": products}

    @app.get("/products/barcode/{code}")
    async def product_by_barcode(
        code: str,
        request: Request,
        grams: float | None = Query(default=None, ge=0, le=10000),
    ) -> dict[str, object]:
        """Look up a product by barcode, with macros for a portion if asked."""
        state_container: AppContainer = request.app.state.container
        product = await state_container.product_service.get_product_by_barcode(code)
        if grams is None:
            return {"product": product}
        macros = macros_for_weight(product, grams) if product is not None else None
        return {"product": product, "macros": macros}

    return app
