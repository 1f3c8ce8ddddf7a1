"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging and builds one :class:`PricePipeline`
(shared across all requests via ``request.app.state.pipeline``).  The
pipeline holds no per-request state, so sharing it is safe.

Routers
-------
    /food-item-price   price of one item in the latest bulletin
    /food-prices       the latest bulletin's tables
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from pricewatch.api.routers import prices as prices_router
from pricewatch.config import Settings
from pricewatch.config import settings as default_settings
from pricewatch.log import configure_logging
from pricewatch.pipeline import PricePipeline


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app_settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Build the shared pipeline on startup."""
        configure_logging(app_settings.log_level)
        app.state.pipeline = PricePipeline(app_settings)
        yield

    app = FastAPI(
        title="PriceWatch API",
        description=(
            "Looks up current market prices for food items in the most "
            "recent government price bulletin."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    # Allow browser frontends on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(prices_router.router, tags=["prices"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn pricewatch.api.app:app --reload
app = create_app()
