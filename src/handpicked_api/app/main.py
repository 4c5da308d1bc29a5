from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from handpicked_api import __version__
from handpicked_api.app.api.errors import install_error_handlers
from handpicked_api.app.api.routers import (
    blogs_router,
    categories_router,
    coupons_router,
    health_router,
    offers_router,
    stores_router,
    subscribe_router,
)
from handpicked_api.app.factory import create_services
from handpicked_api.app.services import AppServices
from handpicked_api.observability.logging import configure_logging, log_requests

API_PREFIX = "/public/v1"


def create_app(services: Optional[AppServices] = None) -> FastAPI:
    """Build the public API; ``services`` defaults to the adapters picked by RUNTIME_ADAPTERS."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        container = services or create_services()
        app.state.services = container
        container.start()
        try:
            yield
        finally:
            container.stop()

    app = FastAPI(title="Handpicked storefront API", version=__version__, lifespan=lifespan)
    app.middleware("http")(log_requests)
    install_error_handlers(app)

    app.include_router(coupons_router, prefix=API_PREFIX, tags=["coupons"])
    app.include_router(stores_router, prefix=API_PREFIX, tags=["stores"])
    app.include_router(blogs_router, prefix=API_PREFIX, tags=["blogs"])
    app.include_router(categories_router, prefix=API_PREFIX, tags=["categories"])
    app.include_router(offers_router, prefix=API_PREFIX, tags=["offers"])
    app.include_router(subscribe_router, prefix=API_PREFIX, tags=["subscribe"])
    app.include_router(health_router, prefix=API_PREFIX, tags=["health"])
    return app


configure_logging()

app = create_app()
