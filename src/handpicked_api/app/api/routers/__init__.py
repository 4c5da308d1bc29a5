"""Public storefront API routers."""

from handpicked_api.app.api.routers.blogs import router as blogs_router
from handpicked_api.app.api.routers.categories import router as categories_router
from handpicked_api.app.api.routers.coupons import router as coupons_router
from handpicked_api.app.api.routers.health import router as health_router
from handpicked_api.app.api.routers.offers import router as offers_router
from handpicked_api.app.api.routers.stores import router as stores_router
from handpicked_api.app.api.routers.subscribe import router as subscribe_router

__all__ = [
    "coupons_router",
    "stores_router",
    "blogs_router",
    "categories_router",
    "offers_router",
    "subscribe_router",
    "health_router",
]
