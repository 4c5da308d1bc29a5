"""Pydantic models for the public API."""

from handpicked_api.app.api.models.listing import (
    CategoryListMeta,
    CategoryListResponse,
    DetailResponse,
    ListMeta,
    ListResponse,
)
from handpicked_api.app.api.models.offers import ClickRequest, ClickResponse, StatusResponse, SubscribeRequest

__all__ = [
    "ListMeta",
    "ListResponse",
    "CategoryListMeta",
    "CategoryListResponse",
    "DetailResponse",
    "ClickRequest",
    "ClickResponse",
    "SubscribeRequest",
    "StatusResponse",
]
