from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from handpicked_api.app.api.models.listing import CategoryListResponse
from handpicked_api.app.api.routers.common import request_origin
from handpicked_api.app.services import AppServices, get_services

router = APIRouter()


@router.get("/categories", response_model=CategoryListResponse)
def list_categories(request: Request, services: AppServices = Depends(get_services)) -> CategoryListResponse:
    """Categories with their store and coupon counts."""
    return services.listing.list_categories(request_origin(request, services.settings), request.url.path)
