"""Router for store list and detail endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Request

from handpicked_api.application.errors import NotFoundError
from handpicked_api.app.api.models.listing import DetailResponse, ListResponse
from handpicked_api.app.api.routers.common import request_origin, val_mode
from handpicked_api.app.api.validation import (
    derive_locale,
    val_enum,
    val_limit,
    val_page,
    val_slug,
    val_text,
)
from handpicked_api.app.services import AppServices, get_services
from handpicked_api.domain.listing.models import STORE_SORTS, EntityKind, ListQuery
from handpicked_api.domain.listing.pagination import build_canonical

router = APIRouter()


@router.get("/stores", response_model=ListResponse)
def list_stores(
    request: Request,
    q: str | None = Query(None, description="Free-text match on the store name"),
    category: str | None = Query(None, description="Category slug"),
    sort: str | None = Query(None, description="newest | popular"),
    locale: str | None = Query(None),
    page: str | None = Query(None),
    limit: str | None = Query(None),
    mode: str | None = Query(None),
    accept_language: str | None = Header(None),
    services: AppServices = Depends(get_services),
) -> ListResponse:
    query = ListQuery(
        entity_kind=EntityKind.STORES,
        q=val_text(q),
        category=val_slug(category),
        sort=val_enum(sort, STORE_SORTS, "newest"),
        locale=derive_locale(locale, accept_language),
        page=val_page(page),
        limit=val_limit(limit),
        mode=val_mode(mode),
    )
    return services.listing.list_page(query, request_origin(request, services.settings), request.url.path)


@router.get("/stores/{slug}", response_model=DetailResponse)
def get_store(
    request: Request,
    slug: str,
    services: AppServices = Depends(get_services),
) -> DetailResponse:
    """Store detail; each h2/h3 block carries the offer id used to click it."""
    store = services.listing.get_detail(EntityKind.STORES, val_slug(slug))
    if store is None:
        raise NotFoundError("Store not found")
    canonical = build_canonical(request_origin(request, services.settings), request.url.path)
    return DetailResponse(data=store, meta={"canonical": canonical})
