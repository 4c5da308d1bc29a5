"""Router for the coupon list endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Request

from handpicked_api.app.api.models.listing import ListResponse
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
from handpicked_api.domain.listing.models import (
    COUPON_SORTS,
    COUPON_STATUSES,
    COUPON_TYPES,
    EntityKind,
    ListQuery,
)

router = APIRouter()


@router.get("/coupons", response_model=ListResponse)
def list_coupons(
    request: Request,
    q: str | None = Query(None, description="Free-text match on the coupon title"),
    category: str | None = Query(None, description="Category slug"),
    store: str | None = Query(None, description="Store slug"),
    coupon_type: str | None = Query(None, alias="type", description="all | coupon | deal"),
    status: str | None = Query(None, description="active | expired | all"),
    sort: str | None = Query(None, description="latest | ending | trending | editor"),
    locale: str | None = Query(None),
    page: str | None = Query(None),
    limit: str | None = Query(None),
    cursor: str | None = Query(None, description="Opaque keyset cursor; takes precedence over page"),
    mode: str | None = Query(None, description="homepage selects the lightweight listing"),
    accept_language: str | None = Header(None),
    services: AppServices = Depends(get_services),
) -> ListResponse:
    """
    List published coupons.

    With a cursor the response carries ``next_cursor``/``has_more`` and a null
    total; otherwise it is offset-paginated with prev/next links.
    """
    query = ListQuery(
        entity_kind=EntityKind.COUPONS,
        q=val_text(q),
        category=val_slug(category),
        store=val_slug(store),
        type=val_enum(coupon_type, COUPON_TYPES, "all"),
        status=val_enum(status, COUPON_STATUSES, "active"),
        sort=val_enum(sort, COUPON_SORTS, "latest"),
        locale=derive_locale(locale, accept_language),
        page=val_page(page),
        limit=val_limit(limit),
        cursor=(cursor or "").strip() or None,
        mode=val_mode(mode),
    )
    return services.listing.list_page(query, request_origin(request, services.settings), request.url.path)
