"""Router for blog list and detail endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Header, Query, Request

from handpicked_api.application.errors import NotFoundError
from handpicked_api.app.api.models.listing import DetailResponse, ListResponse
from handpicked_api.app.api.routers.common import request_origin, val_mode
from handpicked_api.app.api.validation import (
    derive_locale,
    val_category_id,
    val_enum,
    val_limit,
    val_page,
    val_slug,
    val_text,
)
from handpicked_api.app.services import AppServices, get_services
from handpicked_api.domain.listing.models import BLOG_SORTS, EntityKind, ListQuery
from handpicked_api.domain.listing.pagination import build_canonical

router = APIRouter()


@router.get("/blogs", response_model=ListResponse)
def list_blogs(
    request: Request,
    q: str | None = Query(None, description="Free-text match on the blog title"),
    category_id: str | None = Query(None, description="Numeric blog category id"),
    sort: str | None = Query(None, description="latest | featured"),
    locale: str | None = Query(None),
    page: str | None = Query(None),
    limit: str | None = Query(None),
    mode: str | None = Query(None),
    accept_language: str | None = Header(None),
    services: AppServices = Depends(get_services),
) -> ListResponse:
    query = ListQuery(
        entity_kind=EntityKind.BLOGS,
        q=val_text(q),
        category=val_category_id(category_id),
        sort=val_enum(sort, BLOG_SORTS, "latest"),
        locale=derive_locale(locale, accept_language),
        page=val_page(page),
        limit=val_limit(limit),
        mode=val_mode(mode),
    )
    return services.listing.list_page(query, request_origin(request, services.settings), request.url.path)


@router.get("/blogs/{slug}", response_model=DetailResponse)
def get_blog(
    request: Request,
    slug: str,
    services: AppServices = Depends(get_services),
) -> DetailResponse:
    blog = services.listing.get_detail(EntityKind.BLOGS, val_slug(slug))
    if blog is None:
        raise NotFoundError("Blog not found")
    canonical = build_canonical(request_origin(request, services.settings), request.url.path)
    return DetailResponse(data=blog, meta={"canonical": canonical})
