"""Prev/next, cursor and canonical link building for list pages."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

from handpicked_api.domain.listing.models import DEFAULT_LIMIT

_API_PREFIX = re.compile(r"^(/(api|public)(/v?\d+)?)+")


@dataclass(frozen=True)
class LinkConfig:
    """Link targets.

    ``api_base_url`` wins over ``site_url``; with neither, links stay relative.
    """

    api_base_url: Optional[str] = None
    site_url: Optional[str] = None
    base_path: Optional[str] = None

    @staticmethod
    def _strip(value: Optional[str]) -> str:
        return (value or "").strip().rstrip("/")

    @property
    def api_base(self) -> str:
        return self._strip(self.api_base_url)

    @property
    def site_origin(self) -> str:
        return self._strip(self.site_url)

    @property
    def site_base_path(self) -> str:
        return self._strip(self.base_path)


@dataclass(frozen=True)
class PageLinks:
    prev: Optional[str]
    next: Optional[str]
    total_pages: int


def total_pages_for(total: Optional[int], limit: int) -> int:
    return max(math.ceil((total or 0) / (limit or 1)), 1)


def normalize_path_to_frontend(raw_path: Optional[str], fallback: str = "/") -> str:
    """Map a backend path to its site route: ``/public/v1/coupons?x=1`` -> ``/coupons``."""
    if not raw_path:
        return fallback
    path = str(raw_path).strip().split("?")[0]
    path = _API_PREFIX.sub("", path)
    if path.lower().endswith(".json"):
        path = path[: -len(".json")]
    if not path.startswith("/"):
        path = f"/{path}"
    if path != "/":
        path = path.rstrip("/") or "/"
    return path or fallback


def build_query_string(params: Mapping[str, Any]) -> str:
    pairs = [(k, str(v)) for k, v in params.items() if v is not None and str(v) != ""]
    return f"?{urlencode(pairs)}" if pairs else ""


def build_prev_next(
    path: Optional[str],
    page: int,
    limit: int,
    total: Optional[int],
    extra_params: Optional[Mapping[str, Any]] = None,
    links: LinkConfig = LinkConfig(),
) -> PageLinks:
    total_pages = total_pages_for(total, limit)
    frontend_path = normalize_path_to_frontend(path, "/")
    api_base = links.api_base

    def make_link(target_page: int) -> str:
        params = dict(extra_params or {})
        if target_page > 1:
            params["page"] = target_page
        if limit != DEFAULT_LIMIT:
            params["limit"] = limit
        rel = f"{frontend_path}{build_query_string(params)}"
        if api_base:
            return f"{api_base}{rel}"
        if links.site_origin:
            return f"{links.site_origin}{links.site_base_path}{rel}"
        return rel

    prev_page = page - 1 if page > 1 else None
    next_page = page + 1 if page < total_pages else None
    return PageLinks(
        prev=make_link(prev_page) if prev_page else None,
        next=make_link(next_page) if next_page else None,
        total_pages=total_pages,
    )


def normalize_origin(raw: Optional[str]) -> str:
    if not raw:
        return ""
    origin = str(raw).strip().rstrip("/")
    if not origin:
        return ""
    if not re.match(r"^https?://", origin, re.IGNORECASE):
        origin = f"https://{origin}"
    return origin


def build_canonical(
    origin: Optional[str],
    path: Optional[str],
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    q: str = "",
    category: str = "",
    store: str = "",
    sort: str = "",
) -> str:
    """Canonical URL of a list page, absolute when an origin is known."""
    route = normalize_path_to_frontend(path, "/")
    params: dict[str, Any] = {"q": q, "category": category, "store": store, "sort": sort}
    if page != 1:
        params["page"] = page
    if limit != DEFAULT_LIMIT:
        params["limit"] = limit
    rel = f"{route}{build_query_string(params)}"
    origin_norm = normalize_origin(origin)
    return f"{origin_norm}{rel}" if origin_norm else rel


def build_cursor_link(
    path: Optional[str],
    cursor: Optional[str],
    limit: int,
    extra_params: Optional[Mapping[str, Any]] = None,
    links: LinkConfig = LinkConfig(),
) -> Optional[str]:
    """Link to the keyset page starting after ``cursor``."""
    if not cursor:
        return None
    params = dict(extra_params or {})
    params["cursor"] = cursor
    params["limit"] = limit
    rel = f"{normalize_path_to_frontend(path, '/')}{build_query_string(params)}"
    if links.api_base:
        return f"{links.api_base}{rel}"
    if links.site_origin:
        return f"{links.site_origin}{links.site_base_path}{rel}"
    return rel
