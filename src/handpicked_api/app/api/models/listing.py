"""Pydantic models for list responses."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class ListMeta(BaseModel):
    """Pagination metadata attached to every list response."""

    page: int
    limit: int
    total: int | None = Field(None, description="Null when unknown (cursor mode)")
    total_exact: bool = Field(True, description="False when total only counts the returned rows")
    canonical: str
    prev: str | None = None
    next: str | None = None
    total_pages: int = 1
    next_cursor: str | None = None
    prev_cursor: str | None = None
    has_more: bool | None = None


class ListResponse(BaseModel):
    """Envelope for list endpoints."""

    data: list[dict[str, Any]] = Field(default_factory=list)
    meta: ListMeta


class CategoryListMeta(BaseModel):
    total: int
    canonical: str


class CategoryListResponse(BaseModel):
    data: list[dict[str, Any]] = Field(default_factory=list)
    meta: CategoryListMeta


class DetailResponse(BaseModel):
    data: dict[str, Any]
    meta: dict[str, Any] = Field(default_factory=dict)
