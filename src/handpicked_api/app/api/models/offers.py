"""Pydantic models for the click and subscribe endpoints."""

from __future__ import annotations

from pydantic import BaseModel


class ClickRequest(BaseModel):
    referrer: str | None = None
    platform: str | None = None
    store_slug: str | None = None


class ClickResponse(BaseModel):
    ok: bool = True
    code: str | None = None
    redirect_url: str | None = None
    message: str = "Click recorded"


class SubscribeRequest(BaseModel):
    email: str | None = None
    source: str | None = None
    honeypot: str | None = None


class StatusResponse(BaseModel):
    ok: bool
    message: str
