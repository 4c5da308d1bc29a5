"""Router for newsletter subscriptions."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from handpicked_api.application.errors import RateLimitedError, UpstreamError
from handpicked_api.app.api.models.offers import StatusResponse, SubscribeRequest
from handpicked_api.app.services import AppServices, get_services
from handpicked_api.observability.logging import client_address

logger = logging.getLogger(__name__)

router = APIRouter()

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]{2,}$")
MAX_EMAIL_LENGTH = 254
MAX_SOURCE_LENGTH = 100


def _status(status_code: int, ok: bool, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=StatusResponse(ok=ok, message=message).model_dump())


@router.post("/subscribe", response_model=StatusResponse)
def subscribe(
    request: Request,
    body: SubscribeRequest | None = Body(None),
    services: AppServices = Depends(get_services),
):
    ip = client_address(request)
    try:
        services.subscribe_limiter.check(ip)
    except RateLimitedError as e:
        return _status(429, False, str(e))

    body = body or SubscribeRequest()
    if body.honeypot:
        logger.warning(f"Honeypot filled on subscribe from {ip}, ignoring")
        return StatusResponse(ok=True, message="Subscribed")

    email = (body.email or "").strip().lower()
    if not email or len(email) > MAX_EMAIL_LENGTH or not EMAIL_PATTERN.match(email):
        return _status(400, False, "Invalid email address")

    source = (body.source or "").strip()[:MAX_SOURCE_LENGTH] or None
    try:
        services.subscriptions.upsert_subscription(email, source, ip, datetime.now(timezone.utc))
    except UpstreamError as e:
        logger.error(f"Failed to store subscription: {e}")
        return _status(500, False, "Failed to subscribe")

    return StatusResponse(ok=True, message="Subscribed")
