"""Router for the offer click endpoint."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, Request
from fastapi.responses import JSONResponse

from handpicked_api.application.click_accountant import ClickContext
from handpicked_api.application.errors import RateLimitedError
from handpicked_api.app.api.models.offers import ClickRequest, ClickResponse, StatusResponse
from handpicked_api.app.services import AppServices, get_services
from handpicked_api.observability.logging import client_address

logger = logging.getLogger(__name__)

router = APIRouter()


def failure(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    body = StatusResponse(ok=False, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


@router.post(
    "/offers/{offer_id}/click",
    response_model=ClickResponse,
    responses={400: {"model": StatusResponse}, 404: {"model": StatusResponse}, 429: {"model": StatusResponse}},
)
def click_offer(
    offer_id: str,
    request: Request,
    body: ClickRequest | None = Body(None),
    services: AppServices = Depends(get_services),
):
    """
    Record a click on a canonical coupon or a merchant block and return where to send the shopper.

    Canonical coupons get their click counter incremented and reveal their code;
    merchant-block offers only produce an audit record.
    """
    offer_id = offer_id.strip()
    if not offer_id:
        return failure(400, "Missing offer id")

    ip = client_address(request)
    try:
        services.click_limiter.check(f"{ip}:{offer_id}")
    except RateLimitedError as e:
        return failure(429, str(e), headers={"Retry-After": str(e.retry_after_seconds)})

    body = body or ClickRequest()
    try:
        offer = services.resolver.resolve(offer_id)
        if offer is None:
            return failure(404, "Offer not found")
        outcome = services.accountant.record_click(
            offer,
            ClickContext(
                ip=ip,
                user_agent=request.headers.get("user-agent"),
                referrer=body.referrer or request.headers.get("referer"),
                platform=body.platform,
            ),
        )
    except Exception as e:
        logger.error(f"Failed to record click for offer {offer_id}: {e}")
        return failure(500, "Failed to record click")

    return ClickResponse(code=outcome.code, redirect_url=outcome.redirect_url)
