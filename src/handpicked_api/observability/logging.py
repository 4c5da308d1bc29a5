from __future__ import annotations

import logging
import sys
import time
from typing import Awaitable, Callable, Optional

from fastapi import Request, Response

from handpicked_api.settings import get_settings

request_logger = logging.getLogger("handpicked_api.requests")


def configure_logging(level: Optional[str] = None) -> None:
    settings = get_settings()
    log_level = level or settings.log_level
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        stream=sys.stdout,
    )


def client_address(request: Request) -> str:
    """First hop of X-Forwarded-For, else the socket peer, else "unknown"."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


async def log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """HTTP middleware emitting one line per finished request."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = round((time.perf_counter() - start) * 1000)
    request_logger.info(
        f"{request.method} {request.url.path} status={response.status_code} duration_ms={duration_ms}",
        extra={
            "client_ip": client_address(request),
            "user_agent": request.headers.get("user-agent"),
        },
    )
    return response
