from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from handpicked_api.application.errors import UpstreamError
from handpicked_api.app.api.errors import error_envelope
from handpicked_api.app.services import AppServices, get_services

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
def health(services: AppServices = Depends(get_services)) -> JSONResponse:
    """Store ping plus cache statistics; 503 when the store is unreachable."""
    try:
        services.catalog.ping()
    except UpstreamError as e:
        logger.error(f"Health check failed: {e}")
        return error_envelope(503, "Unhealthy")

    return JSONResponse(
        content={
            "data": {
                "status": "ok",
                "version": services.settings.app_version,
                "checks": {"db": "ok", "cache": services.cache.stats()},
                "generated_at": datetime.now(timezone.utc).isoformat(),
            },
            "meta": {},
        }
    )
