from __future__ import annotations

from fastapi import Request

from handpicked_api.app.api.validation import val_enum
from handpicked_api.domain.listing.models import ListMode
from handpicked_api.settings import Settings

MODES = tuple(mode.value for mode in ListMode)


def request_origin(request: Request, settings: Settings) -> str:
    """Public site origin used for canonical links."""
    return settings.public_site_url or str(request.base_url)


def val_mode(raw: str | None) -> ListMode:
    return ListMode(val_enum(raw, MODES, ListMode.DEFAULT.value))
