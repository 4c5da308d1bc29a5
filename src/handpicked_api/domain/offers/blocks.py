"""Parsing of the JSON block arrays stored on merchant rows."""

from __future__ import annotations

import json
import logging
from typing import Any

import jsonschema

from handpicked_api.domain.offers.models import MerchantBlock

logger = logging.getLogger(__name__)

BLOCK_ARRAY_SCHEMA: dict[str, Any] = {
    "type": "array",
    "items": {
        "type": "object",
        "properties": {
            "heading": {"type": ["string", "null"]},
            "title": {"type": ["string", "null"]},
            "description": {"type": ["string", "null"]},
            "redirect_url": {"type": ["string", "null"]},
        },
    },
}


def parse_block_array(value: Any, column: str = "blocks") -> tuple[MerchantBlock, ...]:
    """Parse a block column (JSON text or already-decoded list).

    An array that fails validation is treated as empty rather than partially
    used, so block indexes always refer to the stored array positions.
    """
    if value is None or value == "":
        return ()
    data = value
    if isinstance(value, (str, bytes)):
        try:
            data = json.loads(value)
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning(f"Failed to parse {column} JSON: {e}")
            return ()
    try:
        jsonschema.validate(instance=data, schema=BLOCK_ARRAY_SCHEMA)
    except jsonschema.ValidationError as e:
        logger.warning(f"Ignoring invalid {column}: {e.message}")
        return ()
    return tuple(MerchantBlock.from_payload(item) for item in data)
