from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol


@dataclass(frozen=True)
class ClickAuditRecord:
    offer_id: str
    merchant_id: Optional[int]
    ip: str
    user_agent: Optional[str]
    created_at: datetime
    source: str
    block_meta: Optional[dict[str, Any]] = None
    referrer: Optional[str] = None
    platform: Optional[str] = None


class ClickAuditSink(Protocol):
    def write_click(self, record: ClickAuditRecord) -> None: ...
