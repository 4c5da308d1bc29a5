from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol


class SubscriptionsRepository(Protocol):
    def upsert_subscription(self, email: str, source: Optional[str], ip: str, created_at: datetime) -> None: ...
