from __future__ import annotations

import json
import logging
from datetime import datetime

from handpicked_api.adapters.databricks.client import DatabricksSqlClient
from handpicked_api.adapters.databricks.tables import OFFER_CLICKS_TABLE, SUBSCRIPTIONS_TABLE, build_table_name
from handpicked_api.ports.audit_sink import ClickAuditRecord
from handpicked_api.settings import Settings

logger = logging.getLogger(__name__)


class DatabricksClickAuditSink:
    """Appends one row per click to the click audit table."""

    def __init__(self, client: DatabricksSqlClient, settings: Settings) -> None:
        self.client = client
        self.table_name = build_table_name(settings, OFFER_CLICKS_TABLE)

    def write_click(self, record: ClickAuditRecord) -> None:
        sql = f"""
        INSERT INTO {self.table_name} (
            offer_id, merchant_id, ip, user_agent, referrer, platform, source, block_meta, created_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
        """
        params = [
            record.offer_id,
            record.merchant_id,
            record.ip,
            record.user_agent,
            record.referrer,
            record.platform,
            record.source,
            json.dumps(record.block_meta) if record.block_meta is not None else None,
            record.created_at.isoformat(),
        ]
        self.client.execute(sql, params, retry=False)


class DatabricksSubscriptionsRepository:
    def __init__(self, client: DatabricksSqlClient, settings: Settings) -> None:
        self.client = client
        self.table_name = build_table_name(settings, SUBSCRIPTIONS_TABLE)

    def upsert_subscription(self, email: str, source: str | None, ip: str, created_at: datetime) -> None:
        """Insert the email or refresh its source/ip; the email is the merge key."""
        sql = f"""
        MERGE INTO {self.table_name} AS target
        USING (
            SELECT ? AS email, ? AS source, ? AS ip, CAST(? AS TIMESTAMP) AS created_at
        ) AS source
        ON target.email = source.email
        WHEN MATCHED THEN
            UPDATE SET source = source.source, ip = source.ip
        WHEN NOT MATCHED THEN
            INSERT (email, source, ip, created_at)
            VALUES (source.email, source.source, source.ip, source.created_at)
        """
        self.client.execute(sql, [email, source, ip, created_at.isoformat()])
        logger.info(f"Upserted newsletter subscription from source={source}")
