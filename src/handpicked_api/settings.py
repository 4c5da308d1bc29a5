from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """Runtime settings sourced from environment variables."""

    log_level: str = "INFO"
    app_version: str = "dev"
    runtime_adapters: str = ""
    # Public list cache
    cache_ttl_public: int = 60
    cache_max_entries: int = 5000
    # Link building
    public_api_base_url: Optional[str] = None
    public_site_url: Optional[str] = None
    public_base_path: Optional[str] = None
    # Rate limiting
    click_rate_limit: int = 12
    click_rate_window_seconds: int = 60
    click_rate_capacity: int = 50000
    subscribe_rate_limit: int = 10
    subscribe_rate_window_seconds: int = 60
    # Click audit
    audit_queue_size: int = 1000
    # Databricks settings
    databricks_server_hostname: Optional[str] = None
    databricks_http_path: Optional[str] = None
    databricks_access_token: Optional[str] = None
    databricks_catalog: Optional[str] = None
    databricks_schema: Optional[str] = None
    databricks_table_prefix: str = ""

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            app_version=os.getenv("APP_VERSION", cls.app_version),
            runtime_adapters=os.getenv("RUNTIME_ADAPTERS", cls.runtime_adapters).lower(),
            cache_ttl_public=int(os.getenv("CACHE_TTL_PUBLIC", cls.cache_ttl_public)),
            cache_max_entries=int(os.getenv("CACHE_MAX_ENTRIES", cls.cache_max_entries)),
            public_api_base_url=os.getenv("PUBLIC_API_BASE_URL") or None,
            public_site_url=os.getenv("PUBLIC_SITE_URL") or None,
            public_base_path=os.getenv("PUBLIC_BASE_PATH") or None,
            click_rate_limit=int(os.getenv("CLICK_RATE_LIMIT", cls.click_rate_limit)),
            click_rate_window_seconds=int(os.getenv("CLICK_RATE_WINDOW_SECONDS", cls.click_rate_window_seconds)),
            click_rate_capacity=int(os.getenv("CLICK_RATE_CAPACITY", cls.click_rate_capacity)),
            subscribe_rate_limit=int(os.getenv("SUBSCRIBE_RATE_LIMIT", cls.subscribe_rate_limit)),
            subscribe_rate_window_seconds=int(
                os.getenv("SUBSCRIBE_RATE_WINDOW_SECONDS", cls.subscribe_rate_window_seconds)
            ),
            audit_queue_size=int(os.getenv("AUDIT_QUEUE_SIZE", cls.audit_queue_size)),
            databricks_server_hostname=os.getenv("DATABRICKS_SERVER_HOSTNAME"),
            databricks_http_path=os.getenv("DATABRICKS_HTTP_PATH"),
            databricks_access_token=os.getenv("DATABRICKS_ACCESS_TOKEN"),
            databricks_catalog=os.getenv("DATABRICKS_CATALOG"),
            databricks_schema=os.getenv("DATABRICKS_SCHEMA"),
            databricks_table_prefix=os.getenv("DATABRICKS_TABLE_PREFIX", cls.databricks_table_prefix),
        )


def get_settings(_cache: dict[str, Settings] = {}) -> Settings:
    """Provide a simple cached settings object."""

    if "settings" not in _cache:
        _cache["settings"] = Settings.from_env()
    return _cache["settings"]
