from __future__ import annotations

import logging
import threading
import time
from typing import Any, Optional

from databricks import sql as databricks_sql

from handpicked_api.application.errors import UpstreamError
from handpicked_api.settings import Settings

logger = logging.getLogger(__name__)


class DatabricksSqlClient:
    """Client for executing SQL against the storefront warehouse using the SQL Connector.

    One connection is shared by all request threads; each statement opens its
    own cursor. Driver errors surface as ``UpstreamError`` after the retries
    are exhausted.
    """

    def __init__(self, settings: Settings, max_retries: int = 3, initial_delay: float = 0.2) -> None:
        self.settings = settings
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self._connection: Optional[Any] = None
        self._connect_lock = threading.Lock()

    def _connect(self) -> Any:
        """Create a connection to Databricks."""
        with self._connect_lock:
            if self._connection is None:
                if not all(
                    [
                        self.settings.databricks_server_hostname,
                        self.settings.databricks_http_path,
                        self.settings.databricks_access_token,
                    ]
                ):
                    raise ValueError(
                        "Databricks connection requires DATABRICKS_SERVER_HOSTNAME, "
                        "DATABRICKS_HTTP_PATH, and DATABRICKS_ACCESS_TOKEN"
                    )

                logger.info(f"Connecting to Databricks server: {self.settings.databricks_server_hostname}")

                connection_params = {
                    "server_hostname": self.settings.databricks_server_hostname,
                    "http_path": self.settings.databricks_http_path,
                    "access_token": self.settings.databricks_access_token,
                }
                if self.settings.databricks_catalog:
                    connection_params["catalog"] = self.settings.databricks_catalog
                if self.settings.databricks_schema:
                    connection_params["schema"] = self.settings.databricks_schema

                self._connection = databricks_sql.connect(**connection_params)

            return self._connection

    def _retry_on_error(self, operation, description: str):
        """Execute operation with retry logic for transient errors."""
        for attempt in range(self.max_retries):
            try:
                return operation()
            except ValueError:
                raise
            except Exception as e:
                if attempt < self.max_retries - 1:
                    delay = self.initial_delay * (2**attempt)
                    logger.warning(
                        f"{description} failed (attempt {attempt + 1}/{self.max_retries}), retrying in {delay}s: {e}"
                    )
                    time.sleep(delay)
                else:
                    logger.error(f"{description} failed after {self.max_retries} attempts: {e}")
                    raise UpstreamError(f"{description} failed: {e}", operation=description) from e
        raise UpstreamError(f"{description} was not attempted", operation=description)

    def query(self, sql: str, params: Optional[list[Any]] = None) -> list[dict[str, Any]]:
        """
        Execute a SELECT query and return results as a list of dictionaries.

        Args:
            sql: SQL query string with ? placeholders for positional params
            params: Positional parameters to substitute

        Returns:
            List of dictionaries, one per row
        """
        logger.debug(f"Executing query: {sql[:200]}...")

        def _execute_query():
            conn = self._connect()
            cursor = conn.cursor()
            try:
                if params:
                    cursor.execute(sql, parameters=params)
                else:
                    cursor.execute(sql)
                columns = [desc[0] for desc in cursor.description]
                rows = cursor.fetchall()
                return [dict(zip(columns, row)) for row in rows]
            finally:
                cursor.close()

        return self._retry_on_error(_execute_query, "query")

    def execute(self, sql: str, params: Optional[list[Any]] = None, retry: bool = True) -> None:
        """
        Execute a DML statement (INSERT, UPDATE, MERGE).

        Args:
            sql: SQL statement with ? placeholders for positional params
            params: Positional parameters to substitute
            retry: Retry transient failures. Pass False for statements that
                must not be applied twice (inserts, counter increments); a
                failure then surfaces as UpstreamError after one attempt.
        """
        logger.debug(f"Executing statement: {sql[:200]}...")

        def _execute_stmt():
            conn = self._connect()
            cursor = conn.cursor()
            try:
                if params:
                    cursor.execute(sql, parameters=params)
                else:
                    cursor.execute(sql)
                conn.commit()
            finally:
                cursor.close()

        if retry:
            self._retry_on_error(_execute_stmt, "statement")
            return
        try:
            _execute_stmt()
        except ValueError:
            raise
        except Exception as e:
            logger.error(f"statement failed, not retried: {e}")
            raise UpstreamError(f"statement failed: {e}", operation="statement") from e

    def close(self) -> None:
        """Close the connection."""
        if self._connection:
            try:
                self._connection.close()
                logger.info("Closed Databricks connection")
            except Exception as e:
                logger.warning(f"Error closing connection: {e}")
            finally:
                self._connection = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
