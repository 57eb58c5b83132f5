"""DuckDB implementation of the sales store.

The database file is opened read-only. Each query gets its own cursor and
runs in the default thread pool; a query exceeding the configured timeout is
interrupted and reported as a StoreError.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import date
from typing import Any

import duckdb

from sales_api.adapters.store.base import AbstractSalesStore
from sales_api.core.errors import StoreError

logger = logging.getLogger(__name__)

SALE_COLUMNS = (
    "_client_bk",
    "client_name",
    "_employee_bk",
    "employee_name",
    "department_name",
    "region_name",
    "sale_date",
    "formatted_date",
    "month_year",
    "sale_amount",
)

# Shared by the count and page queries so both see the same rows.
_FILTERED_SALES = """
    FROM {schema}.fct_sale
    INNER JOIN {schema}.dim_client
        ON fct_sale._client_hk = dim_client._client_hk
    INNER JOIN {schema}.dim_employee
        ON fct_sale._employee_hk = dim_employee._employee_hk
    INNER JOIN {schema}.dim_region
        ON fct_sale._region_hk = dim_region._region_hk
    INNER JOIN {schema}.dim_date
        ON fct_sale.sale_date = dim_date.date_id
    WHERE dim_date.date_id >= ?::DATE
"""

_COUNT_SQL = "SELECT COUNT(*)::BIGINT AS total" + _FILTERED_SALES

_PAGE_SQL = (
    """
    SELECT
        CAST(dim_client._client_bk AS VARCHAR) AS _client_bk,
        dim_client.client_name,
        CAST(dim_employee._employee_bk AS VARCHAR) AS _employee_bk,
        dim_employee.employee_name,
        dim_employee.department_name,
        dim_region.region_name,
        CAST(dim_date.date_id AS VARCHAR) AS sale_date,
        dim_date.formatted_date,
        dim_date.month_year,
        CAST(fct_sale.sale_amount AS DOUBLE) AS sale_amount
    """
    + _FILTERED_SALES
    + """
    ORDER BY
        dim_date.date_id ASC,
        dim_client._client_bk ASC,
        dim_employee._employee_bk ASC,
        dim_region.region_name ASC,
        fct_sale.sale_amount ASC
    LIMIT ? OFFSET ?
    """
)


class DuckDBSalesStore(AbstractSalesStore):
    """Sales store over a DuckDB warehouse (``fct_sale`` + ``dim_*`` tables)."""

    def __init__(
        self,
        connection: duckdb.DuckDBPyConnection,
        *,
        schema_name: str = "dwh.main",
        query_timeout_seconds: float = 10.0,
    ) -> None:
        self._conn = connection
        self._timeout = query_timeout_seconds
        self._count_sql = _COUNT_SQL.format(schema=schema_name)
        self._page_sql = _PAGE_SQL.format(schema=schema_name)

    @classmethod
    def open(
        cls,
        path: str,
        *,
        schema_name: str = "dwh.main",
        query_timeout_seconds: float = 10.0,
    ) -> "DuckDBSalesStore":
        """Open the warehouse file read-only.

        Raises:
            StoreError: If the file cannot be opened.
        """
        try:
            connection = duckdb.connect(database=path, read_only=True)
        except duckdb.Error as exc:
            logger.error(
                "store.open_failed",
                extra={"path": path, "error_type": type(exc).__name__, "error_msg": str(exc)},
            )
            raise StoreError(code="store_unavailable", message="Database error") from exc

        logger.info("store.opened", extra={"path": path, "schema": schema_name})
        return cls(connection, schema_name=schema_name, query_timeout_seconds=query_timeout_seconds)

    @staticmethod
    def _run(cursor: duckdb.DuckDBPyConnection, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        # Runs on the worker thread, which owns the cursor until it returns.
        try:
            cursor.execute(sql, params)
            columns = [col[0] for col in cursor.description]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            cursor.close()

    @staticmethod
    def _interrupt(cursor: duckdb.DuckDBPyConnection) -> None:
        try:
            cursor.interrupt()
        except duckdb.Error:
            # The worker finished and closed the cursor first.
            logger.debug("store.interrupt_skipped")

    async def _query(self, operation: str, sql: str, params: list[Any]) -> list[dict[str, Any]]:
        loop = asyncio.get_running_loop()
        cursor = self._conn.cursor()
        try:
            return await asyncio.wait_for(
                loop.run_in_executor(None, self._run, cursor, sql, params),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            self._interrupt(cursor)
            logger.error(
                "store.query_timeout",
                extra={"operation": operation, "timeout_seconds": self._timeout},
            )
            raise StoreError(code="store_timeout", message="Database error") from exc
        except asyncio.CancelledError:
            # Inbound request went away; stop the query instead of letting it run on.
            self._interrupt(cursor)
            raise
        except duckdb.Error as exc:
            logger.error(
                "store.query_failed",
                extra={
                    "operation": operation,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise StoreError(code="store_error", message="Database error") from exc

    async def count_sales(self, start_date: date) -> int:
        rows = await self._query("count_sales", self._count_sql, [start_date.isoformat()])
        return int(rows[0]["total"]) if rows else 0

    async def fetch_sales(self, start_date: date, *, limit: int, offset: int) -> list[dict[str, Any]]:
        return await self._query("fetch_sales", self._page_sql, [start_date.isoformat(), limit, offset])

    async def close(self) -> None:
        self._conn.close()
        logger.info("store.closed")
