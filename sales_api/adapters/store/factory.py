"""Factory and process-wide holder for the sales store."""

from __future__ import annotations

from sales_api.adapters.store.base import AbstractSalesStore
from sales_api.adapters.store.duckdb_store import DuckDBSalesStore
from sales_api.core.config import settings

_store: AbstractSalesStore | None = None


def create_sales_store() -> AbstractSalesStore:
    """Open the configured analytical store.

    Reads configuration from sales_api.core.config.settings.

    Raises:
        StoreError: If the database cannot be opened.
    """
    return DuckDBSalesStore.open(
        settings.store.path,
        schema_name=settings.store.schema_name,
        query_timeout_seconds=settings.store.query_timeout_seconds,
    )


def get_sales_store() -> AbstractSalesStore:
    """FastAPI dependency returning the shared store, opened on first use."""
    global _store

    if _store is None:
        _store = create_sales_store()
    return _store


async def close_sales_store() -> None:
    global _store

    if _store is not None:
        await _store.close()
        _store = None
