from sales_api.adapters.store.base import AbstractSalesStore
from sales_api.adapters.store.duckdb_store import DuckDBSalesStore

__all__ = ["AbstractSalesStore", "DuckDBSalesStore"]
