"""Analytical store interface.

Services depend on this abstraction, not on DuckDB, so tests can swap in an
in-memory fake and the store can be replaced without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Any


class AbstractSalesStore(ABC):
    """Read-only access to the joined sales fact/dimension tables.

    ``count_sales`` and ``fetch_sales`` must apply the same filter predicate
    over the same join so pagination metadata matches the returned pages.
    """

    @abstractmethod
    async def count_sales(self, start_date: date) -> int:
        """Count joined sale rows dated on or after ``start_date``.

        Raises:
            StoreError: If the store fails.
        """
        ...

    @abstractmethod
    async def fetch_sales(self, start_date: date, *, limit: int, offset: int) -> list[dict[str, Any]]:
        """Fetch one page of flat sale rows ordered by date ascending.

        Rows carry the columns ``_client_bk``, ``client_name``, ``_employee_bk``,
        ``employee_name``, ``department_name``, ``region_name``, ``sale_date``,
        ``formatted_date``, ``month_year`` and ``sale_amount``.

        Raises:
            StoreError: If the store fails.
        """
        ...

    async def close(self) -> None:
        """Release the underlying connection (no-op by default)."""
