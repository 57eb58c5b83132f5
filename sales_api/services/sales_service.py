"""Sales query service: filter parsing, pagination and two-phase execution.

This service turns raw query-string values into a validated filter, then runs
the count and page queries against the analytical store and shapes the
paginated response. Validation happens before any store access.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any

from sales_api.adapters.store.base import AbstractSalesStore
from sales_api.core.errors import InvalidFilterError
from sales_api.utils.sale_transformer import transform_sale_records

logger = logging.getLogger(__name__)

DEFAULT_START_DATE = "1900-01-01"
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 100
MAX_PAGE_SIZE = 1000

_DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
_INT_PATTERN = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class SalesQuery:
    """Validated sales filter.

    Attributes:
        start_date: Only sales dated on or after this day are returned.
        page: 1-based page number.
        page_size: Rows per page, within [1, MAX_PAGE_SIZE].
    """

    start_date: date
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def _parse_int(raw: str | None, default: int) -> int:
    """Lenient integer parsing; anything but optionally signed ASCII digits yields ``default``."""
    if raw is None:
        return default
    value = raw.strip()
    if not _INT_PATTERN.fullmatch(value):
        return default
    try:
        return int(value)
    except ValueError:
        # beyond the interpreter's int-from-str digit limit
        return default


def _parse_start_date(raw: str | None) -> date:
    value = DEFAULT_START_DATE if raw is None or raw == "" else raw
    if not _DATE_PATTERN.fullmatch(value):
        raise InvalidFilterError(
            code="invalid_start_date",
            message="Invalid date format. Please use YYYY-MM-DD",
            details={"field": "startDate", "value": value[:32]},
        )
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise InvalidFilterError(
            code="invalid_start_date",
            message="Invalid date. Please use an existing calendar day in YYYY-MM-DD format",
            details={"field": "startDate", "value": value},
        ) from exc


def parse_sales_query(
    start_date: str | None = None,
    page: str | None = None,
    page_size: str | None = None,
) -> SalesQuery:
    """Build a SalesQuery from raw query-string values.

    ``page`` is floored to 1 and ``page_size`` clamped to [1, 1000]; missing or
    non-numeric values fall back to their defaults (1 and 100).

    Raises:
        InvalidFilterError: If ``start_date`` is not a valid YYYY-MM-DD date.
    """
    return SalesQuery(
        start_date=_parse_start_date(start_date),
        page=max(1, _parse_int(page, DEFAULT_PAGE)),
        page_size=max(1, min(MAX_PAGE_SIZE, _parse_int(page_size, DEFAULT_PAGE_SIZE))),
    )


def total_pages(total_records: int, page_size: int) -> int:
    return math.ceil(total_records / page_size)


class SalesService:
    """Serve paginated, transformed sales records from a store."""

    def __init__(self, store: AbstractSalesStore) -> None:
        self._store = store

    async def list_sales(self, query: SalesQuery) -> dict[str, Any]:
        """Run the count and page queries for ``query``.

        The two queries are independent; rows written between them may make
        the pagination block and the page disagree slightly.

        Returns:
            ``{"data": [...], "pagination": {...}}`` with response field names.

        Raises:
            StoreError: If either query fails.
        """
        total_records = await self._store.count_sales(query.start_date)
        if query.offset >= total_records:
            # Past the last page; also keeps huge offsets away from the store.
            rows: list[dict[str, Any]] = []
        else:
            rows = await self._store.fetch_sales(
                query.start_date,
                limit=query.page_size,
                offset=query.offset,
            )

        logger.info(
            "sales.page_served",
            extra={
                "start_date": query.start_date.isoformat(),
                "page": query.page,
                "page_size": query.page_size,
                "total_records": total_records,
                "row_count": len(rows),
            },
        )

        return {
            "data": transform_sale_records(rows),
            "pagination": {
                "currentPage": query.page,
                "pageSize": query.page_size,
                "totalRecords": total_records,
                "totalPages": total_pages(total_records, query.page_size),
            },
        }
