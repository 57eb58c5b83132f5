"""Sales listing route: paginated, authenticated and rate limited."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from sales_api.adapters.store.base import AbstractSalesStore
from sales_api.adapters.store.factory import get_sales_store
from sales_api.core.rate_limit import enforce_sales_rate_limit
from sales_api.schemas.sales import PaginatedSalesResponse
from sales_api.services.sales_service import SalesQuery, SalesService, parse_sales_query

router = APIRouter(tags=["Sales"])


def sales_query_params(
    start_date: Annotated[
        str | None,
        Query(alias="startDate", description="Return sales from this date on (YYYY-MM-DD).", examples=["2024-01-01"]),
    ] = None,
    page: Annotated[
        str | None,
        Query(description="1-based page number (default 1).", examples=["1"]),
    ] = None,
    page_size: Annotated[
        str | None,
        Query(alias="pageSize", description="Records per page, 1-1000 (default 100).", examples=["100"]),
    ] = None,
) -> SalesQuery:
    """Parse the query string leniently.

    Non-numeric ``page``/``pageSize`` fall back to defaults and out-of-range
    values are clamped; only ``startDate`` can be rejected.
    """
    return parse_sales_query(start_date=start_date, page=page, page_size=page_size)


def get_sales_service(
    store: Annotated[AbstractSalesStore, Depends(get_sales_store)],
) -> SalesService:
    """Build the sales service over the shared store.

    Args:
        store: Analytical store, overridable in tests via dependency_overrides.

    Returns:
        SalesService bound to ``store``.
    """
    return SalesService(store)


@router.get(
    "/sales",
    response_model=PaginatedSalesResponse,
    dependencies=[Depends(enforce_sales_rate_limit)],
    responses={
        400: {"description": "Invalid parameters"},
        401: {"description": "Missing authentication token"},
        403: {"description": "Invalid or expired token"},
        429: {"description": "Too many requests"},
        500: {"description": "Database error"},
        503: {"description": "Rate limiter unavailable"},
    },
)
async def list_sales(
    query: Annotated[SalesQuery, Depends(sales_query_params)],
    service: Annotated[SalesService, Depends(get_sales_service)],
) -> dict:
    """Return one page of sales records plus pagination metadata.

    Requires a bearer token; requests are throttled per client IP and user.
    The filter is validated before the store is touched.

    Args:
        query: Parsed ``startDate``/``page``/``pageSize`` filter.
        service: Sales service bound to the analytical store.

    Returns:
        dict: ``{"data": [...], "pagination": {currentPage, pageSize,
            totalRecords, totalPages}}``.

    Raises:
        InvalidFilterError: Malformed ``startDate`` (400).
        StoreError: Analytical store failure (500).

    Example:
        curl "http://localhost:3000/api/sales?startDate=2024-01-01&page=2&pageSize=50" \\
            -H "Authorization: Bearer <token>"
    """
    return await service.list_sales(query)
