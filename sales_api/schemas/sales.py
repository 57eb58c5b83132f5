"""Pydantic schemas for the sales endpoint responses."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class ClientInfo(_CamelModel):
    id: str = Field(..., description="Client business key.", examples=["CLIENT001"])
    name: str = Field(..., description="Client name.", examples=["Acme Corp"])


class EmployeeInfo(_CamelModel):
    id: str = Field(..., description="Employee business key.", examples=["EMP001"])
    name: str = Field(..., description="Employee name.", examples=["John Doe"])
    department: str = Field(..., description="Employee department.", examples=["Sales"])


class SaleDate(_CamelModel):
    id: str = Field(..., description="Raw sale date (YYYY-MM-DD).", examples=["2024-03-14"])
    formatted: str = Field(..., description="Human-readable date.", examples=["March 14, 2024"])
    month_year: str = Field(..., alias="monthYear", description="Month and year of the sale.", examples=["March 2024"])


class SaleRecord(_CamelModel):
    """A sale grouped into client, employee and date blocks."""

    client: ClientInfo
    employee: EmployeeInfo
    date: SaleDate
    region: str = Field(..., description="Sales region name.", examples=["North America"])
    sale_amount: float = Field(..., alias="saleAmount", description="Sale amount.", examples=[1500.5])


class Pagination(_CamelModel):
    """Pagination block; ``total_pages == ceil(total_records / page_size)``."""

    current_page: int = Field(..., alias="currentPage", ge=1)
    page_size: int = Field(..., alias="pageSize", ge=1, le=1000)
    total_records: int = Field(..., alias="totalRecords", ge=0)
    total_pages: int = Field(..., alias="totalPages", ge=0)


class PaginatedSalesResponse(_CamelModel):
    data: list[SaleRecord] = Field(default_factory=list)
    pagination: Pagination
