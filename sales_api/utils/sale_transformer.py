"""Reshape flat warehouse rows into the nested sale response shape."""

from __future__ import annotations

from typing import Any, Iterable, Mapping


def transform_sale_record(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Group a flat sale row into client, employee and date blocks.

    Pure and row-independent; the input mapping is left untouched.

    Args:
        raw: Row with the warehouse column names (``_client_bk``, ``client_name``,
            ``_employee_bk``, ``employee_name``, ``department_name``,
            ``region_name``, ``sale_date``, ``formatted_date``, ``month_year``,
            ``sale_amount``).

    Returns:
        Nested dict using the response field names (``monthYear``, ``saleAmount``).
    """
    return {
        "client": {
            "id": raw["_client_bk"],
            "name": raw["client_name"],
        },
        "employee": {
            "id": raw["_employee_bk"],
            "name": raw["employee_name"],
            "department": raw["department_name"],
        },
        "date": {
            "id": raw["sale_date"],
            "formatted": raw["formatted_date"],
            "monthYear": raw["month_year"],
        },
        "region": raw["region_name"],
        "saleAmount": raw["sale_amount"],
    }


def transform_sale_records(rows: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    return [transform_sale_record(row) for row in rows]
