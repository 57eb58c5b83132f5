"""Pytest configuration and fixtures shared across all test modules.

This file is loaded by pytest before any test module, so the environment
variables below are in place before ``sales_api.core.config.settings`` is
created.
"""

import json
import os
import tempfile
from datetime import date
from pathlib import Path
from typing import Any

import bcrypt
import pytest

TEST_PASSWORD = "password123"

# CRITICAL: Set these before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DUCKDB_PATH", ":memory:")
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

_users_dir = Path(tempfile.mkdtemp(prefix="sales-api-tests-"))
_users_file = _users_dir / "users.json"
_users_file.write_text(
    json.dumps(
        {
            "users": [
                {
                    "username": "admin",
                    "password": bcrypt.hashpw(TEST_PASSWORD.encode(), bcrypt.gensalt(rounds=4)).decode(),
                },
                {
                    "username": "analyst",
                    "password": bcrypt.hashpw(b"another-secret", bcrypt.gensalt(rounds=4)).decode(),
                },
            ]
        }
    ),
    encoding="utf-8",
)
os.environ.setdefault("USERS_FILE", str(_users_file))

from sales_api.adapters.store.base import AbstractSalesStore  # noqa: E402


def make_row(day: str, client: str = "C1", amount: float = 100.0) -> dict[str, Any]:
    """Flat warehouse row as returned by the store."""
    return {
        "_client_bk": client,
        "client_name": f"Client {client}",
        "_employee_bk": "E1",
        "employee_name": "Jo",
        "department_name": "Sales",
        "region_name": "North",
        "sale_date": day,
        "formatted_date": f"formatted {day}",
        "month_year": f"month {day[:7]}",
        "sale_amount": amount,
    }


class FakeSalesStore(AbstractSalesStore):
    """In-memory store applying the same date filter and ordering as DuckDB."""

    def __init__(self, rows: list[dict[str, Any]] | None = None, error: Exception | None = None) -> None:
        self.rows = sorted(rows or [], key=lambda r: r["sale_date"])
        self.error = error
        self.calls: list[tuple] = []

    def _filtered(self, start_date: date) -> list[dict[str, Any]]:
        return [r for r in self.rows if r["sale_date"] >= start_date.isoformat()]

    async def count_sales(self, start_date: date) -> int:
        self.calls.append(("count", start_date))
        if self.error:
            raise self.error
        return len(self._filtered(start_date))

    async def fetch_sales(self, start_date: date, *, limit: int, offset: int) -> list[dict[str, Any]]:
        self.calls.append(("fetch", start_date, limit, offset))
        if self.error:
            raise self.error
        return [dict(r) for r in self._filtered(start_date)[offset : offset + limit]]


@pytest.fixture
def users_file() -> Path:
    return _users_file


@pytest.fixture
def sample_rows() -> list[dict[str, Any]]:
    return [
        make_row("2024-01-05", "C1", 10.0),
        make_row("2024-02-10", "C2", 20.0),
        make_row("2024-03-14", "C3", 30.0),
        make_row("2024-04-01", "C4", 40.0),
        make_row("2024-05-20", "C5", 50.0),
    ]


@pytest.fixture
def fake_store(sample_rows) -> FakeSalesStore:
    return FakeSalesStore(sample_rows)
