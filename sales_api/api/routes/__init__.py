from __future__ import annotations

from sales_api.api.routes.auth import router as auth_router
from sales_api.api.routes.health import router as health_router
from sales_api.api.routes.sales import router as sales_router

__all__ = ["auth_router", "health_router", "sales_router"]
