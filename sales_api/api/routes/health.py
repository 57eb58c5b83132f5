"""Liveness endpoint."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

router = APIRouter(tags=["Health"])


@router.get("/healthcheck", response_class=PlainTextResponse)
def health_check() -> str:
    """Liveness probe: no authentication, no rate limit.

    Returns:
        The plain-text body ``ok``.
    """

    return "ok"
