"""
Health check endpoints.

Liveness and readiness probes. Readiness checks the card cache database
and reports how much of the cache is fresh.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from edhbuilder.config import settings
from edhbuilder.db.database import get_session
from edhbuilder.db.operations import get_cache_stats

router = APIRouter(tags=["health"])


class CacheStatus(BaseModel):
    total_cards: int
    fresh_cards: int
    stale_cards: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    database: str | None = None
    card_cache: CacheStatus | None = None


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness probe. Does not check dependencies."""
    return HealthResponse(status="healthy")


@router.get(
    "/ready",
    response_model=HealthResponse,
    responses={503: {"model": HealthResponse}},
)
async def ready(
    response: Response,
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """
    Readiness probe.

    Imports still work without the card cache, but slower and closer to
    Scryfall's rate limit, so a missing database means not ready (503).
    """
    try:
        stats = await get_cache_stats(session, settings.card_cache_stale_days)
    except SQLAlchemyError:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return HealthResponse(status="not ready", database="disconnected")

    return HealthResponse(
        status="ready",
        database="connected",
        card_cache=CacheStatus(**stats),
    )
