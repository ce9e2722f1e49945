"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...services.routing.cache import optimization_cache

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


@router.get("/health/cache", status_code=status.HTTP_200_OK)
def health_cache() -> dict:
    """Route cache occupancy and hit rate."""
    return {"service": "route_cache", **optimization_cache.stats}
