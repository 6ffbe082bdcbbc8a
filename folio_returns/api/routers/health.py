"""Health and cache-statistics router composition."""

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from folio_returns.cache import SingleflightCache


def api_create_health_router(cache: SingleflightCache) -> APIRouter:
    """Create health-check router exposing app and cache status.

    Args:
        cache: Process-wide singleflight cache.

    Returns:
        APIRouter: Router exposing `/health` and `/cache/stats` endpoints.

    Raises:
        ValueError: Raised when cache is invalid.
    """

    if cache is None:
        raise ValueError("cache must not be None")

    router = APIRouter(tags=["health"])

    @router.get("/health")
    def api_health_status() -> JSONResponse:
        """Return application health state.

        Returns:
            JSONResponse: Deterministic health payload for operational checks.
        """

        cache_stats = cache.stats()
        payload = {
            "status": "ok",
            "app": "up",
            "cache": {
                "entries": cache_stats.total_entries,
                "in_flight": cache_stats.in_flight,
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/cache/stats")
    def api_cache_stats() -> JSONResponse:
        """Return live cache entry counts grouped by data kind."""

        cache_stats = cache.stats()
        payload = {
            "total_entries": cache_stats.total_entries,
            "in_flight": cache_stats.in_flight,
            "entries_by_prefix": cache_stats.entries_by_prefix,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    return router


__all__ = ["api_create_health_router"]
