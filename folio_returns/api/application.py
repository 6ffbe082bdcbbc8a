"""FastAPI application factory for the returns service.

This module composes the health, returns, and event-write routers around one
explicitly constructed cache, store, and returns service.
"""

from fastapi import FastAPI

from folio_returns.cache import SingleflightCache
from folio_returns.config import AppSettings
from folio_returns.returns import PortfolioReturnsService
from folio_returns.store import EventStorePort, ValuationStorePort

from .routers import api_create_events_router, api_create_health_router, api_create_returns_router


def create_api_application(
    settings: AppSettings,
    returns_service: PortfolioReturnsService,
    event_store: EventStorePort,
    valuation_store: ValuationStorePort,
    cache: SingleflightCache,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated application settings used for runtime metadata.
        returns_service: Cached return-metrics service.
        event_store: Writable event store.
        valuation_store: Writable valuation store.
        cache: Process-wide singleflight cache.

    Returns:
        FastAPI: Framework application instance.
    """
    application = FastAPI(title="Folio Returns")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return service metadata for bootstrap verification.

        Returns:
            dict[str, str]: Service name, status, environment, and currency.
        """

        return {
            "service": "folio-returns",
            "status": "ready",
            "environment": settings.environment_name,
            "default_currency": settings.default_currency,
        }

    application.include_router(api_create_health_router(cache=cache))
    application.include_router(
        api_create_returns_router(
            settings=settings,
            returns_service=returns_service,
            event_store=event_store,
        )
    )
    application.include_router(api_create_events_router(event_store=event_store, valuation_store=valuation_store))

    return application
