"""API router package for endpoint composition."""

from .events import api_create_events_router
from .health import api_create_health_router
from .returns import api_create_returns_router

__all__ = ["api_create_events_router", "api_create_health_router", "api_create_returns_router"]
