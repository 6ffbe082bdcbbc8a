"""Application bootstrap wiring for startup validation and dependency assembly."""

from fastapi import FastAPI

from folio_returns.api import create_api_application
from folio_returns.cache import CacheTtlPolicy, SingleflightCache
from folio_returns.config import AppSettings, config_configure_logging, config_load_settings
from folio_returns.returns import AnnualizationOptions, PortfolioReturnsService
from folio_returns.store import InMemoryEventStore, InMemoryValuationStore, StaticRateCurrencyConverter


def bootstrap_create_cache(settings: AppSettings) -> SingleflightCache:
    """Build the process-wide cache from configured TTL tiers.

    Args:
        settings: Validated runtime settings.

    Returns:
        SingleflightCache: Empty cache instance.
    """

    return SingleflightCache(
        ttl_policy=CacheTtlPolicy(
            long_ttl_seconds=settings.cache_long_ttl_seconds,
            default_ttl_seconds=settings.cache_default_ttl_seconds,
            short_ttl_seconds=settings.cache_short_ttl_seconds,
        )
    )


def bootstrap_create_annualization_options(settings: AppSettings) -> AnnualizationOptions:
    """Build solver options from runtime settings."""

    return AnnualizationOptions(
        xirr_max_iterations=settings.xirr_max_iterations,
        xirr_tolerance=settings.xirr_tolerance,
        min_weighted_years=settings.twr_min_weighted_years,
    )


def bootstrap_create_currency_converter(settings: AppSettings) -> StaticRateCurrencyConverter:
    """Build the fixed-rate converter from configured `SOURCE/TARGET` rates."""

    rates = {}
    for pair, rate in settings.currency_rates.items():
        source_currency, _, target_currency = pair.partition("/")
        rates[(source_currency, target_currency)] = str(rate)
    return StaticRateCurrencyConverter(rates)


def bootstrap_create_application(settings: AppSettings | None = None) -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    Args:
        settings: Optional pre-validated settings; loaded from the environment
            when omitted.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    cache = bootstrap_create_cache(resolved_settings)
    event_store = InMemoryEventStore(cache=cache)
    valuation_store = InMemoryValuationStore(cache=cache)
    returns_service = PortfolioReturnsService(
        event_store=event_store,
        valuation_provider=valuation_store,
        cache=cache,
        converter=bootstrap_create_currency_converter(resolved_settings),
        base_currency=resolved_settings.default_currency,
        options=bootstrap_create_annualization_options(resolved_settings),
    )
    return create_api_application(
        settings=resolved_settings,
        returns_service=returns_service,
        event_store=event_store,
        valuation_store=valuation_store,
        cache=cache,
    )


def bootstrap_configure_runtime() -> AppSettings:
    """Load settings and configure process logging.

    Returns:
        AppSettings: Validated runtime settings.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    settings = config_load_settings()
    config_configure_logging(settings)
    return settings
