"""Cached return-metrics service over the event store and valuation provider."""

from __future__ import annotations

import logging
from datetime import date

from folio_returns.cache import CacheDataKind, SingleflightCache, cache_build_key
from folio_returns.domain import Event, ValuationPoint
from folio_returns.store import (
    CurrencyConverterPort,
    EventStorePort,
    ValuationProviderPort,
    currency_convert_events,
    currency_convert_valuations,
)

from .annualization import DEFAULT_ANNUALIZATION_OPTIONS, AnnualizationOptions
from .calculator import ReturnCalculationRequest, returns_calculate_detailed
from .metrics import DetailedReturnMetrics, ReturnScope


logger = logging.getLogger(__name__)


class PortfolioReturnsService:
    """Read-through return metrics for stored user portfolios.

    Raw events and valuation series are read through the cache with their own
    TTL tiers; the calculated metrics are cached under a `returns` key
    qualified by currency, symbol, and date range. Valuation series are stored
    in `base_currency` and converted on read.
    """

    def __init__(
        self,
        event_store: EventStorePort,
        valuation_provider: ValuationProviderPort,
        cache: SingleflightCache,
        converter: CurrencyConverterPort,
        base_currency: str = "USD",
        options: AnnualizationOptions = DEFAULT_ANNUALIZATION_OPTIONS,
    ):
        self._event_store = event_store
        self._valuation_provider = valuation_provider
        self._cache = cache
        self._converter = converter
        self._base_currency = base_currency.upper()
        self._options = options

    async def returns_get_detailed(
        self,
        user_id: str,
        currency: str | None = None,
        symbol: str | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        include_volatility: bool = False,
    ) -> DetailedReturnMetrics:
        """Return detailed metrics for a stored portfolio or one of its holdings.

        Args:
            user_id: Owning user identifier.
            currency: Target currency, defaults to the base currency.
            symbol: Holding symbol, None for the whole portfolio.
            start_date: Optional inclusive period start.
            end_date: Optional inclusive period end.
            include_volatility: Whether to compute annualized volatility.

        Returns:
            DetailedReturnMetrics: Cached or freshly calculated metrics.

        Raises:
            DataIntegrityError: Raised when the stored event log is inconsistent.
            ValueError: Raised for an invalid range or unsupported currency.
        """

        target_currency = (currency or self._base_currency).upper()
        cache_key = cache_build_key(
            CacheDataKind.RETURNS,
            user_id,
            symbol,
            target_currency,
            start_date.isoformat() if start_date else "inception",
            end_date.isoformat() if end_date else "latest",
            "volatility" if include_volatility else "core",
        )

        async def _produce_metrics() -> DetailedReturnMetrics:
            events = await self._returns_cached_events(user_id)
            account_symbols = self._event_store.store_account_symbols(user_id)
            valuations = await self._returns_cached_points(user_id, symbol)
            account_balances: dict[str, tuple[ValuationPoint, ...]] = {}
            for account_symbol in sorted(account_symbols):
                account_balances[account_symbol] = currency_convert_valuations(
                    await self._returns_cached_points(user_id, account_symbol),
                    self._base_currency,
                    target_currency,
                    self._converter,
                )

            if symbol is None:
                scope = ReturnScope.for_portfolio(target_currency)
            elif symbol in account_symbols:
                scope = ReturnScope.for_account(symbol, target_currency)
            else:
                scope = ReturnScope.for_symbol(symbol, target_currency)

            request = ReturnCalculationRequest(
                scope=scope,
                events=currency_convert_events(events, target_currency, self._converter),
                valuations=currency_convert_valuations(
                    valuations,
                    self._base_currency,
                    target_currency,
                    self._converter,
                ),
                start_date=start_date,
                end_date=end_date,
                account_symbols=account_symbols,
                account_balances=account_balances,
                include_volatility=include_volatility,
            )
            logger.debug("calculating returns key=%s events=%d", cache_key, len(request.events))
            return returns_calculate_detailed(request, self._options)

        return await self._cache.get_or_fetch(
            cache_key,
            _produce_metrics,
            self._cache.ttl_policy.ttl_for(CacheDataKind.RETURNS),
        )

    def returns_calculate(self, request: ReturnCalculationRequest) -> DetailedReturnMetrics:
        """Calculate metrics for a caller-supplied request without caching."""

        return returns_calculate_detailed(request, self._options)

    async def _returns_cached_events(self, user_id: str) -> tuple[Event, ...]:
        return await self._cache.get_or_fetch(
            cache_build_key(CacheDataKind.TRANSACTIONS, user_id),
            lambda: self._event_store.store_list_events(user_id),
            self._cache.ttl_policy.ttl_for(CacheDataKind.TRANSACTIONS),
        )

    async def _returns_cached_points(self, user_id: str, symbol: str | None) -> tuple[ValuationPoint, ...]:
        return await self._cache.get_or_fetch(
            cache_build_key(CacheDataKind.PRICES, user_id, symbol),
            lambda: self._valuation_provider.valuation_list_points(user_id, symbol),
            self._cache.ttl_policy.ttl_for(CacheDataKind.PRICES),
        )


__all__ = ["PortfolioReturnsService"]
