"""Tests for the cached stored-portfolio returns service."""

from __future__ import annotations

import asyncio
from datetime import date
from decimal import Decimal

from folio_returns.cache import SingleflightCache
from folio_returns.domain import Event, EventKind, ValuationPoint
from folio_returns.returns import PortfolioReturnsService, ReturnScopeKind
from folio_returns.store import InMemoryEventStore, InMemoryValuationStore, StaticRateCurrencyConverter


class _CountingValuationStore(InMemoryValuationStore):
    """Valuation store that counts series reads."""

    def __init__(self, cache: SingleflightCache):
        super().__init__(cache=cache)
        self.read_count = 0

    def valuation_list_points(self, user_id: str, symbol: str | None = None) -> tuple[ValuationPoint, ...]:
        self.read_count += 1
        return super().valuation_list_points(user_id, symbol)


def _build_service() -> tuple[PortfolioReturnsService, InMemoryEventStore, _CountingValuationStore, SingleflightCache]:
    cache = SingleflightCache()
    event_store = InMemoryEventStore(cache=cache)
    valuation_store = _CountingValuationStore(cache=cache)
    service = PortfolioReturnsService(
        event_store=event_store,
        valuation_provider=valuation_store,
        cache=cache,
        converter=StaticRateCurrencyConverter({("EUR", "USD"): "1.25"}),
        base_currency="USD",
    )
    event_store.store_add_event("u1", Event("b1", "AAPL", EventKind.BUY, 100, 10, 0, "USD", date(2024, 1, 2)))
    valuation_store.valuation_add_points(
        "u1",
        [ValuationPoint(date(2024, 1, 2), "1000"), ValuationPoint(date(2024, 6, 28), "1200")],
    )
    valuation_store.valuation_add_points(
        "u1",
        [ValuationPoint(date(2024, 1, 2), "1000"), ValuationPoint(date(2024, 6, 28), "1200")],
        symbol="AAPL",
    )
    return service, event_store, valuation_store, cache


def test_returns_service_caches_metrics_until_a_write_invalidates_them() -> None:
    """Serve repeated reads from cache and recompute after a store write.

    Returns:
        None: Assertions validate cache reuse and invalidation.

    Raises:
        AssertionError: Raised when cached metrics go stale after a write.
    """

    service, event_store, valuation_store, _ = _build_service()

    async def _scenario():
        first = await service.returns_get_detailed("u1")
        second = await service.returns_get_detailed("u1")
        event_store.store_add_event(
            "u1",
            Event("dv1", "AAPL", EventKind.DIVIDEND, 0, 0, 0, "USD", date(2024, 3, 1), amount=30),
        )
        third = await service.returns_get_detailed("u1")
        return first, second, third

    first, second, third = asyncio.run(_scenario())

    assert second is first
    assert first.metrics.total_pnl == Decimal("200")
    assert third.metrics.total_pnl == Decimal("230")
    assert valuation_store.read_count == 2


def test_returns_service_converts_to_requested_currency() -> None:
    """Convert stored base-currency data into the requested currency."""

    service, _, _, _ = _build_service()

    detailed = asyncio.run(service.returns_get_detailed("u1", currency="eur", symbol="AAPL"))

    assert detailed.metrics.scope.currency == "EUR"
    assert detailed.metrics.scope.kind == ReturnScopeKind.SYMBOL
    assert detailed.metrics.total_invested == Decimal("800")
    assert detailed.metrics.current_value == Decimal("960")
    assert detailed.metrics.unrealized_pnl == Decimal("160")


def test_returns_service_uses_account_scope_for_registered_accounts() -> None:
    """Resolve a registered account symbol to the account-holding scope."""

    service, event_store, valuation_store, _ = _build_service()
    event_store.store_register_account("u1", "SAVINGS")
    event_store.store_add_event(
        "u1",
        Event("d1", "SAVINGS", EventKind.DEPOSIT, 0, 0, 0, "USD", date(2024, 1, 2), amount=500),
    )
    valuation_store.valuation_add_points(
        "u1",
        [ValuationPoint(date(2024, 1, 2), "500"), ValuationPoint(date(2024, 6, 28), "520")],
        symbol="SAVINGS",
    )

    detailed = asyncio.run(service.returns_get_detailed("u1", symbol="SAVINGS"))

    assert detailed.metrics.scope.kind == ReturnScopeKind.ACCOUNT
    assert detailed.metrics.cost_basis == Decimal("500")
    assert detailed.metrics.unrealized_pnl == Decimal("20")


def test_returns_service_keys_cache_by_range_and_volatility() -> None:
    """Cache distinct entries for distinct ranges and volatility requests."""

    service, _, _, cache = _build_service()

    async def _scenario() -> None:
        await service.returns_get_detailed("u1")
        await service.returns_get_detailed("u1", include_volatility=True)
        await service.returns_get_detailed("u1", end_date=date(2024, 6, 30))

    asyncio.run(_scenario())

    assert cache.stats().entries_by_prefix["returns"] == 3
    assert cache.get("returns:u1:*:USD:inception:latest:core") is not None
    assert cache.get("returns:u1:*:USD:inception:2024-06-30:core") is not None
