"""Tests for in-memory event and valuation stores and their cache invalidation."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from folio_returns.cache import CacheDataKind, SingleflightCache, cache_build_key
from folio_returns.domain import DuplicateEventError, Event, EventKind, ValuationPoint
from folio_returns.store import InMemoryEventStore, InMemoryValuationStore


def _buy(event_id: str, symbol: str = "AAPL") -> Event:
    return Event(event_id, symbol, EventKind.BUY, 1, 100, 0, "USD", date(2024, 1, 2))


def test_store_events_are_listed_in_insertion_order_per_user() -> None:
    """List a user's events in insertion order with an optional symbol filter."""

    store = InMemoryEventStore()
    store.store_add_event("u1", _buy("e2"))
    store.store_add_event("u1", _buy("e1", symbol="MSFT"))
    store.store_add_event("u2", _buy("e9"))

    assert [event.event_id for event in store.store_list_events("u1")] == ["e2", "e1"]
    assert [event.event_id for event in store.store_list_events("u1", symbol="MSFT")] == ["e1"]
    assert store.store_list_events("u3") == ()
    assert store.store_get_event("u2", "e9").symbol == "AAPL"


def test_store_rejects_duplicate_and_unknown_events() -> None:
    """Reject duplicate ids on insert and unknown ids on replace/delete.

    Returns:
        None: Assertions validate store error semantics.

    Raises:
        AssertionError: Raised when invalid writes are accepted.
    """

    store = InMemoryEventStore()
    store.store_add_event("u1", _buy("e1"))

    with pytest.raises(DuplicateEventError, match="already exists") as duplicate:
        store.store_add_event("u1", _buy("e1"))
    assert duplicate.value.error_code == "DUPLICATE_EVENT"
    with pytest.raises(ValueError, match="already exists"):
        store.store_add_events("u1", [_buy("e2"), _buy("e2")])
    with pytest.raises(KeyError):
        store.store_replace_event("u1", _buy("missing"))
    with pytest.raises(KeyError):
        store.store_delete_event("u1", "missing")
    with pytest.raises(KeyError):
        store.store_get_event("u1", "missing")

    assert [event.event_id for event in store.store_list_events("u1")] == ["e1"]


def test_store_replace_and_delete_events() -> None:
    """Replace an event wholesale and delete it afterwards."""

    store = InMemoryEventStore()
    store.store_add_events("u1", [_buy("e1"), _buy("e2")])

    replacement = Event("e1", "AAPL", EventKind.BUY, 5, 90, 1, "USD", date(2024, 1, 3))
    store.store_replace_event("u1", replacement)
    store.store_delete_event("u1", "e2")

    assert store.store_list_events("u1") == (replacement,)


def test_store_account_registration_and_user_presence() -> None:
    """Track account symbols per user and report known users."""

    store = InMemoryEventStore()
    store.store_register_account("u1", " SAVINGS ")

    assert store.store_account_symbols("u1") == frozenset({"SAVINGS"})
    assert store.store_account_symbols("u2") == frozenset()
    assert store.store_has_user("u1") is True
    assert store.store_has_user("u2") is False
    with pytest.raises(ValueError, match="symbol must not be blank"):
        store.store_register_account("u1", " ")


def test_store_writes_invalidate_owning_user_cache_entries() -> None:
    """Drop only the writing user's cached entries on every store write.

    Returns:
        None: Assertions validate per-user invalidation.

    Raises:
        AssertionError: Raised when stale entries survive a write.
    """

    cache = SingleflightCache()
    event_store = InMemoryEventStore(cache=cache)
    valuation_store = InMemoryValuationStore(cache=cache)
    user_key = cache_build_key(CacheDataKind.RETURNS, "u1", None, "USD")
    other_key = cache_build_key(CacheDataKind.RETURNS, "u2", None, "USD")

    cache.set(user_key, "stale")
    cache.set(other_key, "kept")
    event_store.store_add_event("u1", _buy("e1"))

    assert cache.get(user_key) is None
    assert cache.get(other_key) == "kept"

    cache.set(user_key, "stale")
    valuation_store.valuation_add_points("u1", [ValuationPoint(date(2024, 1, 2), "100")])
    assert cache.get(user_key) is None


def test_store_valuation_points_upsert_by_date_and_sort() -> None:
    """Replace same-date points and return series sorted by date."""

    store = InMemoryValuationStore()
    store.valuation_add_points(
        "u1",
        [ValuationPoint(date(2024, 2, 1), "110"), ValuationPoint(date(2024, 1, 1), "100")],
    )
    written = store.valuation_add_points("u1", [ValuationPoint(date(2024, 2, 1), "120")])
    store.valuation_add_points("u1", [ValuationPoint(date(2024, 1, 1), "50")], symbol="AAPL")

    portfolio_series = store.valuation_list_points("u1")

    assert written == 1
    assert [point.point_date for point in portfolio_series] == [date(2024, 1, 1), date(2024, 2, 1)]
    assert portfolio_series[-1].total_value == Decimal("120")
    assert store.valuation_list_points("u1", "AAPL")[0].total_value == Decimal("50")
    assert store.valuation_list_points("u1", "MSFT") == ()
    assert store.valuation_has_user("u1") is True
