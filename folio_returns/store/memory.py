"""In-memory event and valuation stores.

These stand in for a live backing store in demos and tests. Every write
invalidates the owning user's cache entries so derived metrics are recomputed
on the next read.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date

from folio_returns.cache import SingleflightCache
from folio_returns.domain import DuplicateEventError, Event, ValuationPoint


logger = logging.getLogger(__name__)

_PORTFOLIO_SERIES_KEY = "*"


class InMemoryEventStore:
    """Per-user event log held in process memory."""

    def __init__(self, cache: SingleflightCache | None = None):
        """Initialize an empty store.

        Args:
            cache: Cache whose user entries are invalidated on every write.
        """

        self._cache = cache
        self._events: dict[str, dict[str, Event]] = {}
        self._account_symbols: dict[str, set[str]] = {}

    def store_list_events(self, user_id: str, symbol: str | None = None) -> tuple[Event, ...]:
        """Return a user's events in insertion order, optionally for one symbol."""

        user_events = self._events.get(user_id, {})
        return tuple(event for event in user_events.values() if symbol is None or event.symbol == symbol)

    def store_get_event(self, user_id: str, event_id: str) -> Event:
        """Return one event.

        Raises:
            KeyError: Raised when the event id is unknown.
        """

        try:
            return self._events[user_id][event_id]
        except KeyError as error:
            raise KeyError(f"event {event_id} not found for user {user_id}") from error

    def store_add_event(self, user_id: str, event: Event) -> Event:
        """Append one event.

        Args:
            user_id: Owning user identifier.
            event: Event to store.

        Returns:
            Event: Stored event.

        Raises:
            DuplicateEventError: Raised when the event id already exists for the user.
        """

        user_events = self._events.setdefault(user_id, {})
        if event.event_id in user_events:
            raise DuplicateEventError(f"event {event.event_id} already exists for user {user_id}")
        user_events[event.event_id] = event
        self._store_after_write(user_id, "add", event.event_id)
        return event

    def store_add_events(self, user_id: str, events: Iterable[Event]) -> tuple[Event, ...]:
        """Append several events, rejecting the batch on any duplicate id."""

        batch = tuple(events)
        user_events = self._events.setdefault(user_id, {})
        seen_ids: set[str] = set()
        for event in batch:
            if event.event_id in user_events or event.event_id in seen_ids:
                raise DuplicateEventError(f"event {event.event_id} already exists for user {user_id}")
            seen_ids.add(event.event_id)
        for event in batch:
            user_events[event.event_id] = event
        self._store_after_write(user_id, "add_batch", f"{len(batch)} events")
        return batch

    def store_replace_event(self, user_id: str, event: Event) -> Event:
        """Replace an existing event wholesale.

        Raises:
            KeyError: Raised when the event id is unknown.
        """

        user_events = self._events.get(user_id, {})
        if event.event_id not in user_events:
            raise KeyError(f"event {event.event_id} not found for user {user_id}")
        user_events[event.event_id] = event
        self._store_after_write(user_id, "replace", event.event_id)
        return event

    def store_delete_event(self, user_id: str, event_id: str) -> None:
        """Delete one event.

        Raises:
            KeyError: Raised when the event id is unknown.
        """

        user_events = self._events.get(user_id, {})
        if event_id not in user_events:
            raise KeyError(f"event {event_id} not found for user {user_id}")
        del user_events[event_id]
        self._store_after_write(user_id, "delete", event_id)

    def store_register_account(self, user_id: str, symbol: str) -> None:
        """Mark a symbol as an account holding for a user."""

        if not symbol or not symbol.strip():
            raise ValueError("symbol must not be blank")
        self._account_symbols.setdefault(user_id, set()).add(symbol.strip())
        self._store_after_write(user_id, "register_account", symbol.strip())

    def store_account_symbols(self, user_id: str) -> frozenset[str]:
        """Return the symbols a user tracks as account holdings."""

        return frozenset(self._account_symbols.get(user_id, set()))

    def store_has_user(self, user_id: str) -> bool:
        """Return whether any event or account was recorded for a user."""

        return bool(self._events.get(user_id)) or bool(self._account_symbols.get(user_id))

    def _store_after_write(self, user_id: str, operation: str, subject: str) -> None:
        logger.info("event store write user=%s operation=%s subject=%s", user_id, operation, subject)
        if self._cache is not None:
            self._cache.invalidate_user(user_id)


class InMemoryValuationStore:
    """Per-user valuation and balance series held in process memory."""

    def __init__(self, cache: SingleflightCache | None = None):
        self._cache = cache
        self._points: dict[str, dict[str, dict[date, ValuationPoint]]] = {}

    def valuation_list_points(self, user_id: str, symbol: str | None = None) -> tuple[ValuationPoint, ...]:
        """Return one series sorted by date.

        Args:
            user_id: Owning user identifier.
            symbol: Symbol or account symbol, None for the whole portfolio.

        Returns:
            tuple[ValuationPoint, ...]: Points sorted by date.
        """

        series = self._points.get(user_id, {}).get(symbol or _PORTFOLIO_SERIES_KEY, {})
        return tuple(series[point_date] for point_date in sorted(series))

    def valuation_add_points(
        self,
        user_id: str,
        points: Iterable[ValuationPoint],
        symbol: str | None = None,
    ) -> int:
        """Upsert points into one series; a point replaces any point on its date.

        Returns:
            int: Number of points written.
        """

        series = self._points.setdefault(user_id, {}).setdefault(symbol or _PORTFOLIO_SERIES_KEY, {})
        written = 0
        for point in points:
            series[point.point_date] = point
            written += 1
        logger.info(
            "valuation store write user=%s series=%s points=%d",
            user_id,
            symbol or _PORTFOLIO_SERIES_KEY,
            written,
        )
        if self._cache is not None:
            self._cache.invalidate_user(user_id)
        return written

    def valuation_has_user(self, user_id: str) -> bool:
        """Return whether any series exists for a user."""

        return bool(self._points.get(user_id))


__all__ = ["InMemoryEventStore", "InMemoryValuationStore"]
