"""Typed ports for the collaborators the return engine reads from.

Implementations own persistence and rate lookup; the engine only consumes
immutable events and valuation points through these contracts.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Protocol

from folio_returns.domain import Event, ValuationPoint


class EventStorePort(Protocol):
    """Port definition for per-user event logs."""

    def store_list_events(self, user_id: str, symbol: str | None = None) -> tuple[Event, ...]:
        """Return a user's events, optionally for one symbol.

        Args:
            user_id: Owning user identifier.
            symbol: Optional symbol filter.

        Returns:
            tuple[Event, ...]: Events in insertion order.
        """

    def store_add_event(self, user_id: str, event: Event) -> Event:
        """Append one event.

        Raises:
            DuplicateEventError: Raised when the event id already exists for the user.
        """

    def store_replace_event(self, user_id: str, event: Event) -> Event:
        """Replace an existing event wholesale.

        Raises:
            KeyError: Raised when the event id is unknown.
        """

    def store_delete_event(self, user_id: str, event_id: str) -> None:
        """Delete one event.

        Raises:
            KeyError: Raised when the event id is unknown.
        """

    def store_register_account(self, user_id: str, symbol: str) -> None:
        """Mark a symbol as an account holding for a user."""

    def store_account_symbols(self, user_id: str) -> frozenset[str]:
        """Return the symbols a user tracks as account holdings."""

    def store_has_user(self, user_id: str) -> bool:
        """Return whether any data was recorded for a user."""


class ValuationProviderPort(Protocol):
    """Port definition for valuation and balance series."""

    def valuation_list_points(self, user_id: str, symbol: str | None = None) -> tuple[ValuationPoint, ...]:
        """Return a valuation series.

        Args:
            user_id: Owning user identifier.
            symbol: Symbol or account symbol, None for the whole portfolio.

        Returns:
            tuple[ValuationPoint, ...]: Points sorted by date.
        """


class ValuationStorePort(ValuationProviderPort, Protocol):
    """Port definition for writable valuation and balance series."""

    def valuation_add_points(
        self,
        user_id: str,
        points: Iterable[ValuationPoint],
        symbol: str | None = None,
    ) -> int:
        """Upsert points into one series.

        Returns:
            int: Number of points written.
        """


class CurrencyConverterPort(Protocol):
    """Port definition for currency conversion."""

    def currency_rate(self, source_currency: str, target_currency: str) -> Decimal:
        """Return the multiplier converting source amounts into target amounts.

        Raises:
            ValueError: Raised when the pair is not supported.
        """

    def currency_convert(self, amount: Decimal, source_currency: str, target_currency: str) -> Decimal:
        """Convert one amount."""


__all__ = [
    "EventStorePort",
    "ValuationProviderPort",
    "ValuationStorePort",
    "CurrencyConverterPort",
]
