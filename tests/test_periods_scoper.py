"""Tests for period scoping and named time ranges."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from folio_returns.domain import Event, EventKind, ValuationPoint
from folio_returns.periods import (
    TimeRange,
    period_average_capital,
    period_opening_point,
    period_parse_time_range,
    period_resolve_time_range,
    period_return_percentage,
    period_scope_history,
)


_EVENTS = [
    Event("b1", "AAPL", EventKind.BUY, 10, 100, 0, "USD", date(2024, 1, 2)),
    Event("b2", "AAPL", EventKind.BUY, 5, 110, 0, "USD", date(2024, 2, 1)),
    Event("s1", "AAPL", EventKind.SELL, 3, 120, 0, "USD", date(2024, 3, 10)),
]
_POINTS = [
    ValuationPoint(date(2024, 1, 2), "1000"),
    ValuationPoint(date(2024, 2, 1), "1600"),
    ValuationPoint(date(2024, 3, 1), "1700"),
    ValuationPoint(date(2024, 4, 1), "1500"),
]


def test_period_scope_without_start_covers_inception() -> None:
    """Treat an open-ended request as an inception-to-date period.

    Returns:
        None: Assertions validate inception scoping.

    Raises:
        AssertionError: Raised when inception bounds are wrong.
    """

    scoped = period_scope_history(_EVENTS, _POINTS)

    assert scoped is not None
    assert scoped.is_inception is True
    assert scoped.opening_point is None
    assert scoped.opening_value == Decimal("0")
    assert scoped.start_date == date(2024, 1, 2)
    assert scoped.end_date == date(2024, 4, 1)
    assert len(scoped.period_events) == 3


def test_period_scope_bounded_splits_events_at_opening_snapshot() -> None:
    """Count events on the opening snapshot date as already reflected in it.

    Returns:
        None: Assertions validate the opening/period event split.

    Raises:
        AssertionError: Raised when events straddle the wrong side of the snapshot.
    """

    scoped = period_scope_history(_EVENTS, _POINTS, start_date=date(2024, 2, 1), end_date=date(2024, 3, 31))

    assert scoped is not None
    assert scoped.is_inception is False
    assert scoped.opening_point.point_date == date(2024, 2, 1)
    assert scoped.closing_point.point_date == date(2024, 3, 1)
    assert [event.event_id for event in scoped.opening_events] == ["b1", "b2"]
    assert scoped.period_events == ()
    assert scoped.event_in_period(date(2024, 2, 1)) is False
    assert scoped.event_in_period(date(2024, 2, 2)) is True


def test_period_scope_start_between_snapshots_uses_prior_snapshot() -> None:
    """Open a bounded period from the latest snapshot on or before the start."""

    scoped = period_scope_history(_EVENTS, _POINTS, start_date=date(2024, 2, 15))

    assert scoped is not None
    assert scoped.opening_point.point_date == date(2024, 2, 1)
    assert scoped.start_date == date(2024, 2, 1)
    assert [event.event_id for event in scoped.period_events] == ["s1"]
    assert [point.point_date for point in scoped.period_points] == [date(2024, 3, 1), date(2024, 4, 1)]


def test_period_scope_returns_none_for_insufficient_data() -> None:
    """Return None when fewer than two points fall in range or no event precedes the end."""

    assert period_scope_history(_EVENTS, _POINTS[:1]) is None
    assert period_scope_history(_EVENTS, _POINTS, start_date=date(2024, 3, 15)) is None
    assert period_scope_history([], _POINTS) is None


def test_period_scope_rejects_inverted_range() -> None:
    """Reject a start date after the end date."""

    with pytest.raises(ValueError, match="must not be after"):
        period_scope_history(_EVENTS, _POINTS, start_date=date(2024, 4, 1), end_date=date(2024, 1, 1))


def test_period_opening_point_returns_none_before_first_snapshot() -> None:
    """Return no opening snapshot before the first point."""

    assert period_opening_point(_POINTS, date(2023, 12, 31)) is None
    assert period_opening_point(_POINTS, date(2024, 3, 31)).point_date == date(2024, 3, 1)


def test_period_capital_helpers() -> None:
    """Average half the net flow into the capital base and guard zero bases."""

    assert period_average_capital(Decimal("1000"), Decimal("500")) == Decimal("1250")
    assert period_return_percentage(Decimal("50"), Decimal("1000")) == pytest.approx(5.0)
    assert period_return_percentage(Decimal("50"), Decimal("0")) == 0.0
    assert period_return_percentage(Decimal("50"), Decimal("-10")) == 0.0


def test_period_time_range_resolution() -> None:
    """Resolve named ranges against a reference date.

    Returns:
        None: Assertions validate each range start.

    Raises:
        AssertionError: Raised when a named range resolves incorrectly.
    """

    as_of = date(2024, 8, 15)

    assert period_resolve_time_range("5d", as_of) == date(2024, 8, 10)
    assert period_resolve_time_range("1M", as_of) == date(2024, 7, 16)
    assert period_resolve_time_range(TimeRange.YEAR_TO_DATE, as_of) == date(2024, 1, 1)
    assert period_resolve_time_range("1y", as_of) == date(2023, 8, 16)
    assert period_resolve_time_range("all", as_of) is None


def test_period_time_range_rejects_unknown_key() -> None:
    """Reject unknown range keys with the supported list."""

    with pytest.raises(ValueError, match="expected one of 5d"):
        period_parse_time_range("2w")
