"""Period scoping of event and valuation histories.

Valuation snapshots carry end-of-day semantics: a snapshot dated D already
reflects every event dated on or before D. A bounded period therefore starts
from an opening snapshot, and only events strictly after that snapshot count as
"during period".
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from folio_returns.domain import Event, ValuationPoint, domain_years_between


_ZERO = Decimal("0")


@dataclass(frozen=True)
class ScopedHistory:
    """Event and valuation subsets resolved for one requested period.

    Attributes:
        start_date: Effective period start (opening snapshot or first event date).
        end_date: Effective period end (closing snapshot date).
        is_inception: Whether the period covers the holding since its first event.
        opening_point: Opening snapshot for bounded periods, None for inception.
        closing_point: Closing snapshot.
        opening_events: Events already reflected in the opening snapshot.
        period_events: Events dated inside the period.
        period_points: Valuation points inside the requested range.
    """

    start_date: date
    end_date: date
    is_inception: bool
    opening_point: ValuationPoint | None
    closing_point: ValuationPoint
    opening_events: tuple[Event, ...]
    period_events: tuple[Event, ...]
    period_points: tuple[ValuationPoint, ...]

    @property
    def history_events(self) -> tuple[Event, ...]:
        """Return every event through the period end."""

        return self.opening_events + self.period_events

    @property
    def opening_value(self) -> Decimal:
        """Return the market value at period start (zero for inception)."""

        return _ZERO if self.opening_point is None else self.opening_point.total_value

    @property
    def closing_value(self) -> Decimal:
        """Return the market value at period end."""

        return self.closing_point.total_value

    @property
    def period_years(self) -> float:
        """Return the period length in years."""

        return max(domain_years_between(self.start_date, self.end_date), 0.0)

    def event_in_period(self, value_date: date) -> bool:
        """Return whether a date falls inside the period window."""

        if self.opening_point is not None and value_date <= self.opening_point.point_date:
            return False
        return value_date <= self.end_date


def period_scope_history(
    events: Iterable[Event],
    valuations: Iterable[ValuationPoint],
    start_date: date | None = None,
    end_date: date | None = None,
) -> ScopedHistory | None:
    """Resolve the events and snapshots needed for one period.

    Args:
        events: Full event history in any order.
        valuations: Full valuation series in any order.
        start_date: Optional inclusive period start.
        end_date: Optional inclusive period end.

    Returns:
        ScopedHistory | None: Scoped history, or None when fewer than two
        valuation points fall in range or no event precedes the period end.

    Raises:
        ValueError: Raised when start_date is after end_date.
    """

    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValueError(f"start_date={start_date.isoformat()} must not be after end_date={end_date.isoformat()}")

    sorted_points = sorted(valuations, key=lambda point: point.point_date)
    in_range_points = tuple(
        point
        for point in sorted_points
        if (start_date is None or point.point_date >= start_date)
        and (end_date is None or point.point_date <= end_date)
    )
    if len(in_range_points) < 2:
        return None

    closing_point = in_range_points[-1]
    effective_end = closing_point.point_date
    history_events = sorted(
        (event for event in events if event.event_date <= effective_end),
        key=lambda event: (event.event_date, event.event_id),
    )
    if not history_events:
        return None

    first_event_date = history_events[0].event_date
    if start_date is None or start_date <= first_event_date:
        return ScopedHistory(
            start_date=first_event_date,
            end_date=effective_end,
            is_inception=True,
            opening_point=None,
            closing_point=closing_point,
            opening_events=(),
            period_events=tuple(history_events),
            period_points=in_range_points,
        )

    opening_point = period_opening_point(sorted_points, start_date) or in_range_points[0]
    if opening_point.point_date >= effective_end:
        return None

    return ScopedHistory(
        start_date=opening_point.point_date,
        end_date=effective_end,
        is_inception=False,
        opening_point=opening_point,
        closing_point=closing_point,
        opening_events=tuple(event for event in history_events if event.event_date <= opening_point.point_date),
        period_events=tuple(event for event in history_events if event.event_date > opening_point.point_date),
        period_points=in_range_points,
    )


def period_opening_point(sorted_points: Sequence[ValuationPoint], start_date: date) -> ValuationPoint | None:
    """Return the latest snapshot dated on or before a start date.

    Args:
        sorted_points: Valuation points sorted by date.
        start_date: Period start date.

    Returns:
        ValuationPoint | None: Opening snapshot, or None when none precedes the date.
    """

    opening_point = None
    for point in sorted_points:
        if point.point_date > start_date:
            break
        opening_point = point
    return opening_point


def period_average_capital(opening_capital: Decimal, net_cash_flow: Decimal) -> Decimal:
    """Return the average capital base for a period.

    Args:
        opening_capital: Capital (market value) at period start.
        net_cash_flow: Capital added minus capital removed during the period.

    Returns:
        Decimal: `opening_capital + net_cash_flow / 2`.
    """

    return opening_capital + (net_cash_flow / Decimal("2"))


def period_return_percentage(pnl: Decimal, capital_base: Decimal) -> float:
    """Return P&L as a percentage of a capital base.

    Args:
        pnl: Profit and loss for the period.
        capital_base: Denominator capital.

    Returns:
        float: Percentage, or 0.0 when the base is not positive.
    """

    if capital_base <= _ZERO:
        return 0.0
    return float(pnl / capital_base * Decimal("100"))


__all__ = [
    "ScopedHistory",
    "period_scope_history",
    "period_opening_point",
    "period_average_capital",
    "period_return_percentage",
]
