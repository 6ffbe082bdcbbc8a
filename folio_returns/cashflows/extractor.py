"""Signed cash-flow extraction from raw event logs.

Signs follow the holding owner's point of view: money put into a holding is
negative, money taken out is positive. Dividends are positive and tagged as
income so money-weighted solves can exclude them while total return keeps them.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from folio_returns.domain import Event, EventKind


CAPITAL_CATEGORY = "capital"
INCOME_CATEGORY = "income"

_ZERO = Decimal("0")


@dataclass(frozen=True)
class CashFlow:
    """One signed, dated cash flow.

    Attributes:
        flow_date: Cash-flow date.
        amount: Signed amount (negative into the holding, positive out of it).
        symbol: Holding symbol.
        category: `capital` or `income`.
        source_event_id: Originating event identifier.
    """

    flow_date: date
    amount: Decimal
    symbol: str
    category: str
    source_event_id: str


@dataclass(frozen=True)
class CashFlowTotals:
    """Aggregated cash-flow totals.

    Attributes:
        total_invested: Capital put in (absolute value of negative capital flows).
        total_withdrawn: Capital taken out (positive capital flows).
        income: Income received.
        net_contributed: Invested minus withdrawn.
    """

    total_invested: Decimal
    total_withdrawn: Decimal
    income: Decimal
    net_contributed: Decimal


def cashflow_from_event(event: Event) -> CashFlow | None:
    """Convert one event into its signed cash flow.

    Args:
        event: Portfolio event.

    Returns:
        CashFlow | None: Signed flow, or None for events without cash impact.
    """

    cash_amount = event.cash_effect.amount
    if event.kind == EventKind.BUY:
        signed_amount, category = -(cash_amount + event.fees), CAPITAL_CATEGORY
    elif event.kind == EventKind.DEPOSIT:
        signed_amount, category = -(cash_amount + event.fees), CAPITAL_CATEGORY
    elif event.kind in {EventKind.SELL, EventKind.WITHDRAWAL}:
        signed_amount, category = cash_amount - event.fees, CAPITAL_CATEGORY
    elif event.kind == EventKind.DIVIDEND:
        signed_amount, category = cash_amount - event.fees, INCOME_CATEGORY
    else:
        return None

    if signed_amount == _ZERO:
        return None
    return CashFlow(
        flow_date=event.event_date,
        amount=signed_amount,
        symbol=event.symbol,
        category=category,
        source_event_id=event.event_id,
    )


def cashflow_extract(events: Iterable[Event]) -> tuple[CashFlow, ...]:
    """Extract signed cash flows from an event log.

    Args:
        events: Events in any order.

    Returns:
        tuple[CashFlow, ...]: Flows sorted by date then source event id.
    """

    flows = [flow for flow in (cashflow_from_event(event) for event in events) if flow is not None]
    return tuple(sorted(flows, key=lambda flow: (flow.flow_date, flow.source_event_id)))


def cashflow_capital_flows(flows: Iterable[CashFlow]) -> tuple[CashFlow, ...]:
    """Return only capital flows."""

    return tuple(flow for flow in flows if flow.category == CAPITAL_CATEGORY)


def cashflow_income_flows(flows: Iterable[CashFlow]) -> tuple[CashFlow, ...]:
    """Return only income flows."""

    return tuple(flow for flow in flows if flow.category == INCOME_CATEGORY)


def cashflow_summarize(flows: Iterable[CashFlow]) -> CashFlowTotals:
    """Aggregate flows into invested, withdrawn, and income totals.

    Args:
        flows: Signed cash flows.

    Returns:
        CashFlowTotals: Aggregated totals.
    """

    total_invested = _ZERO
    total_withdrawn = _ZERO
    income = _ZERO
    for flow in flows:
        if flow.category == INCOME_CATEGORY:
            income += flow.amount
        elif flow.amount < _ZERO:
            total_invested -= flow.amount
        else:
            total_withdrawn += flow.amount

    return CashFlowTotals(
        total_invested=total_invested,
        total_withdrawn=total_withdrawn,
        income=income,
        net_contributed=total_invested - total_withdrawn,
    )


def cashflow_group_by_symbol(flows: Sequence[CashFlow]) -> dict[str, tuple[CashFlow, ...]]:
    """Group flows by holding symbol, preserving order."""

    grouped_flows: dict[str, list[CashFlow]] = {}
    for flow in flows:
        grouped_flows.setdefault(flow.symbol, []).append(flow)
    return {symbol: tuple(symbol_flows) for symbol, symbol_flows in grouped_flows.items()}


def cashflow_cumulative_invested(events: Iterable[Event], as_of: date) -> Decimal:
    """Return net capital contributed up to and including a date.

    Args:
        events: Events in any order.
        as_of: Inclusive cut-off date.

    Returns:
        Decimal: Capital put in minus capital taken out through `as_of`.
    """

    return cashflow_summarize(
        flow for flow in cashflow_extract(events) if flow.flow_date <= as_of
    ).net_contributed


__all__ = [
    "CAPITAL_CATEGORY",
    "INCOME_CATEGORY",
    "CashFlow",
    "CashFlowTotals",
    "cashflow_from_event",
    "cashflow_extract",
    "cashflow_capital_flows",
    "cashflow_income_flows",
    "cashflow_summarize",
    "cashflow_group_by_symbol",
    "cashflow_cumulative_invested",
]
