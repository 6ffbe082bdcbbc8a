"""Return calculator orchestrating ledgers, cash flows, and period scoping.

Every call is a pure reduction over its request: ledgers and lot queues are
rebuilt locally, nothing is cached or shared between calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal

from folio_returns.cashflows import (
    CashFlow,
    cashflow_capital_flows,
    cashflow_extract,
    cashflow_income_flows,
    cashflow_summarize,
)
from folio_returns.domain import CurrencyMismatchError, Event, ValuationPoint
from folio_returns.ledger import (
    AccountLedgerResult,
    AccountWithdrawalRecord,
    Lot,
    LotLedgerResult,
    RealizedGainRecord,
    account_build_ledger,
    fifo_build_lot_ledger,
    fifo_build_portfolio_ledgers,
)
from folio_returns.periods import (
    ScopedHistory,
    period_average_capital,
    period_return_percentage,
    period_scope_history,
)

from .annualization import (
    DEFAULT_ANNUALIZATION_OPTIONS,
    AnnualizationOptions,
    annualize_money_weighted,
    annualize_time_weighted,
    annualized_volatility,
)
from .metrics import (
    AnnualizedReturnMetrics,
    CapitalGains,
    DetailedReturnMetrics,
    DividendIncome,
    RealizedVsUnrealized,
    ReturnMetrics,
    ReturnScope,
    ReturnScopeKind,
    returns_empty_detailed_metrics,
)


logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class ReturnCalculationRequest:
    """Inputs for one return calculation.

    Attributes:
        scope: Symbol, portfolio, or account scope and its currency.
        events: Event history (any order, may include other symbols).
        valuations: Valuation series for the scope (balances for account scope).
        start_date: Optional inclusive period start.
        end_date: Optional inclusive period end.
        account_symbols: Symbols tracked as account holdings in portfolio scope.
        account_balances: Balance series per account symbol in portfolio scope.
        include_volatility: Whether to compute annualized volatility.
    """

    scope: ReturnScope
    events: tuple[Event, ...]
    valuations: tuple[ValuationPoint, ...]
    start_date: date | None = None
    end_date: date | None = None
    account_symbols: frozenset[str] = frozenset()
    account_balances: Mapping[str, tuple[ValuationPoint, ...]] = field(default_factory=dict)
    include_volatility: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "events", tuple(self.events))
        object.__setattr__(self, "valuations", tuple(self.valuations))
        object.__setattr__(self, "account_symbols", frozenset(self.account_symbols))
        object.__setattr__(
            self,
            "account_balances",
            {symbol: tuple(points) for symbol, points in self.account_balances.items()},
        )


@dataclass(frozen=True)
class _PositionState:
    """Ledger state of the scope at one point in time."""

    lot_ledgers: tuple[LotLedgerResult, ...]
    account_ledgers: tuple[AccountLedgerResult, ...]

    @property
    def cost_basis(self) -> Decimal:
        lot_basis = sum((ledger.cost_basis for ledger in self.lot_ledgers), _ZERO)
        account_basis = sum((ledger.cost_basis for ledger in self.account_ledgers), _ZERO)
        return lot_basis + account_basis

    @property
    def is_closed(self) -> bool:
        return all(not ledger.open_lots for ledger in self.lot_ledgers) and all(
            ledger.contributions == _ZERO for ledger in self.account_ledgers
        )

    @property
    def open_lots(self) -> tuple[Lot, ...]:
        return tuple(lot for ledger in self.lot_ledgers for lot in ledger.open_lots)

    @property
    def sales(self) -> tuple[RealizedGainRecord, ...]:
        return tuple(sale for ledger in self.lot_ledgers for sale in ledger.sales)

    @property
    def withdrawals(self) -> tuple[AccountWithdrawalRecord, ...]:
        return tuple(record for ledger in self.account_ledgers for record in ledger.withdrawals)


def returns_calculate_detailed(
    request: ReturnCalculationRequest,
    options: AnnualizationOptions = DEFAULT_ANNUALIZATION_OPTIONS,
) -> DetailedReturnMetrics:
    """Calculate detailed return metrics for one scope and period.

    Args:
        request: Calculation inputs.
        options: Annualization solver options.

    Returns:
        DetailedReturnMetrics: Metrics plus ledger detail, or the all-zero
        object when the inputs do not cover at least two valuation points and
        one event.

    Raises:
        CurrencyMismatchError: Raised when an event is not in the scope currency.
        DataIntegrityError: Raised when the event log is internally inconsistent.
        ValueError: Raised when start_date is after end_date.
    """

    scope = request.scope
    scope_events = _returns_scope_events(request)
    scoped = period_scope_history(scope_events, request.valuations, request.start_date, request.end_date)
    if scoped is None:
        logger.debug("insufficient data for returns scope=%s symbol=%s", scope.kind.value, scope.symbol)
        return returns_empty_detailed_metrics(scope)

    closing_state = _returns_build_state(request, scoped.history_events)
    opening_state = None if scoped.is_inception else _returns_build_state(request, scoped.opening_events)

    closing_value = _ZERO if closing_state.is_closed else scoped.closing_value
    opening_value = _ZERO
    opening_basis = _ZERO
    if opening_state is not None and not opening_state.is_closed:
        opening_value = scoped.opening_value
        opening_basis = opening_state.cost_basis

    closing_basis = closing_state.cost_basis
    opening_unrealized = opening_value - opening_basis

    period_sales = tuple(sale for sale in closing_state.sales if scoped.event_in_period(sale.sale_date))
    period_withdrawals = tuple(
        record for record in closing_state.withdrawals if scoped.event_in_period(record.withdrawal_date)
    )
    realized = sum((sale.realized_gain for sale in period_sales), _ZERO) + sum(
        (record.realized_gain for record in period_withdrawals),
        _ZERO,
    )
    if closing_state.is_closed:
        # Gains already marked at the window start are not realized again.
        unrealized = _ZERO
        realized -= opening_unrealized
    else:
        unrealized = (closing_value - closing_basis) - opening_unrealized

    period_flows = cashflow_extract(scoped.period_events)
    capital_flows = cashflow_capital_flows(period_flows)
    totals = cashflow_summarize(period_flows)
    dividends = sum((flow.amount for flow in cashflow_income_flows(period_flows)), _ZERO)

    if scoped.is_inception:
        capital_base = totals.total_invested
    else:
        capital_base = period_average_capital(opening_value, totals.net_contributed)

    total_pnl = realized + unrealized + dividends
    total_return_percentage = period_return_percentage(total_pnl, capital_base)
    period_years = scoped.period_years

    time_weighted = annualize_time_weighted(
        total_return_fraction=total_return_percentage / 100.0,
        inflows=_returns_twr_inflows(scoped, capital_flows, opening_value),
        end_date=scoped.end_date,
        period_years=period_years,
        options=options,
    )
    money_weighted = annualize_money_weighted(
        capital_flows=_returns_mwr_flows(scoped, capital_flows, opening_value),
        final_value=closing_value,
        end_date=scoped.end_date,
        options=options,
    )

    dividend_pct = period_return_percentage(dividends, capital_base)
    metrics = ReturnMetrics(
        scope=scope,
        total_invested=totals.total_invested,
        total_withdrawn=totals.total_withdrawn,
        cost_basis=closing_basis,
        current_value=closing_value,
        realized_pnl=realized,
        unrealized_pnl=unrealized,
        capital_gains=CapitalGains(
            realized=realized,
            unrealized=unrealized,
            realized_pct=period_return_percentage(realized, capital_base),
            unrealized_pct=period_return_percentage(unrealized, capital_base),
        ),
        dividend_income=DividendIncome(
            total=dividends,
            pct=dividend_pct,
            annualized_yield=dividend_pct / period_years if period_years > 0.0 else 0.0,
        ),
        total_pnl=total_pnl,
        total_return_percentage=total_return_percentage,
        time_weighted_return=time_weighted,
        money_weighted_return=money_weighted,
        period_years=period_years,
        start_date=scoped.start_date,
        end_date=scoped.end_date,
    )

    inception_metrics = None
    if not scoped.is_inception:
        inception_request = replace(request, start_date=None, end_date=scoped.end_date, include_volatility=False)
        inception_metrics = returns_calculate_detailed(inception_request, options).metrics

    logger.debug(
        "returns calculated scope=%s symbol=%s start=%s end=%s total_pnl=%s",
        scope.kind.value,
        scope.symbol,
        scoped.start_date.isoformat(),
        scoped.end_date.isoformat(),
        total_pnl,
    )
    return DetailedReturnMetrics(
        metrics=metrics,
        realized_vs_unrealized=_returns_realized_vs_unrealized(realized + dividends, unrealized, total_pnl),
        annualized_volatility=annualized_volatility(scoped.period_points) if request.include_volatility else None,
        is_inception_scope=scoped.is_inception,
        open_lots=closing_state.open_lots,
        sales=period_sales,
        account_withdrawals=period_withdrawals,
        cash_flows=period_flows,
        inception_metrics=inception_metrics,
    )


def returns_calculate_metrics(
    request: ReturnCalculationRequest,
    options: AnnualizationOptions = DEFAULT_ANNUALIZATION_OPTIONS,
) -> ReturnMetrics:
    """Calculate core return metrics for one scope and period."""

    return returns_calculate_detailed(request, options).metrics


def returns_calculate_annualized(
    request: ReturnCalculationRequest,
    options: AnnualizationOptions = DEFAULT_ANNUALIZATION_OPTIONS,
) -> AnnualizedReturnMetrics:
    """Calculate the annualized return summary for one scope and period."""

    return returns_calculate_detailed(request, options).annualized


def _returns_scope_events(request: ReturnCalculationRequest) -> tuple[Event, ...]:
    """Filter events to the request scope and check their currency."""

    scope = request.scope
    if scope.kind == ReturnScopeKind.PORTFOLIO:
        scope_events = request.events
    else:
        scope_events = tuple(event for event in request.events if event.symbol == scope.symbol)

    for event in scope_events:
        if event.currency != scope.currency:
            raise CurrencyMismatchError(
                f"event {event.event_id} is in {event.currency}, expected scope currency {scope.currency}"
            )
    return scope_events


def _returns_build_state(request: ReturnCalculationRequest, events: Sequence[Event]) -> _PositionState:
    """Build lot and account ledgers for the scope over an event subset."""

    scope = request.scope
    if scope.kind == ReturnScopeKind.ACCOUNT or (
        scope.kind == ReturnScopeKind.SYMBOL and scope.symbol in request.account_symbols
    ):
        balances = request.account_balances.get(scope.symbol, request.valuations)
        return _PositionState(
            lot_ledgers=(),
            account_ledgers=(account_build_ledger(scope.symbol, events, balances),),
        )

    if scope.kind == ReturnScopeKind.SYMBOL:
        return _PositionState(lot_ledgers=(fifo_build_lot_ledger(scope.symbol, events),), account_ledgers=())

    lot_ledgers = fifo_build_portfolio_ledgers(events, excluded_symbols=request.account_symbols)
    account_events: dict[str, list[Event]] = {}
    for event in events:
        if event.symbol in request.account_symbols:
            account_events.setdefault(event.symbol, []).append(event)
    account_ledgers = tuple(
        account_build_ledger(symbol, symbol_events, request.account_balances.get(symbol, ()))
        for symbol, symbol_events in sorted(account_events.items())
    )
    return _PositionState(lot_ledgers=tuple(lot_ledgers.values()), account_ledgers=account_ledgers)


def _returns_twr_inflows(
    scoped: ScopedHistory,
    capital_flows: Iterable[CashFlow],
    opening_value: Decimal,
) -> list[tuple[date, Decimal]]:
    """Return positive dated capital inflows, opening capital first."""

    inflows = [(flow.flow_date, -flow.amount) for flow in capital_flows if flow.amount < _ZERO]
    if not scoped.is_inception and opening_value > _ZERO:
        inflows.insert(0, (scoped.start_date, opening_value))
    return inflows


def _returns_mwr_flows(
    scoped: ScopedHistory,
    capital_flows: Iterable[CashFlow],
    opening_value: Decimal,
) -> list[tuple[date, Decimal]]:
    """Return signed capital flows with opening capital as an initial outflow."""

    flows = [(flow.flow_date, flow.amount) for flow in capital_flows]
    if not scoped.is_inception and opening_value > _ZERO:
        flows.insert(0, (scoped.start_date, -opening_value))
    return flows


def _returns_realized_vs_unrealized(
    total_realized: Decimal,
    total_unrealized: Decimal,
    total_pnl: Decimal,
) -> RealizedVsUnrealized:
    if total_pnl <= _ZERO:
        return RealizedVsUnrealized(
            total_realized=total_realized,
            total_unrealized=total_unrealized,
            realized_pct=0.0,
            unrealized_pct=0.0,
        )
    return RealizedVsUnrealized(
        total_realized=total_realized,
        total_unrealized=total_unrealized,
        realized_pct=float(total_realized / abs(total_pnl) * _HUNDRED),
        unrealized_pct=float(total_unrealized / abs(total_pnl) * _HUNDRED),
    )


__all__ = [
    "ReturnCalculationRequest",
    "returns_calculate_detailed",
    "returns_calculate_metrics",
    "returns_calculate_annualized",
]
