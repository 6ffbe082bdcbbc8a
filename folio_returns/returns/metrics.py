"""Typed result contracts produced by the return calculator."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum

from folio_returns.cashflows import CashFlow
from folio_returns.ledger import AccountWithdrawalRecord, Lot, RealizedGainRecord


_ZERO = Decimal("0")


class ReturnScopeKind(str, Enum):
    """Kinds of subjects a metrics object can describe."""

    SYMBOL = "symbol"
    PORTFOLIO = "portfolio"
    ACCOUNT = "account"


@dataclass(frozen=True)
class ReturnScope:
    """Subject and currency a metrics object is scoped to.

    Attributes:
        kind: Symbol, portfolio, or account-holding scope.
        currency: Currency all money values are expressed in.
        symbol: Symbol for symbol/account scopes, None for portfolio scope.
    """

    kind: ReturnScopeKind
    currency: str
    symbol: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "kind", ReturnScopeKind(self.kind))
        if not self.currency or not self.currency.strip():
            raise ValueError("currency must not be blank")
        object.__setattr__(self, "currency", self.currency.strip().upper())
        if self.kind == ReturnScopeKind.PORTFOLIO:
            if self.symbol is not None:
                raise ValueError("portfolio scope must not name a symbol")
        elif not self.symbol or not self.symbol.strip():
            raise ValueError(f"{self.kind.value} scope requires a symbol")

    @classmethod
    def for_symbol(cls, symbol: str, currency: str) -> "ReturnScope":
        """Build a single-symbol scope."""

        return cls(kind=ReturnScopeKind.SYMBOL, currency=currency, symbol=symbol)

    @classmethod
    def for_portfolio(cls, currency: str) -> "ReturnScope":
        """Build a whole-portfolio scope."""

        return cls(kind=ReturnScopeKind.PORTFOLIO, currency=currency)

    @classmethod
    def for_account(cls, symbol: str, currency: str) -> "ReturnScope":
        """Build an account-holding scope."""

        return cls(kind=ReturnScopeKind.ACCOUNT, currency=currency, symbol=symbol)


@dataclass(frozen=True)
class CapitalGains:
    """Capital-gain breakdown.

    Attributes:
        realized: Gains locked in by sales and withdrawals.
        unrealized: Mark-to-market gains on open positions.
        realized_pct: Realized gains as a percentage of the capital base.
        unrealized_pct: Unrealized gains as a percentage of the capital base.
    """

    realized: Decimal
    unrealized: Decimal
    realized_pct: float
    unrealized_pct: float


@dataclass(frozen=True)
class DividendIncome:
    """Dividend income breakdown.

    Attributes:
        total: Net dividends received.
        pct: Dividends as a percentage of the capital base.
        annualized_yield: Dividends per capital base per year, in percent.
    """

    total: Decimal
    pct: float
    annualized_yield: float


@dataclass(frozen=True)
class ReturnMetrics:
    """Core return metrics for one scope and period.

    Percentages and annualized returns are expressed in percent.
    """

    scope: ReturnScope
    total_invested: Decimal
    total_withdrawn: Decimal
    cost_basis: Decimal
    current_value: Decimal
    realized_pnl: Decimal
    unrealized_pnl: Decimal
    capital_gains: CapitalGains
    dividend_income: DividendIncome
    total_pnl: Decimal
    total_return_percentage: float
    time_weighted_return: float
    money_weighted_return: float
    period_years: float
    start_date: date | None
    end_date: date | None


@dataclass(frozen=True)
class AnnualizedReturnMetrics:
    """Annualized return summary for one scope and period."""

    scope: ReturnScope
    time_weighted_return: float
    money_weighted_return: float
    total_return: float
    annualized_volatility: float | None
    start_date: date | None
    end_date: date | None
    period_years: float


@dataclass(frozen=True)
class RealizedVsUnrealized:
    """Split of total P&L into realized (including income) and unrealized parts.

    Attributes:
        total_realized: Realized gains plus dividends.
        total_unrealized: Unrealized gains.
        realized_pct: Realized share of absolute total P&L.
        unrealized_pct: Unrealized share of absolute total P&L.
    """

    total_realized: Decimal
    total_unrealized: Decimal
    realized_pct: float
    unrealized_pct: float


@dataclass(frozen=True)
class DetailedReturnMetrics:
    """Core metrics plus the ledger detail they were derived from.

    For bounded periods `metrics` holds the in-period delta and
    `inception_metrics` the cumulative figures through the same end date; for
    inception scopes `inception_metrics` is None.
    """

    metrics: ReturnMetrics
    realized_vs_unrealized: RealizedVsUnrealized
    annualized_volatility: float | None
    is_inception_scope: bool
    open_lots: tuple[Lot, ...]
    sales: tuple[RealizedGainRecord, ...]
    account_withdrawals: tuple[AccountWithdrawalRecord, ...]
    cash_flows: tuple[CashFlow, ...]
    inception_metrics: ReturnMetrics | None = None

    @property
    def annualized(self) -> AnnualizedReturnMetrics:
        """Return the annualized summary view of these metrics."""

        return AnnualizedReturnMetrics(
            scope=self.metrics.scope,
            time_weighted_return=self.metrics.time_weighted_return,
            money_weighted_return=self.metrics.money_weighted_return,
            total_return=self.metrics.total_return_percentage,
            annualized_volatility=self.annualized_volatility,
            start_date=self.metrics.start_date,
            end_date=self.metrics.end_date,
            period_years=self.metrics.period_years,
        )


def returns_empty_metrics(scope: ReturnScope) -> ReturnMetrics:
    """Return the all-zero metrics object for insufficient data."""

    return ReturnMetrics(
        scope=scope,
        total_invested=_ZERO,
        total_withdrawn=_ZERO,
        cost_basis=_ZERO,
        current_value=_ZERO,
        realized_pnl=_ZERO,
        unrealized_pnl=_ZERO,
        capital_gains=CapitalGains(realized=_ZERO, unrealized=_ZERO, realized_pct=0.0, unrealized_pct=0.0),
        dividend_income=DividendIncome(total=_ZERO, pct=0.0, annualized_yield=0.0),
        total_pnl=_ZERO,
        total_return_percentage=0.0,
        time_weighted_return=0.0,
        money_weighted_return=0.0,
        period_years=0.0,
        start_date=None,
        end_date=None,
    )


def returns_empty_detailed_metrics(scope: ReturnScope) -> DetailedReturnMetrics:
    """Return the all-zero detailed metrics object for insufficient data."""

    return DetailedReturnMetrics(
        metrics=returns_empty_metrics(scope),
        realized_vs_unrealized=RealizedVsUnrealized(
            total_realized=_ZERO,
            total_unrealized=_ZERO,
            realized_pct=0.0,
            unrealized_pct=0.0,
        ),
        annualized_volatility=None,
        is_inception_scope=True,
        open_lots=(),
        sales=(),
        account_withdrawals=(),
        cash_flows=(),
    )


def returns_serialize_metrics(metrics: ReturnMetrics) -> dict[str, object]:
    """Serialize core metrics into a JSON-safe payload.

    Args:
        metrics: Core metrics.

    Returns:
        dict[str, object]: Payload with money as strings and dates as ISO text.
    """

    return {
        "scope": {
            "kind": metrics.scope.kind.value,
            "currency": metrics.scope.currency,
            "symbol": metrics.scope.symbol,
        },
        "total_invested": str(metrics.total_invested),
        "total_withdrawn": str(metrics.total_withdrawn),
        "cost_basis": str(metrics.cost_basis),
        "current_value": str(metrics.current_value),
        "realized_pnl": str(metrics.realized_pnl),
        "unrealized_pnl": str(metrics.unrealized_pnl),
        "capital_gains": {
            "realized": str(metrics.capital_gains.realized),
            "unrealized": str(metrics.capital_gains.unrealized),
            "realized_pct": metrics.capital_gains.realized_pct,
            "unrealized_pct": metrics.capital_gains.unrealized_pct,
        },
        "dividend_income": {
            "total": str(metrics.dividend_income.total),
            "pct": metrics.dividend_income.pct,
            "annualized_yield": metrics.dividend_income.annualized_yield,
        },
        "total_pnl": str(metrics.total_pnl),
        "total_return_percentage": metrics.total_return_percentage,
        "time_weighted_return": _returns_json_float(metrics.time_weighted_return),
        "money_weighted_return": _returns_json_float(metrics.money_weighted_return),
        "period_years": metrics.period_years,
        "start_date": None if metrics.start_date is None else metrics.start_date.isoformat(),
        "end_date": None if metrics.end_date is None else metrics.end_date.isoformat(),
    }


def returns_serialize_detailed_metrics(detailed: DetailedReturnMetrics) -> dict[str, object]:
    """Serialize detailed metrics into a JSON-safe payload.

    Args:
        detailed: Detailed metrics.

    Returns:
        dict[str, object]: Core metrics payload extended with ledger detail.
    """

    payload = returns_serialize_metrics(detailed.metrics)
    payload.update(
        {
            "realized_vs_unrealized": {
                "total_realized": str(detailed.realized_vs_unrealized.total_realized),
                "total_unrealized": str(detailed.realized_vs_unrealized.total_unrealized),
                "realized_pct": detailed.realized_vs_unrealized.realized_pct,
                "unrealized_pct": detailed.realized_vs_unrealized.unrealized_pct,
            },
            "annualized_volatility": _returns_json_float(detailed.annualized_volatility),
            "annualized": returns_serialize_annualized_metrics(detailed.annualized),
            "is_inception_scope": detailed.is_inception_scope,
            "inception_metrics": (
                None if detailed.inception_metrics is None else returns_serialize_metrics(detailed.inception_metrics)
            ),
            "open_lots": [
                {
                    "symbol": lot.symbol,
                    "open_quantity": str(lot.open_quantity),
                    "unit_cost": str(lot.unit_cost),
                    "acquired_date": lot.acquired_date.isoformat(),
                    "source_event_id": lot.source_event_id,
                }
                for lot in detailed.open_lots
            ],
            "sales": [
                {
                    "event_id": sale.event_id,
                    "symbol": sale.symbol,
                    "sale_date": sale.sale_date.isoformat(),
                    "quantity": str(sale.quantity),
                    "net_proceeds": str(sale.net_proceeds),
                    "cost_basis": str(sale.cost_basis),
                    "realized_gain": str(sale.realized_gain),
                    "matched_lots": [
                        {
                            "source_event_id": matched_lot.source_event_id,
                            "acquired_date": matched_lot.acquired_date.isoformat(),
                            "quantity": str(matched_lot.quantity),
                            "unit_cost": str(matched_lot.unit_cost),
                        }
                        for matched_lot in sale.matched_lots
                    ],
                }
                for sale in detailed.sales
            ],
            "account_withdrawals": [
                {
                    "event_id": record.event_id,
                    "symbol": record.symbol,
                    "withdrawal_date": record.withdrawal_date.isoformat(),
                    "amount": str(record.amount),
                    "basis_released": str(record.basis_released),
                    "realized_gain": str(record.realized_gain),
                }
                for record in detailed.account_withdrawals
            ],
        }
    )
    return payload


def returns_serialize_annualized_metrics(annualized: AnnualizedReturnMetrics) -> dict[str, object]:
    """Serialize annualized metrics into a JSON-safe payload."""

    return {
        "scope": {
            "kind": annualized.scope.kind.value,
            "currency": annualized.scope.currency,
            "symbol": annualized.scope.symbol,
        },
        "time_weighted_return": _returns_json_float(annualized.time_weighted_return),
        "money_weighted_return": _returns_json_float(annualized.money_weighted_return),
        "total_return": annualized.total_return,
        "annualized_volatility": _returns_json_float(annualized.annualized_volatility),
        "start_date": None if annualized.start_date is None else annualized.start_date.isoformat(),
        "end_date": None if annualized.end_date is None else annualized.end_date.isoformat(),
        "period_years": annualized.period_years,
    }


def _returns_json_float(value: float | None) -> float | None:
    if value is None or not math.isfinite(value):
        return None
    return value


__all__ = [
    "ReturnScopeKind",
    "ReturnScope",
    "CapitalGains",
    "DividendIncome",
    "ReturnMetrics",
    "AnnualizedReturnMetrics",
    "RealizedVsUnrealized",
    "DetailedReturnMetrics",
    "returns_empty_metrics",
    "returns_empty_detailed_metrics",
    "returns_serialize_metrics",
    "returns_serialize_detailed_metrics",
    "returns_serialize_annualized_metrics",
]
