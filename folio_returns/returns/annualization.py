"""Annualization math for time-weighted and money-weighted returns.

All public functions return percentages. Inputs are Decimal money values; the
math itself runs on floats because it goes through fractional powers.
"""

from __future__ import annotations

import logging
import math
import statistics
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from folio_returns.domain import DAYS_PER_YEAR, ValuationPoint, domain_years_between


logger = logging.getLogger(__name__)

TRADING_DAYS_PER_YEAR = 252
XIRR_INITIAL_GUESS = 0.1
XIRR_LOWER_BRACKET = -0.99
XIRR_UPPER_BRACKET = 10.0

_ZERO = Decimal("0")


@dataclass(frozen=True)
class AnnualizationOptions:
    """Numerical knobs for the annualization solvers.

    Attributes:
        xirr_max_iterations: Iteration bound for Newton and bisection each.
        xirr_tolerance: Convergence tolerance on the rate.
        min_weighted_years: Floor applied to the capital-weighted holding time.
    """

    xirr_max_iterations: int = 100
    xirr_tolerance: float = 1e-7
    min_weighted_years: float = 1 / DAYS_PER_YEAR

    def __post_init__(self) -> None:
        if self.xirr_max_iterations <= 0:
            raise ValueError("xirr_max_iterations must be positive")
        if self.xirr_tolerance <= 0:
            raise ValueError("xirr_tolerance must be positive")
        if self.min_weighted_years <= 0:
            raise ValueError("min_weighted_years must be positive")


DEFAULT_ANNUALIZATION_OPTIONS = AnnualizationOptions()


def annualize_time_weighted(
    total_return_fraction: float,
    inflows: Iterable[tuple[date, Decimal]],
    end_date: date,
    period_years: float,
    options: AnnualizationOptions = DEFAULT_ANNUALIZATION_OPTIONS,
) -> float:
    """Annualize a total return over the capital-weighted holding time.

    Each inflow is weighted by the years it stayed invested until `end_date`;
    the weighted-average time replaces the calendar period as the exponent
    base. Heavily back-loaded capital therefore produces large annualized
    numbers; capping them is left to the presentation helpers.

    Args:
        total_return_fraction: Total return as a fraction (0.25 for 25 %).
        inflows: Dated positive capital amounts (opening capital included).
        end_date: Period end date.
        period_years: Calendar period length used when there are no inflows.
        options: Solver options.

    Returns:
        float: Annualized return in percent.
    """

    growth = 1.0 + total_return_fraction
    if growth <= 0.0:
        return -100.0

    weighted_sum = 0.0
    amount_sum = 0.0
    for flow_date, amount in inflows:
        if amount <= _ZERO:
            continue
        weighted_sum += float(amount) * max(domain_years_between(flow_date, end_date), 0.0)
        amount_sum += float(amount)

    if amount_sum > 0.0:
        weighted_years = max(weighted_sum / amount_sum, options.min_weighted_years)
    elif period_years > 0.0:
        weighted_years = max(period_years, options.min_weighted_years)
    else:
        return total_return_fraction * 100.0

    return (_returns_safe_power(growth, 1.0 / weighted_years) - 1.0) * 100.0


def annualize_money_weighted(
    capital_flows: Sequence[tuple[date, Decimal]],
    final_value: Decimal,
    end_date: date,
    options: AnnualizationOptions = DEFAULT_ANNUALIZATION_OPTIONS,
) -> float:
    """Compute the money-weighted (XIRR) return of a flow series.

    Args:
        capital_flows: Dated signed capital flows from the owner's point of view
            (negative into the holding). Opening capital of a bounded period is
            passed as an outflow on the start date.
        final_value: Market value at `end_date`.
        end_date: Valuation date of `final_value`.
        options: Solver options.

    Returns:
        float: Annualized money-weighted return in percent.
    """

    ordered_flows = sorted(
        ((flow_date, amount) for flow_date, amount in capital_flows if amount != _ZERO),
        key=lambda flow: flow[0],
    )
    if not ordered_flows:
        return 0.0

    if len(ordered_flows) == 1 and ordered_flows[0][1] < _ZERO:
        flow_date, amount = ordered_flows[0]
        return _returns_closed_form(-amount, final_value, flow_date, end_date)

    series = [(flow_date, float(amount)) for flow_date, amount in ordered_flows]
    if final_value != _ZERO:
        series.append((end_date, float(final_value)))

    rate = solve_xirr(series, options=options)
    if rate is not None:
        return rate * 100.0

    total_invested = sum((-amount for _, amount in ordered_flows if amount < _ZERO), _ZERO)
    total_returned = sum((amount for _, amount in ordered_flows if amount > _ZERO), _ZERO)
    fallback = annualize_simple_return(
        current_value=final_value + total_returned,
        total_invested=total_invested,
        first_date=ordered_flows[0][0],
        as_of=end_date,
    )
    logger.warning(
        "xirr did not converge flows=%d end_date=%s; using simple annualized return %.6f",
        len(series),
        end_date.isoformat(),
        fallback,
    )
    return fallback


def solve_xirr(
    flows: Sequence[tuple[date, float]],
    options: AnnualizationOptions = DEFAULT_ANNUALIZATION_OPTIONS,
) -> float | None:
    """Solve for the rate that zeroes the net present value of dated flows.

    Newton's method runs first from a 10 % guess; when it diverges or leaves the
    valid domain, bisection over `[-0.99, 10.0]` takes over.

    Args:
        flows: Dated signed flows.
        options: Solver options.

    Returns:
        float | None: Annual rate as a fraction, `0.0` for an empty series, or
        None when no root could be found.
    """

    if not flows:
        return 0.0
    first_date = min(flow_date for flow_date, _ in flows)
    timed_flows = [(domain_years_between(first_date, flow_date), amount) for flow_date, amount in flows]

    rate = _xirr_newton(timed_flows, options)
    if rate is not None:
        return rate
    return _xirr_bisection(timed_flows, options)


def annualize_simple_return(
    current_value: Decimal,
    total_invested: Decimal,
    first_date: date,
    as_of: date,
) -> float:
    """Quick annualized return estimate from value and invested totals.

    Periods shorter than a year return the plain simple return.

    Args:
        current_value: Current value (including anything already returned).
        total_invested: Capital put in.
        first_date: Date of the first investment.
        as_of: Valuation date.

    Returns:
        float: Return in percent, or 0.0 when nothing was invested.
    """

    if total_invested <= _ZERO:
        return 0.0
    years = domain_years_between(first_date, as_of)
    if years <= 0.0:
        return 0.0

    total_return = float(Decimal(current_value) / Decimal(total_invested)) - 1.0
    if years < 1.0:
        return total_return * 100.0
    if total_return <= -1.0:
        return -100.0
    return (_returns_safe_power(1.0 + total_return, 1.0 / years) - 1.0) * 100.0


def annualized_volatility(points: Sequence[ValuationPoint]) -> float:
    """Return the annualized volatility of a valuation series.

    Args:
        points: Valuation points in date order.

    Returns:
        float: Sample standard deviation of point-to-point returns scaled by
        the square root of 252 trading days, in percent. Zero when fewer than
        two returns can be computed.
    """

    point_returns = [
        float((current.total_value - previous.total_value) / previous.total_value)
        for previous, current in zip(points, points[1:])
        if previous.total_value > _ZERO
    ]
    if len(point_returns) < 2:
        return 0.0
    return statistics.stdev(point_returns) * math.sqrt(TRADING_DAYS_PER_YEAR) * 100.0


def _xirr_npv(timed_flows: Sequence[tuple[float, float]], rate: float) -> float:
    return sum(amount / (1.0 + rate) ** years for years, amount in timed_flows)


def _xirr_newton(timed_flows: Sequence[tuple[float, float]], options: AnnualizationOptions) -> float | None:
    rate = XIRR_INITIAL_GUESS
    try:
        for _ in range(options.xirr_max_iterations):
            npv = 0.0
            derivative = 0.0
            for years, amount in timed_flows:
                factor = (1.0 + rate) ** years
                npv += amount / factor
                derivative -= years * amount / (factor * (1.0 + rate))
            if abs(derivative) < 1e-12:
                return None
            next_rate = rate - npv / derivative
            if not math.isfinite(next_rate) or next_rate <= -1.0:
                return None
            if abs(next_rate - rate) < options.xirr_tolerance:
                return next_rate
            rate = next_rate
    except (OverflowError, ZeroDivisionError):
        return None
    return None


def _xirr_bisection(timed_flows: Sequence[tuple[float, float]], options: AnnualizationOptions) -> float | None:
    low, high = XIRR_LOWER_BRACKET, XIRR_UPPER_BRACKET
    try:
        low_value = _xirr_npv(timed_flows, low)
        high_value = _xirr_npv(timed_flows, high)
    except (OverflowError, ZeroDivisionError):
        return None
    if low_value == 0.0:
        return low
    if high_value == 0.0:
        return high
    if (low_value > 0.0) == (high_value > 0.0):
        return None

    iterations = max(options.xirr_max_iterations, 64)
    for _ in range(iterations):
        middle = (low + high) / 2.0
        middle_value = _xirr_npv(timed_flows, middle)
        if middle_value == 0.0 or (high - low) / 2.0 < options.xirr_tolerance:
            return middle
        if (middle_value > 0.0) == (low_value > 0.0):
            low, low_value = middle, middle_value
        else:
            high = middle
    return (low + high) / 2.0


def _returns_closed_form(invested: Decimal, final_value: Decimal, flow_date: date, end_date: date) -> float:
    years = domain_years_between(flow_date, end_date)
    growth = float(Decimal(final_value) / invested)
    if years <= 0.0:
        return (growth - 1.0) * 100.0
    if growth <= 0.0:
        return -100.0
    return (_returns_safe_power(growth, 1.0 / years) - 1.0) * 100.0


def _returns_safe_power(base: float, exponent: float) -> float:
    try:
        return base**exponent
    except OverflowError:
        logger.warning("annualization overflow base=%.6f exponent=%.6f", base, exponent)
        return math.inf


__all__ = [
    "TRADING_DAYS_PER_YEAR",
    "AnnualizationOptions",
    "DEFAULT_ANNUALIZATION_OPTIONS",
    "annualize_time_weighted",
    "annualize_money_weighted",
    "solve_xirr",
    "annualize_simple_return",
    "annualized_volatility",
]
