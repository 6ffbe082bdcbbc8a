"""Return calculation layer package exports."""

from .annualization import (
    DEFAULT_ANNUALIZATION_OPTIONS,
    TRADING_DAYS_PER_YEAR,
    AnnualizationOptions,
    annualize_money_weighted,
    annualize_simple_return,
    annualize_time_weighted,
    annualized_volatility,
    solve_xirr,
)
from .calculator import (
    ReturnCalculationRequest,
    returns_calculate_annualized,
    returns_calculate_detailed,
    returns_calculate_metrics,
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
    returns_empty_metrics,
    returns_serialize_annualized_metrics,
    returns_serialize_detailed_metrics,
    returns_serialize_metrics,
)
from .presentation import presentation_clamp_annualized, presentation_format_percentage
from .service import PortfolioReturnsService

__all__ = [
    "DEFAULT_ANNUALIZATION_OPTIONS",
    "TRADING_DAYS_PER_YEAR",
    "AnnualizationOptions",
    "annualize_money_weighted",
    "annualize_simple_return",
    "annualize_time_weighted",
    "annualized_volatility",
    "solve_xirr",
    "ReturnCalculationRequest",
    "returns_calculate_annualized",
    "returns_calculate_detailed",
    "returns_calculate_metrics",
    "AnnualizedReturnMetrics",
    "CapitalGains",
    "DetailedReturnMetrics",
    "DividendIncome",
    "RealizedVsUnrealized",
    "ReturnMetrics",
    "ReturnScope",
    "ReturnScopeKind",
    "returns_empty_detailed_metrics",
    "returns_empty_metrics",
    "returns_serialize_annualized_metrics",
    "returns_serialize_detailed_metrics",
    "returns_serialize_metrics",
    "presentation_clamp_annualized",
    "presentation_format_percentage",
    "PortfolioReturnsService",
]
