"""Period scoping package for bounded and since-inception metrics."""

from .scoper import (
    ScopedHistory,
    period_average_capital,
    period_opening_point,
    period_return_percentage,
    period_scope_history,
)
from .time_ranges import TimeRange, period_parse_time_range, period_resolve_time_range

__all__ = [
    "ScopedHistory",
    "period_average_capital",
    "period_opening_point",
    "period_return_percentage",
    "period_scope_history",
    "TimeRange",
    "period_parse_time_range",
    "period_resolve_time_range",
]
