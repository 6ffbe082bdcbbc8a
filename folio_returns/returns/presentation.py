"""Display helpers for return percentages."""

from __future__ import annotations

import math


def presentation_clamp_annualized(value: float, floor: float = -95.0, ceiling: float = 200.0) -> float:
    """Clamp an annualized percentage into a displayable range.

    Args:
        value: Annualized return in percent.
        floor: Lowest displayed value.
        ceiling: Highest displayed value.

    Returns:
        float: Clamped value; NaN is shown as zero.
    """

    if floor > ceiling:
        raise ValueError("floor must not exceed ceiling")
    if math.isnan(value):
        return 0.0
    return min(max(value, floor), ceiling)


def presentation_format_percentage(value: float, decimals: int = 2) -> str:
    """Format a percentage with an explicit sign, e.g. `+12.34%`."""

    if not math.isfinite(value):
        return "N/A"
    sign = "+" if value >= 0 else ""
    return f"{sign}{value:.{decimals}f}%"


__all__ = ["presentation_clamp_annualized", "presentation_format_percentage"]
