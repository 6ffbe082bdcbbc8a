"""Named dashboard time ranges resolved into period start dates."""

from __future__ import annotations

from datetime import date, timedelta
from enum import Enum


class TimeRange(str, Enum):
    """Supported named time ranges."""

    FIVE_DAYS = "5d"
    ONE_MONTH = "1m"
    SIX_MONTHS = "6m"
    YEAR_TO_DATE = "ytd"
    ONE_YEAR = "1y"
    FIVE_YEARS = "5y"
    ALL = "all"


_TIME_RANGE_DAYS = {
    TimeRange.FIVE_DAYS: 5,
    TimeRange.ONE_MONTH: 30,
    TimeRange.SIX_MONTHS: 6 * 30,
    TimeRange.ONE_YEAR: 365,
    TimeRange.FIVE_YEARS: 5 * 365,
}


def period_parse_time_range(value: TimeRange | str) -> TimeRange:
    """Parse a named time range.

    Args:
        value: Enum member or case-insensitive key such as `1y`.

    Returns:
        TimeRange: Parsed range.

    Raises:
        ValueError: Raised when the key is unknown.
    """

    if isinstance(value, TimeRange):
        return value
    try:
        return TimeRange(str(value).strip().lower())
    except ValueError as error:
        supported = ", ".join(member.value for member in TimeRange)
        raise ValueError(f"unsupported time_range={value}; expected one of {supported}") from error


def period_resolve_time_range(value: TimeRange | str, as_of: date) -> date | None:
    """Resolve a named time range into its start date.

    Args:
        value: Named time range.
        as_of: Reference date the range ends on.

    Returns:
        date | None: Range start date, or None for the since-inception range.

    Raises:
        ValueError: Raised when the key is unknown.
    """

    time_range = period_parse_time_range(value)
    if time_range == TimeRange.ALL:
        return None
    if time_range == TimeRange.YEAR_TO_DATE:
        return date(as_of.year, 1, 1)
    return as_of - timedelta(days=_TIME_RANGE_DAYS[time_range])


__all__ = ["TimeRange", "period_parse_time_range", "period_resolve_time_range"]
