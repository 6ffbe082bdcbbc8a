"""Calendar helpers shared by period scoping and annualization."""

from __future__ import annotations

from datetime import date, datetime


DAYS_PER_YEAR = 365.25


def domain_parse_date(value: date | datetime | str) -> date:
    """Parse a calendar date from a date, datetime, or ISO-8601 string.

    Args:
        value: Date-like input. Datetime values are truncated to their date part.

    Returns:
        date: Parsed calendar date.

    Raises:
        ValueError: Raised when value is blank, malformed, or of unsupported type.
    """

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError("date value must be a non-empty ISO-8601 string")

    normalized_value = value.strip()
    try:
        if len(normalized_value) > 10:
            return datetime.fromisoformat(normalized_value).date()
        return date.fromisoformat(normalized_value)
    except ValueError as error:
        raise ValueError(f"invalid ISO-8601 date={normalized_value}") from error


def domain_years_between(start_date: date, end_date: date) -> float:
    """Return the signed number of years between two dates.

    Args:
        start_date: Interval start date.
        end_date: Interval end date.

    Returns:
        float: Day difference divided by 365.25.
    """

    return (end_date - start_date).days / DAYS_PER_YEAR


__all__ = ["DAYS_PER_YEAR", "domain_parse_date", "domain_years_between"]
