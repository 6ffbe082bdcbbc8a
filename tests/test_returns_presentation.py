"""Tests for return display helpers and scope validation."""

from __future__ import annotations

import math

import pytest

from folio_returns.returns import (
    ReturnScope,
    ReturnScopeKind,
    presentation_clamp_annualized,
    presentation_format_percentage,
)


def test_returns_clamp_annualized_bounds_extreme_values() -> None:
    """Clamp extreme annualized values and show NaN as zero."""

    assert presentation_clamp_annualized(1234.5) == 200.0
    assert presentation_clamp_annualized(-99.9) == -95.0
    assert presentation_clamp_annualized(12.5) == 12.5
    assert presentation_clamp_annualized(math.nan) == 0.0
    assert presentation_clamp_annualized(math.inf) == 200.0
    assert presentation_clamp_annualized(50.0, floor=-10.0, ceiling=20.0) == 20.0


def test_returns_clamp_annualized_rejects_inverted_bounds() -> None:
    """Reject a floor above the ceiling."""

    with pytest.raises(ValueError, match="floor must not exceed ceiling"):
        presentation_clamp_annualized(1.0, floor=10.0, ceiling=5.0)


def test_returns_format_percentage_adds_sign_and_handles_non_finite() -> None:
    """Format with an explicit sign and show non-finite values as N/A."""

    assert presentation_format_percentage(12.3) == "+12.30%"
    assert presentation_format_percentage(-5.0) == "-5.00%"
    assert presentation_format_percentage(0.0) == "+0.00%"
    assert presentation_format_percentage(7.25, decimals=1) == "+7.2%"
    assert presentation_format_percentage(math.inf) == "N/A"
    assert presentation_format_percentage(math.nan) == "N/A"


def test_returns_scope_validates_symbol_and_currency() -> None:
    """Require a symbol for symbol/account scopes and none for portfolios.

    Returns:
        None: Assertions validate scope construction rules.

    Raises:
        AssertionError: Raised when an invalid scope is accepted.
    """

    scope = ReturnScope(kind="account", currency=" eur ", symbol="SAVINGS")

    assert scope.kind == ReturnScopeKind.ACCOUNT
    assert scope.currency == "EUR"
    with pytest.raises(ValueError, match="portfolio scope must not name a symbol"):
        ReturnScope(kind=ReturnScopeKind.PORTFOLIO, currency="USD", symbol="AAPL")
    with pytest.raises(ValueError, match="symbol scope requires a symbol"):
        ReturnScope(kind=ReturnScopeKind.SYMBOL, currency="USD")
    with pytest.raises(ValueError, match="currency must not be blank"):
        ReturnScope.for_portfolio(" ")
