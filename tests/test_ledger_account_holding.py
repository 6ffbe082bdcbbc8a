"""Tests for account-holding contribution basis and withdrawal gains."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from folio_returns.domain import AccountBalanceError, DataIntegrityError, Event, EventKind, ValuationPoint
from folio_returns.ledger import account_build_ledger, account_display_position


def _deposit(event_id: str, amount: str, event_date: date, fees: str = "0") -> Event:
    return Event(event_id, "SAVINGS", EventKind.DEPOSIT, 0, 0, fees, "USD", event_date, amount=amount)


def _withdrawal(event_id: str, amount: str, event_date: date, fees: str = "0") -> Event:
    return Event(event_id, "SAVINGS", EventKind.WITHDRAWAL, 0, 0, fees, "USD", event_date, amount=amount)


def test_ledger_account_withdrawal_releases_basis_pro_rata_to_balance() -> None:
    """Release contribution basis in proportion to the balance drawn down.

    Returns:
        None: Assertions validate released basis and realized gain.

    Raises:
        AssertionError: Raised when basis release is not pro-rata.
    """

    result = account_build_ledger(
        "SAVINGS",
        [_deposit("d1", "1000", date(2024, 1, 10)), _withdrawal("w1", "550", date(2024, 7, 1))],
        balances=[
            ValuationPoint(date(2024, 1, 10), "1000"),
            ValuationPoint(date(2024, 6, 30), "1100"),
        ],
    )

    record = result.withdrawals[0]
    assert record.balance_before == Decimal("1100")
    assert record.basis_released == Decimal("500")
    assert record.realized_gain == Decimal("50")
    assert result.contributions == Decimal("500")
    assert result.total_deposited == Decimal("1000")
    assert result.total_withdrawn == Decimal("550")


def test_ledger_account_balance_estimate_adds_flows_after_last_snapshot() -> None:
    """Add deposits booked after the last snapshot to the estimated balance."""

    result = account_build_ledger(
        "SAVINGS",
        [
            _deposit("d1", "1000", date(2024, 1, 10)),
            _deposit("d2", "500", date(2024, 3, 1)),
            _withdrawal("w1", "300", date(2024, 3, 15)),
        ],
        balances=[ValuationPoint(date(2024, 2, 1), "1100")],
    )

    assert result.withdrawals[0].balance_before == Decimal("1600")
    assert result.withdrawals[0].basis_released == Decimal("281.25")


def test_ledger_account_withdrawal_without_prior_snapshot_uses_contributions() -> None:
    """Fall back to contribution basis when no snapshot precedes the withdrawal."""

    result = account_build_ledger(
        "SAVINGS",
        [_deposit("d1", "1000", date(2024, 1, 10)), _withdrawal("w1", "250", date(2024, 1, 10), fees="5")],
    )

    record = result.withdrawals[0]
    assert record.balance_before == Decimal("1000")
    assert record.basis_released == Decimal("250")
    assert record.realized_gain == Decimal("-5")
    assert result.total_withdrawn == Decimal("245")


def test_ledger_account_deposit_fees_are_added_to_basis() -> None:
    """Capitalize deposit fees into contribution basis."""

    result = account_build_ledger("SAVINGS", [_deposit("d1", "1000", date(2024, 1, 10), fees="2")])

    assert result.cost_basis == Decimal("1002")
    assert result.realized_gain == Decimal("0")


def test_ledger_account_withdrawal_exceeding_balance_raises() -> None:
    """Reject withdrawals larger than the estimated balance.

    Returns:
        None: Assertions validate the typed balance error.

    Raises:
        AssertionError: Raised when an impossible withdrawal is accepted.
    """

    with pytest.raises(AccountBalanceError, match="exceeds estimated balance"):
        account_build_ledger(
            "SAVINGS",
            [_deposit("d1", "1000", date(2024, 1, 10)), _withdrawal("w1", "1500", date(2024, 7, 1))],
            balances=[ValuationPoint(date(2024, 6, 30), "1100")],
        )


def test_ledger_account_rejects_trade_events() -> None:
    """Reject buy/sell events booked against an account holding."""

    buy = Event("b1", "SAVINGS", EventKind.BUY, 1, 100, 0, "USD", date(2024, 1, 10))

    with pytest.raises(DataIntegrityError, match="not supported for account holding"):
        account_build_ledger("SAVINGS", [buy])


def test_ledger_account_display_position_derives_synthetic_unit_price() -> None:
    """Derive synthetic units from basis and unit price from balance."""

    ledger = account_build_ledger("SAVINGS", [_deposit("d1", "1000", date(2024, 1, 10))])

    position = account_display_position(ledger, Decimal("1250"))

    assert position.quantity == Decimal("1000")
    assert position.unit_price == Decimal("1.25")


def test_ledger_account_display_position_rejects_zero_quantity() -> None:
    """Refuse to derive a unit price when no basis remains."""

    ledger = account_build_ledger("SAVINGS", [])

    with pytest.raises(AccountBalanceError, match="zero synthetic quantity"):
        account_display_position(ledger, Decimal("10"))
