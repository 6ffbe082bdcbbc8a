"""Account-holding ledger for aggregate external-account positions.

Account holdings store total balance snapshots directly as valuation points.
Contributions form the cost basis; a withdrawal releases basis pro-rata to the
balance it draws down. Synthetic quantity and unit price are derived only for
display.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from folio_returns.domain import AccountBalanceError, DataIntegrityError, Event, EventKind, ValuationPoint

from .fifo_engine import fifo_sort_events


logger = logging.getLogger(__name__)

_ZERO = Decimal("0")
_UNSUPPORTED_ACCOUNT_KINDS = frozenset({EventKind.BUY, EventKind.SELL, EventKind.BONUS})


@dataclass(frozen=True)
class AccountWithdrawalRecord:
    """Realized-gain record for one account withdrawal.

    Attributes:
        event_id: Withdrawal event identifier.
        symbol: Account-holding symbol.
        withdrawal_date: Withdrawal date.
        amount: Gross withdrawn amount.
        fees: Withdrawal fees.
        balance_before: Estimated balance immediately before the withdrawal.
        basis_released: Contribution basis released by the withdrawal.
        realized_gain: Net withdrawn amount minus released basis.
    """

    event_id: str
    symbol: str
    withdrawal_date: date
    amount: Decimal
    fees: Decimal
    balance_before: Decimal
    basis_released: Decimal
    realized_gain: Decimal


@dataclass(frozen=True)
class AccountLedgerResult:
    """Output payload for one account-holding ledger computation.

    Attributes:
        symbol: Account-holding symbol.
        contributions: Remaining contribution basis.
        total_deposited: Sum of deposits including fees.
        total_withdrawn: Sum of net withdrawals.
        withdrawals: Withdrawal records in processing order.
    """

    symbol: str
    contributions: Decimal
    total_deposited: Decimal
    total_withdrawn: Decimal
    withdrawals: tuple[AccountWithdrawalRecord, ...]

    @property
    def cost_basis(self) -> Decimal:
        """Return the remaining contribution basis."""

        return self.contributions

    @property
    def realized_gain(self) -> Decimal:
        """Return realized gain across all withdrawals."""

        return sum((record.realized_gain for record in self.withdrawals), _ZERO)


@dataclass(frozen=True)
class AccountDisplayPosition:
    """Synthetic display position for an account holding.

    Attributes:
        quantity: Synthetic units (contribution basis at unit price 1).
        unit_price: Balance divided by synthetic units.
    """

    quantity: Decimal
    unit_price: Decimal


def account_build_ledger(
    symbol: str,
    events: Iterable[Event],
    balances: Sequence[ValuationPoint] = (),
) -> AccountLedgerResult:
    """Build contribution basis and withdrawal gains for one account holding.

    Args:
        symbol: Account-holding symbol.
        events: Events for this account holding.
        balances: Balance snapshots for this account holding.

    Returns:
        AccountLedgerResult: Contribution basis and withdrawal records.

    Raises:
        DataIntegrityError: Raised when trade-style events target the account.
        AccountBalanceError: Raised when a withdrawal exceeds the estimated balance.
    """

    if not symbol or not symbol.strip():
        raise ValueError("symbol must not be blank")
    normalized_symbol = symbol.strip()

    sorted_balances = sorted(balances, key=lambda point: point.point_date)
    contributions = _ZERO
    total_deposited = _ZERO
    total_withdrawn = _ZERO
    withdrawals: list[AccountWithdrawalRecord] = []
    processed_flows: list[tuple[date, Decimal]] = []

    for event in fifo_sort_events(events):
        if event.symbol != normalized_symbol:
            raise ValueError(f"event {event.event_id} belongs to symbol={event.symbol}, expected {normalized_symbol}")
        if event.kind in _UNSUPPORTED_ACCOUNT_KINDS:
            raise DataIntegrityError(
                f"event {event.event_id} kind={event.kind.value} is not supported for account holding {normalized_symbol}"
            )

        if event.kind == EventKind.DEPOSIT:
            deposited = event.cash_effect.amount + event.fees
            contributions += deposited
            total_deposited += deposited
            processed_flows.append((event.event_date, event.cash_effect.amount))
        elif event.kind == EventKind.WITHDRAWAL:
            amount = event.cash_effect.amount
            balance_before = _account_balance_before(
                withdrawal_date=event.event_date,
                balances=sorted_balances,
                processed_flows=processed_flows,
                contributions=contributions,
            )
            if balance_before <= _ZERO:
                raise AccountBalanceError(
                    f"withdrawal {event.event_id} from {normalized_symbol} on {event.event_date.isoformat()} "
                    f"has no positive balance to draw from"
                )
            if amount > balance_before:
                raise AccountBalanceError(
                    f"withdrawal {event.event_id} of {amount} from {normalized_symbol} exceeds "
                    f"estimated balance {balance_before}"
                )

            basis_released = contributions * amount / balance_before
            net_amount = amount - event.fees
            contributions -= basis_released
            total_withdrawn += net_amount
            processed_flows.append((event.event_date, -amount))
            withdrawals.append(
                AccountWithdrawalRecord(
                    event_id=event.event_id,
                    symbol=normalized_symbol,
                    withdrawal_date=event.event_date,
                    amount=amount,
                    fees=event.fees,
                    balance_before=balance_before,
                    basis_released=basis_released,
                    realized_gain=net_amount - basis_released,
                )
            )

    logger.debug(
        "account ledger built symbol=%s contributions=%s withdrawals=%d",
        normalized_symbol,
        contributions,
        len(withdrawals),
    )
    return AccountLedgerResult(
        symbol=normalized_symbol,
        contributions=contributions,
        total_deposited=total_deposited,
        total_withdrawn=total_withdrawn,
        withdrawals=tuple(withdrawals),
    )


def account_display_position(ledger: AccountLedgerResult, balance: Decimal) -> AccountDisplayPosition:
    """Derive a synthetic display position for an account holding.

    Args:
        ledger: Account ledger result.
        balance: Current account balance.

    Returns:
        AccountDisplayPosition: Synthetic units and unit price.

    Raises:
        AccountBalanceError: Raised when the synthetic quantity is zero.
    """

    quantity = ledger.contributions
    if quantity == _ZERO:
        raise AccountBalanceError(
            f"account holding {ledger.symbol} has zero synthetic quantity; unit price is undefined"
        )
    return AccountDisplayPosition(quantity=quantity, unit_price=Decimal(balance) / quantity)


def _account_balance_before(
    withdrawal_date: date,
    balances: Sequence[ValuationPoint],
    processed_flows: Sequence[tuple[date, Decimal]],
    contributions: Decimal,
) -> Decimal:
    """Estimate the account balance immediately before a withdrawal.

    Args:
        withdrawal_date: Withdrawal date.
        balances: Balance snapshots sorted by date.
        processed_flows: Signed deposit/withdrawal amounts already processed.
        contributions: Current contribution basis.

    Returns:
        Decimal: Last snapshot strictly before the date plus later flows, or the
        contribution basis when no snapshot precedes the withdrawal.
    """

    prior_snapshot = None
    for point in balances:
        if point.point_date >= withdrawal_date:
            break
        prior_snapshot = point

    if prior_snapshot is None:
        return contributions

    flows_since_snapshot = sum(
        (amount for flow_date, amount in processed_flows if flow_date > prior_snapshot.point_date),
        _ZERO,
    )
    return prior_snapshot.total_value + flows_since_snapshot


__all__ = [
    "AccountWithdrawalRecord",
    "AccountLedgerResult",
    "AccountDisplayPosition",
    "account_build_ledger",
    "account_display_position",
]
