"""Ledger layer package for FIFO lots and account-holding basis."""

from .account_holding import (
    AccountDisplayPosition,
    AccountLedgerResult,
    AccountWithdrawalRecord,
    account_build_ledger,
    account_display_position,
)
from .fifo_engine import (
    Lot,
    LotLedgerResult,
    MatchedLot,
    RealizedGainRecord,
    fifo_build_lot_ledger,
    fifo_build_portfolio_ledgers,
    fifo_sort_events,
)

__all__ = [
    "AccountDisplayPosition",
    "AccountLedgerResult",
    "AccountWithdrawalRecord",
    "account_build_ledger",
    "account_display_position",
    "Lot",
    "LotLedgerResult",
    "MatchedLot",
    "RealizedGainRecord",
    "fifo_build_lot_ledger",
    "fifo_build_portfolio_ledgers",
    "fifo_sort_events",
]
