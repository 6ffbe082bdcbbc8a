"""Project-native typed exceptions for return-engine failures."""

from __future__ import annotations


class ReturnsEngineError(Exception):
    """Base exception for engine-level failures.

    Attributes:
        error_code: Stable machine-readable error code for API envelopes.
    """

    error_code = "RETURNS_ENGINE_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        if error_code is not None:
            self.error_code = error_code


class DataIntegrityError(ReturnsEngineError, ValueError):
    """Event log or valuation input that cannot describe a real portfolio."""

    error_code = "DATA_INTEGRITY_ERROR"


class OversoldPositionError(DataIntegrityError):
    """Sell quantity exceeds the open FIFO quantity at the sale date.

    Attributes:
        symbol: Symbol being sold.
        sale_date: ISO date of the offending sale.
        requested_quantity: Sell quantity requested by the event.
        available_quantity: Open quantity available before the sale.
    """

    error_code = "OVERSOLD_POSITION"

    def __init__(self, symbol: str, sale_date: str, requested_quantity, available_quantity):
        super().__init__(
            f"sell of {requested_quantity} {symbol} on {sale_date} exceeds open quantity {available_quantity}"
        )
        self.symbol = symbol
        self.sale_date = sale_date
        self.requested_quantity = requested_quantity
        self.available_quantity = available_quantity


class AccountBalanceError(DataIntegrityError):
    """Account-holding balance cannot support the requested derivation."""

    error_code = "ACCOUNT_BALANCE_ERROR"


class CurrencyMismatchError(DataIntegrityError):
    """Inputs are expressed in a currency other than the requested scope currency."""

    error_code = "CURRENCY_MISMATCH"


class DuplicateEventError(ReturnsEngineError, ValueError):
    """Event id already recorded in the owning user's log."""

    error_code = "DUPLICATE_EVENT"


__all__ = [
    "ReturnsEngineError",
    "DataIntegrityError",
    "OversoldPositionError",
    "AccountBalanceError",
    "CurrencyMismatchError",
    "DuplicateEventError",
]
