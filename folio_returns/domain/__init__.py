"""Domain contracts shared across engine layer boundaries."""

from .dates import DAYS_PER_YEAR, domain_parse_date, domain_years_between
from .errors import (
    AccountBalanceError,
    CurrencyMismatchError,
    DataIntegrityError,
    DuplicateEventError,
    OversoldPositionError,
    ReturnsEngineError,
)
from .models import (
    CashEffect,
    DerivedCashEffect,
    Event,
    EventKind,
    ExplicitCashEffect,
    ValuationPoint,
    domain_parse_event,
    domain_parse_event_kind,
    domain_parse_valuation,
    domain_resolve_cash_effect,
)

__all__ = [
    "DAYS_PER_YEAR",
    "domain_parse_date",
    "domain_years_between",
    "ReturnsEngineError",
    "DataIntegrityError",
    "OversoldPositionError",
    "AccountBalanceError",
    "CurrencyMismatchError",
    "DuplicateEventError",
    "CashEffect",
    "DerivedCashEffect",
    "ExplicitCashEffect",
    "Event",
    "EventKind",
    "ValuationPoint",
    "domain_parse_event",
    "domain_parse_event_kind",
    "domain_parse_valuation",
    "domain_resolve_cash_effect",
]
