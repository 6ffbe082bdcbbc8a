"""Typed domain models shared across engine layers.

Events and valuation points are immutable value objects. Every numeric money
field is normalized to `Decimal` on construction so callers may pass ints,
numeric strings, or floats from loosely typed sources.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from .dates import domain_parse_date
from .errors import DataIntegrityError


class EventKind(str, Enum):
    """Supported portfolio event kinds."""

    BUY = "buy"
    SELL = "sell"
    DIVIDEND = "dividend"
    BONUS = "bonus"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


_AMOUNT_ENCODED_KINDS = frozenset({EventKind.DIVIDEND, EventKind.DEPOSIT, EventKind.WITHDRAWAL})


@dataclass(frozen=True)
class ExplicitCashEffect:
    """Cash effect recorded as a standalone amount.

    Attributes:
        amount: Cash amount moved by the event.
    """

    amount: Decimal


@dataclass(frozen=True)
class DerivedCashEffect:
    """Cash effect derived from quantity and unit price.

    Attributes:
        quantity: Event quantity.
        unit_price: Event unit price.
    """

    quantity: Decimal
    unit_price: Decimal

    @property
    def amount(self) -> Decimal:
        """Return quantity multiplied by unit price."""

        return self.quantity * self.unit_price


CashEffect = ExplicitCashEffect | DerivedCashEffect


@dataclass(frozen=True)
class Event:
    """One immutable portfolio event.

    Attributes:
        event_id: Stable event identifier.
        symbol: Holding symbol the event belongs to.
        kind: Event kind.
        quantity: Non-negative units moved by the event.
        unit_price: Non-negative price per unit.
        fees: Non-negative fee charged on the event.
        currency: ISO currency code the money fields are expressed in.
        event_date: Calendar date of the event.
        amount: Optional standalone cash amount for dividend/deposit/withdrawal rows.
        notes: Optional free-form note.
        cash_effect: Encoding-independent cash effect resolved on construction.
    """

    event_id: str
    symbol: str
    kind: EventKind
    quantity: Decimal
    unit_price: Decimal
    fees: Decimal
    currency: str
    event_date: date
    amount: Decimal | None = None
    notes: str | None = None
    cash_effect: CashEffect = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.event_id, str) or not self.event_id.strip():
            raise DataIntegrityError("event_id must not be blank")
        if not isinstance(self.symbol, str) or not self.symbol.strip():
            raise DataIntegrityError(f"event {self.event_id} symbol must not be blank")
        if not isinstance(self.currency, str) or not self.currency.strip():
            raise DataIntegrityError(f"event {self.event_id} currency must not be blank")

        object.__setattr__(self, "symbol", self.symbol.strip())
        object.__setattr__(self, "currency", self.currency.strip().upper())
        object.__setattr__(self, "kind", domain_parse_event_kind(self.kind))
        object.__setattr__(self, "event_date", domain_parse_date(self.event_date))

        for field_name in ("quantity", "unit_price", "fees"):
            normalized_value = _domain_to_decimal(getattr(self, field_name), field_name, self.event_id)
            if normalized_value < Decimal("0"):
                raise DataIntegrityError(f"event {self.event_id} {field_name} must be >= 0")
            object.__setattr__(self, field_name, normalized_value)

        if self.amount is not None:
            normalized_amount = _domain_to_decimal(self.amount, "amount", self.event_id)
            if normalized_amount < Decimal("0"):
                raise DataIntegrityError(f"event {self.event_id} amount must be >= 0")
            object.__setattr__(self, "amount", normalized_amount)

        object.__setattr__(self, "cash_effect", domain_resolve_cash_effect(self))


@dataclass(frozen=True)
class ValuationPoint:
    """One external valuation snapshot for a symbol or the whole portfolio.

    Attributes:
        point_date: Snapshot date (end-of-day semantics).
        total_value: Market value at the snapshot.
        cost_basis: Cost basis reported by the valuation provider.
    """

    point_date: date
    total_value: Decimal
    cost_basis: Decimal = Decimal("0")

    def __post_init__(self) -> None:
        object.__setattr__(self, "point_date", domain_parse_date(self.point_date))
        total_value = _domain_to_decimal(self.total_value, "total_value", self.point_date.isoformat())
        if total_value < Decimal("0"):
            raise DataIntegrityError(f"valuation on {self.point_date.isoformat()} total_value must be >= 0")
        object.__setattr__(self, "total_value", total_value)
        object.__setattr__(
            self,
            "cost_basis",
            _domain_to_decimal(self.cost_basis, "cost_basis", self.point_date.isoformat()),
        )


def domain_parse_event_kind(value: EventKind | str) -> EventKind:
    """Parse an event kind from enum or case-insensitive string value.

    Args:
        value: Event kind input.

    Returns:
        EventKind: Parsed kind.

    Raises:
        DataIntegrityError: Raised when the kind is unknown.
    """

    if isinstance(value, EventKind):
        return value
    try:
        return EventKind(str(value).strip().lower())
    except ValueError as error:
        raise DataIntegrityError(f"unsupported event kind={value}") from error


def domain_resolve_cash_effect(event: Event) -> CashEffect:
    """Resolve the encoding-independent cash effect for one event.

    Dividend, deposit, and withdrawal rows carry their cash either in `amount`,
    or (legacy rows) in `unit_price` with zero quantity, or as quantity times
    price. Trades and bonuses always derive from quantity and price.

    Args:
        event: Event with normalized numeric fields.

    Returns:
        CashEffect: Explicit or derived cash effect.
    """

    if event.kind in _AMOUNT_ENCODED_KINDS:
        if event.amount is not None and event.amount != Decimal("0"):
            return ExplicitCashEffect(amount=event.amount)
        if event.quantity == Decimal("0") and event.unit_price > Decimal("0"):
            return ExplicitCashEffect(amount=event.unit_price)
    return DerivedCashEffect(quantity=event.quantity, unit_price=event.unit_price)


def domain_parse_event(payload: Mapping[str, Any]) -> Event:
    """Build an event from a loosely typed mapping.

    Accepts both snake_case keys and the `price_per_unit`/`type`/`date` aliases
    used by storage rows.

    Args:
        payload: Event mapping.

    Returns:
        Event: Validated event.

    Raises:
        DataIntegrityError: Raised when required keys are missing or invalid.
    """

    def _pick(*keys: str, default: Any = None) -> Any:
        for key in keys:
            if key in payload and payload[key] is not None:
                return payload[key]
        return default

    missing_keys = [
        label
        for label, keys in (
            ("event_id", ("event_id", "id")),
            ("symbol", ("symbol",)),
            ("kind", ("kind", "type")),
            ("event_date", ("event_date", "date")),
        )
        if _pick(*keys) is None
    ]
    if missing_keys:
        raise DataIntegrityError(f"event payload missing required keys: {', '.join(missing_keys)}")

    try:
        event_date = domain_parse_date(_pick("event_date", "date"))
    except ValueError as error:
        raise DataIntegrityError(str(error)) from error

    return Event(
        event_id=str(_pick("event_id", "id")),
        symbol=str(_pick("symbol")),
        kind=_pick("kind", "type"),
        quantity=_pick("quantity", default=Decimal("0")),
        unit_price=_pick("unit_price", "price_per_unit", default=Decimal("0")),
        fees=_pick("fees", default=Decimal("0")),
        currency=str(_pick("currency", default="USD")),
        event_date=event_date,
        amount=_pick("amount"),
        notes=_pick("notes"),
    )


def domain_parse_valuation(payload: Mapping[str, Any]) -> ValuationPoint:
    """Build a valuation point from a loosely typed mapping.

    Args:
        payload: Mapping with `point_date` (or `date`), `total_value` (or
            `value`/`balance`), and optional `cost_basis`.

    Returns:
        ValuationPoint: Validated point.

    Raises:
        DataIntegrityError: Raised when required keys are missing or invalid.
    """

    point_date = payload.get("point_date", payload.get("date"))
    total_value = payload.get("total_value", payload.get("value", payload.get("balance")))
    if point_date is None or total_value is None:
        raise DataIntegrityError("valuation payload requires point_date and total_value")
    try:
        parsed_date = domain_parse_date(point_date)
    except ValueError as error:
        raise DataIntegrityError(str(error)) from error
    return ValuationPoint(
        point_date=parsed_date,
        total_value=total_value,
        cost_basis=payload.get("cost_basis") if payload.get("cost_basis") is not None else Decimal("0"),
    )


def _domain_to_decimal(value: Any, field_name: str, context: str) -> Decimal:
    """Normalize a numeric input into a finite Decimal.

    Args:
        value: Numeric input.
        field_name: Field label for error messages.
        context: Record identifier for error messages.

    Returns:
        Decimal: Normalized value.

    Raises:
        DataIntegrityError: Raised when the value is not a finite number.
    """

    if isinstance(value, Decimal):
        normalized_value = value
    elif isinstance(value, bool) or value is None:
        raise DataIntegrityError(f"{context} {field_name} must be numeric")
    else:
        try:
            normalized_value = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as error:
            raise DataIntegrityError(f"{context} {field_name} must be numeric, got {value!r}") from error

    if not normalized_value.is_finite():
        raise DataIntegrityError(f"{context} {field_name} must be finite")
    return normalized_value


__all__ = [
    "EventKind",
    "ExplicitCashEffect",
    "DerivedCashEffect",
    "CashEffect",
    "Event",
    "ValuationPoint",
    "domain_parse_event_kind",
    "domain_resolve_cash_effect",
    "domain_parse_event",
    "domain_parse_valuation",
]
