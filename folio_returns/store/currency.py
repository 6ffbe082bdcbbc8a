"""Fixed-rate currency conversion of events and valuation series."""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from decimal import Decimal

from folio_returns.domain import Event, ValuationPoint

from .interfaces import CurrencyConverterPort


_ONE = Decimal("1")


class StaticRateCurrencyConverter:
    """Currency converter backed by a fixed rate table.

    Rates are keyed by `(source, target)` and multiply source amounts into
    target amounts. The inverse of a configured pair is derived on lookup.
    """

    def __init__(self, rates: Mapping[tuple[str, str], Decimal | str | float] | None = None):
        normalized_rates: dict[tuple[str, str], Decimal] = {}
        for (source_currency, target_currency), rate in (rates or {}).items():
            decimal_rate = Decimal(str(rate))
            if decimal_rate <= 0:
                raise ValueError(f"rate {source_currency}->{target_currency} must be positive")
            normalized_rates[(source_currency.upper(), target_currency.upper())] = decimal_rate
        self._rates = normalized_rates

    def currency_rate(self, source_currency: str, target_currency: str) -> Decimal:
        """Return the multiplier converting source amounts into target amounts.

        Args:
            source_currency: Currency the amount is expressed in.
            target_currency: Requested currency.

        Returns:
            Decimal: Conversion multiplier.

        Raises:
            ValueError: Raised when neither the pair nor its inverse is configured.
        """

        source = source_currency.upper()
        target = target_currency.upper()
        if source == target:
            return _ONE
        if (source, target) in self._rates:
            return self._rates[(source, target)]
        if (target, source) in self._rates:
            return _ONE / self._rates[(target, source)]
        raise ValueError(f"no conversion rate configured for {source}->{target}")

    def currency_convert(self, amount: Decimal, source_currency: str, target_currency: str) -> Decimal:
        """Convert one amount between currencies."""

        return Decimal(amount) * self.currency_rate(source_currency, target_currency)


def currency_convert_events(
    events: Iterable[Event],
    target_currency: str,
    converter: CurrencyConverterPort,
) -> tuple[Event, ...]:
    """Re-express events in a target currency.

    Quantities are kept; unit price, fees, and explicit amounts are converted.

    Args:
        events: Events in any currency.
        target_currency: Requested currency.
        converter: Rate source.

    Returns:
        tuple[Event, ...]: Events expressed in the target currency.

    Raises:
        ValueError: Raised when a currency pair is not supported.
    """

    target = target_currency.upper()
    converted_events: list[Event] = []
    for event in events:
        if event.currency == target:
            converted_events.append(event)
            continue
        rate = converter.currency_rate(event.currency, target)
        converted_events.append(
            dataclasses.replace(
                event,
                unit_price=event.unit_price * rate,
                fees=event.fees * rate,
                amount=None if event.amount is None else event.amount * rate,
                currency=target,
            )
        )
    return tuple(converted_events)


def currency_convert_valuations(
    points: Iterable[ValuationPoint],
    source_currency: str,
    target_currency: str,
    converter: CurrencyConverterPort,
) -> tuple[ValuationPoint, ...]:
    """Re-express a valuation series in a target currency."""

    rate = converter.currency_rate(source_currency, target_currency)
    if rate == _ONE:
        return tuple(points)
    return tuple(
        ValuationPoint(
            point_date=point.point_date,
            total_value=point.total_value * rate,
            cost_basis=point.cost_basis * rate,
        )
        for point in points
    )


__all__ = [
    "StaticRateCurrencyConverter",
    "currency_convert_events",
    "currency_convert_valuations",
]
