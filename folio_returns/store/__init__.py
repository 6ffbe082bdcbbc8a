"""Collaborator ports and in-memory implementations."""

from .currency import StaticRateCurrencyConverter, currency_convert_events, currency_convert_valuations
from .interfaces import CurrencyConverterPort, EventStorePort, ValuationProviderPort, ValuationStorePort
from .memory import InMemoryEventStore, InMemoryValuationStore

__all__ = [
    "StaticRateCurrencyConverter",
    "currency_convert_events",
    "currency_convert_valuations",
    "CurrencyConverterPort",
    "EventStorePort",
    "ValuationProviderPort",
    "ValuationStorePort",
    "InMemoryEventStore",
    "InMemoryValuationStore",
]
