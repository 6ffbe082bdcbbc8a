"""Cache key construction and per-data-kind TTL policy."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


KEY_SEPARATOR = ":"
KEY_WILDCARD = "*"


class CacheDataKind(str, Enum):
    """Kinds of cached data, each with its own freshness expectation."""

    TRANSACTIONS = "transactions"
    SYMBOLS = "symbols"
    PRICES = "prices"
    PORTFOLIO = "portfolio"
    RETURNS = "returns"


@dataclass(frozen=True)
class CacheTtlPolicy:
    """TTL tiers in seconds.

    Attributes:
        long_ttl_seconds: Slow-changing reference data (symbols, transactions).
        default_ttl_seconds: Derived aggregates (portfolio, returns).
        short_ttl_seconds: Market-price-like data.
    """

    long_ttl_seconds: float = 900.0
    default_ttl_seconds: float = 300.0
    short_ttl_seconds: float = 120.0

    def __post_init__(self) -> None:
        if not 0 < self.short_ttl_seconds <= self.default_ttl_seconds <= self.long_ttl_seconds:
            raise ValueError("cache TTLs must satisfy 0 < short <= default <= long")

    def ttl_for(self, kind: CacheDataKind | str) -> float:
        """Return the TTL for a data kind.

        Args:
            kind: Cached data kind.

        Returns:
            float: TTL in seconds.
        """

        data_kind = CacheDataKind(kind)
        if data_kind in {CacheDataKind.TRANSACTIONS, CacheDataKind.SYMBOLS}:
            return self.long_ttl_seconds
        if data_kind == CacheDataKind.PRICES:
            return self.short_ttl_seconds
        return self.default_ttl_seconds


def cache_build_key(
    kind: CacheDataKind | str,
    user_id: str,
    symbol: str | None = None,
    currency: str | None = None,
    *qualifiers: str,
) -> str:
    """Build a cache key `kind:user:symbol:currency[:qualifier...]`.

    Args:
        kind: Cached data kind.
        user_id: Owning user identifier.
        symbol: Optional symbol, `*` when omitted.
        currency: Optional currency, `*` when omitted.
        *qualifiers: Extra segments such as a date range.

    Returns:
        str: Cache key.

    Raises:
        ValueError: Raised when user_id is blank or a segment contains the separator.
    """

    if not user_id or not user_id.strip():
        raise ValueError("user_id must not be blank")
    segments = [
        CacheDataKind(kind).value,
        user_id.strip(),
        symbol.strip() if symbol else KEY_WILDCARD,
        currency.strip().upper() if currency else KEY_WILDCARD,
        *(str(qualifier) for qualifier in qualifiers),
    ]
    for segment in segments:
        if KEY_SEPARATOR in segment:
            raise ValueError(f"cache key segment must not contain '{KEY_SEPARATOR}': {segment}")
    return KEY_SEPARATOR.join(segments)


def cache_key_segments(key: str) -> list[str]:
    """Split a cache key into its segments."""

    return key.split(KEY_SEPARATOR)


__all__ = [
    "KEY_SEPARATOR",
    "KEY_WILDCARD",
    "CacheDataKind",
    "CacheTtlPolicy",
    "cache_build_key",
    "cache_key_segments",
]
