"""Cache layer package exports."""

from .keys import (
    KEY_SEPARATOR,
    KEY_WILDCARD,
    CacheDataKind,
    CacheTtlPolicy,
    cache_build_key,
    cache_key_segments,
)
from .singleflight import CacheStats, Producer, SingleflightCache

__all__ = [
    "KEY_SEPARATOR",
    "KEY_WILDCARD",
    "CacheDataKind",
    "CacheTtlPolicy",
    "cache_build_key",
    "cache_key_segments",
    "CacheStats",
    "Producer",
    "SingleflightCache",
]
