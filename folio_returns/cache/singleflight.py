"""In-memory TTL cache with singleflight request coalescing.

Concurrent `get_or_fetch` calls for one key share a single producer run. The
shared run is an `asyncio.Task`; waiters await it through `asyncio.shield`, so
a caller that gives up does not cancel the work other callers still wait for.
Failures reach every waiter and are never cached. The cache is bound to the
event loop it is used from and is not shared across processes.
"""

from __future__ import annotations

import asyncio
import fnmatch
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from .keys import CacheTtlPolicy, cache_key_segments


logger = logging.getLogger(__name__)

Producer = Callable[[], Awaitable[Any] | Any]

_MISSING = object()


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache statistics.

    Attributes:
        total_entries: Live (unexpired) cached entries.
        in_flight: Producer runs currently registered.
        entries_by_prefix: Live entry counts keyed by the first key segment.
    """

    total_entries: int
    in_flight: int
    entries_by_prefix: dict[str, int]


@dataclass(frozen=True)
class _CacheEntry:
    value: Any
    expires_at: float


class SingleflightCache:
    """TTL cache whose misses are computed at most once per key at a time."""

    def __init__(
        self,
        ttl_policy: CacheTtlPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize an empty cache.

        Args:
            ttl_policy: TTL tiers; the default tier applies when no TTL is given.
            clock: Monotonic clock returning seconds.
        """

        self.ttl_policy = ttl_policy or CacheTtlPolicy()
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task] = {}

    async def get_or_fetch(self, key: str, producer: Producer, ttl_seconds: float | None = None) -> Any:
        """Return a cached value or compute it once for all concurrent callers.

        Args:
            key: Cache key.
            producer: Zero-argument callable returning a value or an awaitable.
            ttl_seconds: TTL for the produced value; defaults to the policy's
                default tier.

        Returns:
            Any: Cached or freshly produced value.

        Raises:
            Exception: Whatever the producer raised, re-raised to every waiter.
        """

        cached_value = self._cache_lookup(key)
        if cached_value is not _MISSING:
            logger.debug("cache hit key=%s", key)
            return cached_value

        pending_task = self._in_flight.get(key)
        if pending_task is not None:
            logger.debug("singleflight join key=%s", key)
            return await asyncio.shield(pending_task)

        logger.debug("cache miss key=%s", key)
        effective_ttl = self.ttl_policy.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        task = asyncio.ensure_future(self._cache_run_producer(key, producer, effective_ttl))
        task.add_done_callback(_cache_consume_task_result)
        self._in_flight[key] = task
        return await asyncio.shield(task)

    def get(self, key: str, default: Any = None) -> Any:
        """Return a live cached value, or `default` when missing or expired."""

        cached_value = self._cache_lookup(key)
        return default if cached_value is _MISSING else cached_value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store a value with a TTL, dropping entries that have already expired.

        Args:
            key: Cache key.
            value: Value to store.
            ttl_seconds: TTL in seconds; defaults to the policy's default tier.

        Raises:
            ValueError: Raised when the TTL is not positive.
        """

        effective_ttl = self.ttl_policy.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if effective_ttl <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._cache_purge_expired()
        self._entries[key] = _CacheEntry(value=value, expires_at=self._clock() + effective_ttl)

    def invalidate(self, key: str) -> int:
        """Drop one key and detach its in-flight run.

        Returns:
            int: Number of removed cached entries.
        """

        return self._cache_invalidate_where(lambda candidate: candidate == key, f"key={key}")

    def invalidate_prefix(self, prefix: str) -> int:
        """Drop every key starting with a prefix."""

        return self._cache_invalidate_where(lambda candidate: candidate.startswith(prefix), f"prefix={prefix}")

    def invalidate_pattern(self, pattern: str) -> int:
        """Drop every key matching a shell-style glob pattern."""

        return self._cache_invalidate_where(
            lambda candidate: fnmatch.fnmatchcase(candidate, pattern),
            f"pattern={pattern}",
        )

    def invalidate_user(self, user_id: str) -> int:
        """Drop every key owned by a user."""

        def _owned_by_user(candidate: str) -> bool:
            segments = cache_key_segments(candidate)
            return len(segments) > 1 and segments[1] == user_id

        return self._cache_invalidate_where(_owned_by_user, f"user={user_id}")

    def invalidate_symbol(self, symbol: str) -> int:
        """Drop every key scoped to a symbol, across users."""

        def _scoped_to_symbol(candidate: str) -> bool:
            segments = cache_key_segments(candidate)
            return len(segments) > 2 and segments[2] == symbol

        return self._cache_invalidate_where(_scoped_to_symbol, f"symbol={symbol}")

    def clear(self) -> None:
        """Drop every entry and detach every in-flight run."""

        self._entries.clear()
        self._in_flight.clear()
        logger.debug("cache cleared")

    def stats(self) -> CacheStats:
        """Return live entry counts after purging expired entries."""

        self._cache_purge_expired()
        entries_by_prefix: dict[str, int] = {}
        for key in self._entries:
            prefix = cache_key_segments(key)[0]
            entries_by_prefix[prefix] = entries_by_prefix.get(prefix, 0) + 1
        return CacheStats(
            total_entries=len(self._entries),
            in_flight=len(self._in_flight),
            entries_by_prefix=entries_by_prefix,
        )

    async def _cache_run_producer(self, key: str, producer: Producer, ttl_seconds: float) -> Any:
        """Run the producer once and cache its value while still registered."""

        current_task = asyncio.current_task()
        try:
            value = producer()
            if inspect.isawaitable(value):
                value = await value
        except Exception as error:
            logger.warning("cache producer failed key=%s error=%s", key, error)
            raise
        else:
            if self._in_flight.get(key) is current_task:
                self.set(key, value, ttl_seconds)
            else:
                logger.debug("cache result discarded after invalidation key=%s", key)
            return value
        finally:
            if self._in_flight.get(key) is current_task:
                self._in_flight.pop(key, None)

    def _cache_lookup(self, key: str) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        if self._clock() >= entry.expires_at:
            self._entries.pop(key, None)
            logger.debug("cache entry expired key=%s", key)
            return _MISSING
        return entry.value

    def _cache_purge_expired(self) -> None:
        now = self._clock()
        for key in [key for key, entry in self._entries.items() if now >= entry.expires_at]:
            self._entries.pop(key, None)

    def _cache_invalidate_where(self, predicate: Callable[[str], bool], description: str) -> int:
        removed_keys = [key for key in self._entries if predicate(key)]
        for key in removed_keys:
            self._entries.pop(key, None)
        detached_keys = [key for key in self._in_flight if predicate(key)]
        for key in detached_keys:
            self._in_flight.pop(key, None)
        logger.debug(
            "cache invalidated %s entries=%d in_flight=%d",
            description,
            len(removed_keys),
            len(detached_keys),
        )
        return len(removed_keys)


def _cache_consume_task_result(task: asyncio.Task) -> None:
    # Marks a failure as retrieved when every waiter has gone.
    if not task.cancelled():
        task.exception()


__all__ = ["CacheStats", "SingleflightCache", "Producer"]
