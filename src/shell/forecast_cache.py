"""Forecast Cache - Imperative Shell.

In-memory map of weather payloads keyed by query, with durable
write-through to the key-value store so the cache survives restarts.
Durable writes run on a single background worker; a failed write is
logged and never reaches the caller.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Any, Callable

from src.core.cache import CacheEntry, CacheKind, build_cache_key, count_fresh, is_fresh
from src.core.errors import PersistenceError
from src.shell.clock import utc_now
from src.shell.store import FORECAST_CACHE, KeyValueStore


logger = logging.getLogger(__name__)


def _log_write_failure(future: Future) -> None:
    error = future.exception()
    if error is not None:
        logger.warning("Failed to persist forecast cache entry: %s", error)


class ForecastCache:
    """TTL cache for weather payloads."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize the cache and load persisted entries.

        Args:
            store: Backing key-value store
            clock: Source of the current time
        """
        self.store = store
        self.clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="forecast-cache")
        self._pending: list[Future] = []
        self._load()

    def _load(self) -> None:
        now = self.clock()
        try:
            items = list(self.store.scan(FORECAST_CACHE))
        except PersistenceError as e:
            logger.warning("Could not load forecast cache, starting empty: %s", e)
            return

        loaded = 0
        for key, value in items:
            try:
                entry = CacheEntry.from_dict(value)
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed cache entry %s", key)
                continue
            if is_fresh(entry, now):
                self._entries[key] = entry
                loaded += 1

        logger.info("Loaded %d cached forecast entries (%d discarded)", loaded, len(items) - loaded)

    def _submit(self, fn: Callable[..., None], *args: Any) -> None:
        future = self._executor.submit(fn, *args)
        future.add_done_callback(_log_write_failure)
        with self._lock:
            self._pending = [f for f in self._pending if not f.done()]
            self._pending.append(future)

    def get(
        self,
        kind: CacheKind,
        latitude: float,
        longitude: float,
        hours: int | None = None,
    ) -> dict[str, Any] | None:
        """Return a cached payload, or None if missing or stale."""
        key = build_cache_key(kind, latitude, longitude, hours)
        with self._lock:
            entry = self._entries.get(key)

        if entry is None:
            return None

        if not is_fresh(entry, self.clock()):
            logger.debug("Cache entry %s is stale", key)
            return None

        logger.debug("Cache hit for %s", key)
        return entry.data

    def put(
        self,
        kind: CacheKind,
        latitude: float,
        longitude: float,
        data: dict[str, Any],
        hours: int | None = None,
    ) -> None:
        """Store a payload. The durable write happens in the background."""
        key = build_cache_key(kind, latitude, longitude, hours)
        entry = CacheEntry(kind=kind, data=data, timestamp=self.clock())
        with self._lock:
            self._entries[key] = entry
        self._submit(self.store.put, FORECAST_CACHE, key, entry.to_dict())

    def clean(self) -> int:
        """Drop expired entries from memory and the store.

        Returns:
            Number of entries removed
        """
        now = self.clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if not is_fresh(entry, now)]
            for key in expired:
                del self._entries[key]

        if expired:
            self._submit(self.store.delete_many, FORECAST_CACHE, expired)
            logger.info("Cleaned %d expired cache entries", len(expired))
        return len(expired)

    def stats(self) -> dict[str, int]:
        """Counts of valid, expired, and total entries."""
        with self._lock:
            entries = list(self._entries.values())
        valid, expired = count_fresh(entries, self.clock())
        return {"valid": valid, "expired": expired, "total": len(entries)}

    def flush(self) -> None:
        """Block until every queued durable write has finished."""
        with self._lock:
            pending = list(self._pending)
        for future in pending:
            try:
                future.result()
            except PersistenceError:
                pass  # already logged by the done-callback

    def close(self) -> None:
        self._executor.shutdown(wait=True)
