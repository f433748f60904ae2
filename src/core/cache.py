"""Forecast cache keys and freshness rules - Pure functions.

The in-memory map and durable write-through live in the shell
(forecast_cache). This module decides what a key looks like and when
an entry may still be served.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any


class CacheKind(str, Enum):
    """Category of forecast query. Each kind has its own TTL."""
    FORECAST = "forecast"
    HOURLY = "hourly"
    CURRENT = "current"
    ALERTS = "alerts"


CACHE_TTLS: dict[CacheKind, timedelta] = {
    CacheKind.FORECAST: timedelta(minutes=30),
    CacheKind.HOURLY: timedelta(minutes=30),
    CacheKind.CURRENT: timedelta(minutes=10),
    CacheKind.ALERTS: timedelta(minutes=5),
}

# Coordinates are rounded so that float noise doesn't split entries
COORDINATE_PRECISION = 4


@dataclass(frozen=True)
class CacheEntry:
    """A cached weather payload.

    Attributes:
        kind: Query kind the payload answers
        data: JSON-serializable payload from the weather client
        timestamp: When the payload was captured (UTC)
    """
    kind: CacheKind
    data: dict[str, Any]
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind.value,
            "data": self.data,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        timestamp = datetime.fromisoformat(data["timestamp"])
        if timestamp.tzinfo is None:
            timestamp = timestamp.replace(tzinfo=timezone.utc)
        return cls(kind=CacheKind(data["kind"]), data=data["data"], timestamp=timestamp)


def build_cache_key(
    kind: CacheKind,
    latitude: float,
    longitude: float,
    hours: int | None = None,
) -> str:
    """Build the composite cache key for a query.

    Pure function. Hourly queries include the hour count, so 12-hour
    and 24-hour requests for the same point are cached separately.

    Args:
        kind: Query kind
        latitude: Resolved latitude
        longitude: Resolved longitude
        hours: Requested hour count (hourly only)

    Returns:
        Key such as "current_41.0600_-74.1400"
    """
    key = (
        f"{kind.value}_{latitude:.{COORDINATE_PRECISION}f}"
        f"_{longitude:.{COORDINATE_PRECISION}f}"
    )
    if kind is CacheKind.HOURLY and hours is not None:
        key = f"{key}_{hours}"
    return key


def get_ttl(kind: CacheKind) -> timedelta:
    """Time-to-live for a kind."""
    return CACHE_TTLS[kind]


def is_fresh(entry: CacheEntry, now: datetime) -> bool:
    """Check whether an entry may still be served.

    Pure function. An entry whose age has reached its TTL is stale.
    """
    return now - entry.timestamp < get_ttl(entry.kind)


def count_fresh(entries: list[CacheEntry], now: datetime) -> tuple[int, int]:
    """Count (fresh, stale) entries.

    Pure function.
    """
    fresh = sum(1 for e in entries if is_fresh(e, now))
    return fresh, len(entries) - fresh
