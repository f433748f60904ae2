"""Functional Core - Pure functions with no side effects.

This module contains all business logic as pure functions:
- Alert feed decoding
- Deduplication and cache freshness rules
- Location input parsing
- Health evaluation
- Message formatting

All functions here are deterministic and have no I/O.
"""

from src.core.alert import Alert, parse_alert_feed
from src.core.cache import CacheKind, build_cache_key, is_fresh
from src.core.dedup import filter_already_processed, partition_expired
from src.core.formatter import format_alert_text, format_critical_alert
from src.core.health import evaluate_health
from src.core.location import parse_location_input, validate_coordinates

__all__ = [
    # Alert
    "Alert",
    "parse_alert_feed",
    # Cache
    "CacheKind",
    "build_cache_key",
    "is_fresh",
    # Dedup
    "filter_already_processed",
    "partition_expired",
    # Formatter
    "format_alert_text",
    "format_critical_alert",
    # Health
    "evaluate_health",
    # Location
    "parse_location_input",
    "validate_coordinates",
]
