"""Deduplication logic - Pure functions.

This module handles logic for determining which alerts have already
been delivered. All functions are pure with no side effects.

Note: The actual persistence of processed records is handled by the
imperative shell (ProcessedAlertLedger). This module only contains the
pure logic.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from src.core.alert import Alert


# Processed records older than this are pruned on read
DEFAULT_RETENTION = timedelta(days=7)


@dataclass(frozen=True)
class ProcessedAlertRecord:
    """A delivered alert ID and when it was delivered.

    Attributes:
        alert_id: Feed-assigned alert ID
        processed_at: Delivery timestamp (UTC)
    """
    alert_id: str
    processed_at: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "alert_id": self.alert_id,
            "processed_at": self.processed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProcessedAlertRecord":
        processed_at = datetime.fromisoformat(data["processed_at"])
        if processed_at.tzinfo is None:
            processed_at = processed_at.replace(tzinfo=timezone.utc)
        return cls(alert_id=data["alert_id"], processed_at=processed_at)


def is_expired(
    record: ProcessedAlertRecord,
    now: datetime,
    retention: timedelta = DEFAULT_RETENTION,
) -> bool:
    """Check whether a record has outlived the retention window.

    Pure function. Age is the only criterion; an alert whose validity
    window is still open is pruned all the same.
    """
    return now - record.processed_at > retention


def partition_expired(
    records: list[ProcessedAlertRecord],
    now: datetime,
    retention: timedelta = DEFAULT_RETENTION,
) -> tuple[list[ProcessedAlertRecord], list[ProcessedAlertRecord]]:
    """Split records into (kept, expired).

    Pure function.

    Args:
        records: Records loaded from storage
        now: Current time
        retention: How long a record is kept

    Returns:
        Tuple of (records to keep, records to prune)
    """
    kept = []
    expired = []
    for record in records:
        if is_expired(record, now, retention):
            expired.append(record)
        else:
            kept.append(record)
    return kept, expired


def filter_already_processed(
    alerts: list[Alert],
    processed_ids: set[str],
) -> list[Alert]:
    """Filter out alerts that have already been delivered.

    Pure function. Feed order is preserved, and an ID repeated within
    the list is only kept the first time.

    Args:
        alerts: Alerts from one feed fetch
        processed_ids: IDs already delivered

    Returns:
        Alerts that haven't been delivered yet
    """
    seen = set(processed_ids)
    result = []
    for alert in alerts:
        if alert.id in seen:
            continue
        seen.add(alert.id)
        result.append(alert)
    return result
