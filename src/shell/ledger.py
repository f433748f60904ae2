"""Processed-Alert Ledger - Imperative Shell.

This module persists the IDs of alerts already delivered so that a
re-published feed entry is not posted twice. Records expire by age:
every read drops records older than the retention window and deletes
them from the store before returning.

Expiry logic is in the core module (dedup); all I/O is here.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable

from src.core.dedup import DEFAULT_RETENTION, ProcessedAlertRecord, partition_expired
from src.shell.clock import utc_now
from src.shell.store import PROCESSED_ALERTS, KeyValueStore


logger = logging.getLogger(__name__)


class ProcessedAlertLedger:
    """Durable set of delivered alert IDs with age-based expiry."""

    def __init__(
        self,
        store: KeyValueStore,
        retention: timedelta = DEFAULT_RETENTION,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize ledger.

        Args:
            store: Backing key-value store
            retention: How long a delivered ID is remembered
            clock: Source of the current time
        """
        self.store = store
        self.retention = retention
        self.clock = clock

    def _load_records(self) -> list[ProcessedAlertRecord]:
        records = []
        for key, value in self.store.scan(PROCESSED_ALERTS):
            try:
                records.append(ProcessedAlertRecord.from_dict(value))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed processed-alert record %s", key)
        return records

    def load(self) -> list[ProcessedAlertRecord]:
        """Load unexpired records, pruning expired ones from the store.

        This method performs database I/O.

        Returns:
            Records younger than the retention window

        Raises:
            PersistenceError: If the store cannot be read or pruned
        """
        records = self._load_records()
        kept, expired = partition_expired(records, self.clock(), self.retention)

        if expired:
            logger.info("Pruning %d expired processed-alert records", len(expired))
            self.store.delete_many(PROCESSED_ALERTS, [r.alert_id for r in expired])

        return kept

    def processed_ids(self) -> set[str]:
        """Snapshot of delivered alert IDs (prunes as a side effect)."""
        ids = {r.alert_id for r in self.load()}
        logger.info("Loaded %d processed alert IDs", len(ids))
        return ids

    def has_processed(self, alert_id: str) -> bool:
        return alert_id in self.processed_ids()

    def mark_processed(self, alert_id: str) -> ProcessedAlertRecord:
        """Record an alert as delivered.

        This method performs database I/O.

        Raises:
            PersistenceError: If the write fails
        """
        record = ProcessedAlertRecord(alert_id=alert_id, processed_at=self.clock())
        self.store.put(PROCESSED_ALERTS, alert_id, record.to_dict())
        logger.debug("Marked alert %s as processed", alert_id)
        return record

