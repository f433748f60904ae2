"""Subscription Store - Imperative Shell.

This module persists feed subscriptions. On first use the store seeds
the collection with the configured default zone feeds and records that
it did, so removing every subscription later leaves the list empty.
"""

import logging
import secrets
import string
from dataclasses import replace
from datetime import datetime
from typing import Callable

from src.core.subscription import (
    DEFAULT_ZONE_FEEDS,
    Subscription,
    SubscriptionUpdate,
    ZoneFeed,
    build_default_subscriptions,
    toggled,
)
from src.shell.clock import utc_now
from src.shell.store import METADATA, SUBSCRIPTIONS, KeyValueStore


logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
SEEDED_MARKER = "subscriptions_seeded"


def generate_subscription_id(now: datetime) -> str:
    """Build an ID like 'feed_1718049600000_k3j9x0q2a'."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"feed_{int(now.timestamp() * 1000)}_{suffix}"


class SubscriptionStore:
    """CRUD for feed subscriptions on top of a key-value store."""

    def __init__(
        self,
        store: KeyValueStore,
        default_feeds: list[ZoneFeed] | tuple[ZoneFeed, ...] = DEFAULT_ZONE_FEEDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize subscription store.

        Args:
            store: Backing key-value store
            default_feeds: Feeds written on first use
            clock: Source of the current time
        """
        self.store = store
        self.default_feeds = default_feeds
        self.clock = clock

    def _save(self, subscription: Subscription) -> Subscription:
        self.store.put(SUBSCRIPTIONS, subscription.id, subscription.to_dict())
        return subscription

    def _is_seeded(self) -> bool:
        return self.store.get(METADATA, SEEDED_MARKER) is not None

    def _mark_seeded(self) -> None:
        self.store.put(METADATA, SEEDED_MARKER, {"seeded_at": self.clock().isoformat()})

    def _bootstrap(self) -> list[Subscription]:
        defaults = build_default_subscriptions(self.default_feeds, self.clock())
        logger.info("First run, bootstrapping %d default feeds", len(defaults))
        for subscription in defaults:
            self._save(subscription)
        self._mark_seeded()
        return defaults

    def list_subscriptions(self) -> list[Subscription]:
        """Return every subscription, active or paused, ordered by added_at.

        This method performs database I/O.

        Raises:
            PersistenceError: If the store cannot be read
        """
        subscriptions = []
        for key, value in self.store.scan(SUBSCRIPTIONS):
            try:
                subscriptions.append(Subscription.from_dict(value))
            except (KeyError, TypeError):
                logger.warning("Skipping malformed subscription %s", key)

        if not subscriptions and not self._is_seeded():
            subscriptions = self._bootstrap()

        return sorted(subscriptions, key=lambda s: (s.added_at, s.id))

    def get(self, subscription_id: str) -> Subscription | None:
        value = self.store.get(SUBSCRIPTIONS, subscription_id)
        return Subscription.from_dict(value) if value else None

    def add(
        self,
        url: str,
        name: str,
        added_by: str,
        zone: str | None = None,
        active: bool = True,
    ) -> Subscription:
        """Create a new subscription.

        Args:
            url: Feed URL
            name: Display name
            added_by: User ID of the admin adding it
            zone: NWS zone code, if any
            active: Initial state

        Returns:
            The stored subscription
        """
        now = self.clock()
        subscription = Subscription(
            id=generate_subscription_id(now),
            url=url,
            name=name,
            zone=zone,
            active=active,
            added_by=added_by,
            added_at=now.isoformat(),
        )
        logger.info("Adding subscription %s (%s) by %s", subscription.id, url, added_by)
        if not self._is_seeded():
            self._mark_seeded()
        return self._save(subscription)

    def remove(self, subscription_id: str) -> bool:
        """Delete a subscription. Returns False if it didn't exist."""
        if self.get(subscription_id) is None:
            return False
        self.store.delete(SUBSCRIPTIONS, subscription_id)
        logger.info("Removed subscription %s", subscription_id)
        return True

    def toggle(self, subscription_id: str) -> Subscription | None:
        """Flip the active flag. Returns None if the subscription is unknown."""
        subscription = self.get(subscription_id)
        if subscription is None:
            return None
        updated = toggled(subscription)
        logger.info(
            "Subscription %s is now %s",
            subscription_id,
            "active" if updated.active else "paused",
        )
        return self._save(updated)

    def update(self, subscription_id: str, changes: SubscriptionUpdate) -> Subscription | None:
        subscription = self.get(subscription_id)
        if subscription is None:
            return None
        return self._save(changes.apply(subscription))

    def record_check(
        self,
        subscription: Subscription,
        last_alert_id: str | None = None,
    ) -> Subscription:
        """Stamp last_checked (and last_alert_id when an alert was delivered)."""
        updated = replace(
            subscription,
            last_checked=self.clock().isoformat(),
            last_alert_id=last_alert_id or subscription.last_alert_id,
        )
        return self._save(updated)
