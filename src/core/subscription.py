"""Feed subscription models - Pure data structures.

A subscription is an alert feed endpoint the poller checks on schedule.
Persistence lives in the shell (subscription_store).
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any


NWS_ZONE_FEED_URL = "https://api.weather.gov/alerts/active.atom?zone={zone}"


@dataclass(frozen=True)
class Subscription:
    """A configured alert feed.

    Attributes:
        id: Unique subscription ID
        url: Feed endpoint the poller fetches
        name: Human-readable name (e.g., "Western Bergen County, NJ")
        active: Whether the poller checks this feed
        zone: NWS zone code, if the feed is zone-based
        added_by: User ID of the admin who added it ("system" for defaults)
        added_at: When the subscription was created (ISO 8601)
        last_checked: When the feed was last fetched successfully (ISO 8601)
        last_alert_id: ID of the last alert delivered from this feed
    """
    id: str
    url: str
    name: str
    active: bool = True
    zone: str | None = None
    added_by: str = "system"
    added_at: str = ""
    last_checked: str | None = None
    last_alert_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "url": self.url,
            "name": self.name,
            "active": self.active,
            "zone": self.zone,
            "added_by": self.added_by,
            "added_at": self.added_at,
            "last_checked": self.last_checked,
            "last_alert_id": self.last_alert_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Subscription":
        return cls(
            id=data["id"],
            url=data["url"],
            name=data.get("name", data["url"]),
            active=bool(data.get("active", True)),
            zone=data.get("zone"),
            added_by=data.get("added_by", "system"),
            added_at=data.get("added_at", ""),
            last_checked=data.get("last_checked"),
            last_alert_id=data.get("last_alert_id"),
        )


@dataclass(frozen=True)
class ZoneFeed:
    """A default zone feed used to bootstrap an empty store."""
    zone: str
    name: str
    url: str = ""

    @property
    def feed_url(self) -> str:
        return self.url or NWS_ZONE_FEED_URL.format(zone=self.zone)


DEFAULT_ZONE_FEEDS = (
    ZoneFeed(zone="NJZ103", name="Western Bergen County, NJ"),
    ZoneFeed(zone="NJZ104", name="Eastern Bergen County, NJ"),
)


def zone_feed_url(zone: str) -> str:
    """Build the NWS Atom feed URL for a forecast zone."""
    return NWS_ZONE_FEED_URL.format(zone=zone.upper())


def build_default_subscriptions(
    feeds: tuple[ZoneFeed, ...] | list[ZoneFeed],
    now: datetime,
) -> list[Subscription]:
    """Create the bootstrap subscriptions.

    Pure function. IDs are derived from the zone so that bootstrapping
    twice yields the same records.
    """
    return [
        Subscription(
            id=f"feed_{feed.zone.lower()}",
            url=feed.feed_url,
            name=feed.name,
            zone=feed.zone,
            active=True,
            added_by="system",
            added_at=now.isoformat(),
        )
        for feed in feeds
    ]


def active_subscriptions(subscriptions: list[Subscription]) -> list[Subscription]:
    """Keep only subscriptions the poller should check.

    Pure function.
    """
    return [s for s in subscriptions if s.active]


def toggled(subscription: Subscription) -> Subscription:
    """Return a copy with the active flag flipped."""
    return replace(subscription, active=not subscription.active)


@dataclass
class SubscriptionUpdate:
    """Fields an admin may change on an existing subscription."""
    name: str | None = None
    url: str | None = None
    zone: str | None = None
    active: bool | None = None

    def apply(self, subscription: Subscription) -> Subscription:
        changes = {
            k: v for k, v in (
                ("name", self.name),
                ("url", self.url),
                ("zone", self.zone),
                ("active", self.active),
            )
            if v is not None
        }
        return replace(subscription, **changes)
