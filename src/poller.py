"""Alert Poller - Wires Functional Core and Imperative Shell.

This module runs one polling cycle: load subscriptions, fetch each
active feed, drop alerts already delivered, post the rest to Slack,
and record them in the ledger. The outcome of each cycle is written to
the shared PollState that the health monitor reads.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from src.core.alert import Alert
from src.core.config import Config
from src.core.dedup import filter_already_processed
from src.core.errors import PersistenceError
from src.core.formatter import format_admin_notice, format_alert_text
from src.core.health import PollState
from src.core.subscription import Subscription, active_subscriptions
from src.shell.clock import utc_now
from src.shell.feed_client import FeedClient
from src.shell.ledger import ProcessedAlertLedger
from src.shell.slack_client import SlackClient
from src.shell.subscription_store import SubscriptionStore


logger = logging.getLogger(__name__)


@dataclass
class DeliveryResult:
    """Result of posting a single alert.

    Attributes:
        alert: The alert that was posted
        subscription: The feed it came from
        success: Whether the post succeeded
        error: Error message if failed
    """
    alert: Alert
    subscription: Subscription
    success: bool
    error: str | None = None


@dataclass
class PollResult:
    """Result of a complete polling cycle.

    Attributes:
        subscriptions_checked: Active subscriptions fetched successfully
        alerts_fetched: Entries across all fetched feeds
        alerts_sent: Successful deliveries
        alerts_failed: Failed deliveries
        errors: Any errors that occurred
        skipped: True if another cycle was already running
    """
    subscriptions_checked: int = 0
    alerts_fetched: int = 0
    alerts_sent: list[DeliveryResult] = field(default_factory=list)
    alerts_failed: list[DeliveryResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    skipped: bool = False

    @property
    def success(self) -> bool:
        """Returns True if no errors occurred."""
        return len(self.errors) == 0

    @property
    def summary(self) -> str:
        """Human-readable summary of the polling result."""
        if self.skipped:
            return "Skipped: previous cycle still running"
        return (
            f"Checked {self.subscriptions_checked} feeds, "
            f"{self.alerts_fetched} alerts fetched, "
            f"{len(self.alerts_sent)} sent, "
            f"{len(self.alerts_failed)} failed, "
            f"{len(self.errors)} errors"
        )


class AlertPoller:
    """Coordinates feed polling and alert delivery.

    This class wires together:
    - Subscription store (which feeds to check)
    - Feed client (fetches and decodes feeds)
    - Ledger (deduplication state)
    - Slack client (delivery)
    """

    def __init__(
        self,
        config: Config,
        subscription_store: SubscriptionStore,
        ledger: ProcessedAlertLedger,
        feed_client: FeedClient | None = None,
        slack_client: SlackClient | None = None,
        state: PollState | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        """Initialize poller.

        Args:
            config: Application configuration
            subscription_store: Subscription persistence
            ledger: Processed-alert ledger
            feed_client: Feed client (created if not provided)
            slack_client: Slack client (created if not provided)
            state: Shared poll state (created if not provided)
            clock: Source of the current time
        """
        self.config = config
        self.subscription_store = subscription_store
        self.ledger = ledger
        self.feed_client = feed_client or FeedClient(
            timeout=config.request_timeout_seconds,
            user_agent=config.user_agent,
        )
        self.slack_client = slack_client or SlackClient(config.slack_bot_token)
        self.clock = clock
        self.state = state or PollState.starting_at(clock())
        self._running = threading.Lock()

    def _deliver(self, alert: Alert, subscription: Subscription) -> DeliveryResult:
        """Post one alert to the target channel."""
        response = self.slack_client.post_message(
            self.config.target_channel_id,
            format_alert_text(alert, subscription),
        )
        return DeliveryResult(
            alert=alert,
            subscription=subscription,
            success=response.success,
            error=response.error,
        )

    def _notify_admins(self, alert: Alert, subscription: Subscription) -> None:
        """Send each admin a direct notice for a Severe/Extreme alert."""
        text = format_admin_notice(alert, subscription)
        for admin in self.config.admin_users:
            response = self.slack_client.post_message(admin, text)
            if not response.success:
                logger.warning("Failed to notify admin %s: %s", admin, response.error)

    def _check_subscription(
        self,
        subscription: Subscription,
        processed_ids: set[str],
        result: PollResult,
    ) -> None:
        """Fetch one feed and deliver its new alerts.

        processed_ids is updated in place so a later feed in the same
        cycle does not re-deliver an alert posted from this one.
        """
        alerts = self.feed_client.fetch_and_parse_feed(subscription.url)
        result.alerts_fetched += len(alerts)

        new_alerts = filter_already_processed(alerts, processed_ids)
        logger.info(
            "%s: %d new alerts (of %d total)",
            subscription.name,
            len(new_alerts),
            len(alerts),
        )

        last_delivered = None
        for alert in new_alerts:
            delivery = self._deliver(alert, subscription)

            if not delivery.success:
                logger.error(
                    "Failed to send alert %s from %s: %s",
                    alert.id,
                    subscription.name,
                    delivery.error,
                )
                result.alerts_failed.append(delivery)
                result.errors.append(f"Delivery failed for {alert.id}: {delivery.error}")
                continue

            self.ledger.mark_processed(alert.id)
            processed_ids.add(alert.id)
            result.alerts_sent.append(delivery)
            last_delivered = alert.id
            logger.info("Sent alert %s (%s) from %s", alert.id, alert.event, subscription.name)

            if alert.is_severe:
                self._notify_admins(alert, subscription)

        self.subscription_store.record_check(subscription, last_delivered)
        result.subscriptions_checked += 1

    def _run_cycle(self) -> PollResult:
        result = PollResult()

        try:
            subscriptions = active_subscriptions(self.subscription_store.list_subscriptions())
            processed_ids = self.ledger.processed_ids()
        except PersistenceError as e:
            error_msg = f"Failed to load polling state: {e}"
            logger.error(error_msg)
            result.errors.append(error_msg)
            return result
        except Exception as e:
            error_msg = f"Unexpected error loading polling state: {e}"
            logger.exception(error_msg)
            result.errors.append(error_msg)
            return result

        logger.info("Checking %d active subscriptions", len(subscriptions))

        for subscription in subscriptions:
            try:
                self._check_subscription(subscription, processed_ids, result)
            except Exception as e:
                error_msg = f"Error checking feed {subscription.name}: {e}"
                logger.error(error_msg)
                result.errors.append(error_msg)

        return result

    def process(self) -> PollResult:
        """Run a complete polling cycle.

        Never raises. A cycle with any error counts as one failure in
        the poll state; a clean cycle resets the failure count.

        Returns:
            PollResult with details of what happened
        """
        if not self._running.acquire(blocking=False):
            logger.warning("Previous poll cycle still running, skipping")
            return PollResult(skipped=True)

        try:
            result = self._run_cycle()
        finally:
            self._running.release()

        if result.success:
            self.state.record_success(self.clock())
        else:
            failures = self.state.record_failure()
            logger.warning("Poll cycle failed (%d consecutive failures)", failures)

        logger.info("Poll cycle complete: %s", result.summary)
        return result
