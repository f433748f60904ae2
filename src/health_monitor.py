"""Health Monitor - escalates sustained poll failure to administrators.

Runs on its own schedule, reads the poller's shared state, probes the
Slack connection, and sends at most one critical escalation per check.
"""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Callable

from src.core.config import Config
from src.core.formatter import SYSTEM_STATUS_TEXT, format_critical_alert
from src.core.health import HealthReport, PollState, evaluate_health
from src.shell.clock import utc_now
from src.shell.slack_client import SlackClient


logger = logging.getLogger(__name__)


class HealthMonitor:
    """Periodic watchdog over the alert poller."""

    def __init__(
        self,
        config: Config,
        state: PollState,
        slack_client: SlackClient | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.config = config
        self.state = state
        self.slack_client = slack_client or SlackClient(config.slack_bot_token)
        self.clock = clock

    def _probe_connection(self) -> bool:
        response = self.slack_client.auth_test()
        if not response.success:
            failures = self.state.record_failure()
            logger.error(
                "Slack connection test failed: %s (%d consecutive failures)",
                response.error,
                failures,
            )
        return response.success

    def _escalate(self, report: HealthReport, now: datetime) -> None:
        text = format_critical_alert(report, now)

        for admin in self.config.admin_users:
            response = self.slack_client.post_message(admin, text)
            if not response.success:
                logger.error("Failed to send critical alert to admin %s: %s", admin, response.error)

        if self.config.target_channel_id:
            response = self.slack_client.post_message(self.config.target_channel_id, SYSTEM_STATUS_TEXT)
            if not response.success:
                logger.error("Failed to post system status: %s", response.error)

    def check(self) -> HealthReport:
        """Run one health check.

        Never raises and never retries the poll.

        Returns:
            HealthReport for this tick
        """
        connection_ok = self._probe_connection()
        now = self.clock()

        report = replace(
            evaluate_health(
                self.state.snapshot(),
                now,
                self.config.poll_interval,
                self.config.max_consecutive_failures,
            ),
            connection_ok=connection_ok,
        )

        if report.healthy:
            logger.debug("Health check passed")
            return report

        logger.critical("CRITICAL: %s", "; ".join(report.reasons))
        self._escalate(report, now)
        return report
