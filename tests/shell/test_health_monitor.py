"""Tests for the HealthMonitor."""

from datetime import datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from src.core.config import Config
from src.core.formatter import SYSTEM_STATUS_TEXT
from src.core.health import REASON_CONSECUTIVE_FAILURES, REASON_STALE, PollState
from src.health_monitor import HealthMonitor
from src.shell.slack_client import SlackResponse


START = datetime(2024, 6, 10, 12, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self):
        self.now = START

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return Config(
        slack_bot_token="xoxb-test",
        target_channel_id="C123",
        admin_users=["UADMIN1", "UADMIN2"],
        polling_interval_minutes=5,
        max_consecutive_failures=3,
    )


@pytest.fixture
def state():
    return PollState.starting_at(START)


@pytest.fixture
def slack():
    client = Mock()
    client.auth_test.return_value = SlackResponse(success=True, status_code=200)
    client.post_message.return_value = SlackResponse(success=True, status_code=200)
    return client


@pytest.fixture
def monitor(config, state, slack, clock):
    return HealthMonitor(config, state, slack_client=slack, clock=clock)


class TestHealthMonitor:
    """Tests for HealthMonitor.check()."""

    def test_healthy_sends_nothing(self, monitor, slack, clock):
        clock.now = START + timedelta(minutes=3)

        report = monitor.check()

        assert report.healthy
        assert report.connection_ok is True
        slack.post_message.assert_not_called()

    def test_escalates_at_failure_threshold(self, monitor, state, slack):
        for _ in range(3):
            state.record_failure()

        report = monitor.check()

        assert report.reasons == (REASON_CONSECUTIVE_FAILURES,)
        recipients = [c.args[0] for c in slack.post_message.call_args_list]
        assert recipients == ["UADMIN1", "UADMIN2", "C123"]
        assert "WEATHER ALERTS SYSTEM FAILURE" in slack.post_message.call_args_list[0].args[1]
        assert slack.post_message.call_args_list[2].args[1] == SYSTEM_STATUS_TEXT

    def test_one_escalation_per_tick_with_both_reasons(self, monitor, state, slack, clock):
        """Both triggers firing still produce a single escalation."""
        for _ in range(3):
            state.record_failure()
        clock.now = START + timedelta(minutes=11)

        report = monitor.check()

        assert report.reasons == (REASON_CONSECUTIVE_FAILURES, REASON_STALE)
        assert slack.post_message.call_count == 3
        text = slack.post_message.call_args_list[0].args[1]
        assert REASON_CONSECUTIVE_FAILURES in text
        assert REASON_STALE in text

    def test_escalates_each_tick_while_unhealthy(self, monitor, state, slack):
        for _ in range(3):
            state.record_failure()

        monitor.check()
        monitor.check()

        assert slack.post_message.call_count == 6

    def test_escalates_when_stale(self, monitor, slack, clock):
        clock.now = START + timedelta(minutes=10, seconds=1)

        report = monitor.check()

        assert report.reasons == (REASON_STALE,)
        assert slack.post_message.call_count == 3

    def test_failed_probe_counts_as_failure(self, monitor, state, slack):
        slack.auth_test.return_value = SlackResponse(success=False, status_code=200, error="invalid_auth")

        report = monitor.check()

        assert report.connection_ok is False
        assert state.snapshot().consecutive_failures == 1
        assert report.healthy

    def test_probe_failure_can_reach_threshold(self, monitor, state, slack):
        state.record_failure()
        state.record_failure()
        slack.auth_test.return_value = SlackResponse(success=False, status_code=0, error="Request timed out")

        report = monitor.check()

        assert report.reasons == (REASON_CONSECUTIVE_FAILURES,)
        assert report.consecutive_failures == 3

    def test_never_retries_poll(self, monitor, state):
        for _ in range(5):
            state.record_failure()

        monitor.check()

        assert state.snapshot().consecutive_failures == 5

    def test_escalation_delivery_failure_does_not_raise(self, monitor, state, slack):
        for _ in range(3):
            state.record_failure()
        slack.post_message.return_value = SlackResponse(success=False, status_code=0, error="down")

        report = monitor.check()

        assert not report.healthy

    def test_no_channel_configured(self, config, state, slack, clock):
        config.target_channel_id = ""
        monitor = HealthMonitor(config, state, slack_client=slack, clock=clock)
        for _ in range(3):
            state.record_failure()

        monitor.check()

        assert [c.args[0] for c in slack.post_message.call_args_list] == ["UADMIN1", "UADMIN2"]
