"""Message formatting - Pure functions.

This module produces the plain-text bodies the poller and health
monitor send to Slack. All functions are pure with no side effects.
"""

from datetime import datetime
from typing import Any

from src.core.alert import Alert
from src.core.health import HealthReport
from src.core.subscription import Subscription


SYSTEM_STATUS_TEXT = (
    "🚨 *SYSTEM ALERT*: Weather monitoring system requires attention. "
    "Admins have been notified."
)


def get_urgency_emoji(urgency: str | None) -> str:
    """Get an emoji representing alert urgency.

    Pure function.
    """
    return {
        "immediate": "🚨",
        "expected": "⚠️",
        "future": "📢",
        "past": "📋",
    }.get((urgency or "").lower(), "ℹ️")


def format_alert_text(alert: Alert, subscription: Subscription) -> str:
    """Format an alert as the message text posted to the channel.

    Pure function.

    Args:
        alert: Alert to announce
        subscription: Feed the alert came from

    Returns:
        Message text (Slack mrkdwn)
    """
    headline = alert.event or alert.title or "Weather Alert"
    lines = [f"{get_urgency_emoji(alert.urgency)} *{headline}* for {subscription.name}"]

    if alert.area_desc:
        lines.append(f"Area: {alert.area_desc}")

    details = [
        f"{label}: {value}"
        for label, value in (
            ("Severity", alert.severity),
            ("Urgency", alert.urgency),
            ("Certainty", alert.certainty),
        )
        if value
    ]
    if details:
        lines.append(" | ".join(details))

    if alert.expires:
        lines.append(f"Expires: {alert.expires}")

    if alert.summary:
        lines.append(alert.summary)

    if alert.link:
        lines.append(f"<{alert.link}|View on weather.gov>")

    return "\n".join(lines)


def format_admin_notice(alert: Alert, subscription: Subscription) -> str:
    """Direct-message text sent to admins for Severe/Extreme alerts.

    Pure function.
    """
    return (
        f"🚨 *CRITICAL WEATHER ALERT* 🚨\n\n"
        f"{alert.event or alert.title} for {subscription.name}\n"
        f"Severity: {alert.severity}\n\n"
        f"Check the alerts channel for details."
    )


def format_critical_alert(report: HealthReport, now: datetime) -> str:
    """Direct-message text sent to admins on a critical escalation.

    Pure function.
    """
    reason = "; ".join(report.reasons)
    return (
        f"🚨 *WEATHER ALERTS SYSTEM FAILURE* 🚨\n\n"
        f"Reason: {reason}\n"
        f"Consecutive failures: {report.consecutive_failures}\n"
        f"Last success: {int(report.seconds_since_success)}s ago\n"
        f"Uptime: {report.uptime_minutes} minutes\n"
        f"Time: {now.strftime('%Y-%m-%d %H:%M:%S %Z')}\n\n"
        f"*IMMEDIATE ACTION REQUIRED*"
    )


def get_temperature_trend(periods: list[dict[str, Any]]) -> str | None:
    """Describe how temperature moves between the first two periods.

    Pure function. Returns "rising", "falling", "steady", or None when
    there are fewer than two periods.
    """
    if len(periods) < 2:
        return None

    current = periods[0].get("temperature")
    following = periods[1].get("temperature")
    if current is None or following is None:
        return None

    if following > current + 5:
        return "rising"
    if following < current - 5:
        return "falling"
    return "steady"
