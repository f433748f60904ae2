"""Configuration models - Pure data structures.

These are domain models for configuration. The actual loading
(I/O) is handled by the shell layer.
"""

from dataclasses import dataclass, field
from datetime import timedelta

from src.core.subscription import DEFAULT_ZONE_FEEDS, ZoneFeed


STORAGE_BACKENDS = ("file", "firestore", "memory")

DEFAULT_USER_AGENT = "NWS-Weather-Alerts-Slack/1.0"


@dataclass
class Config:
    """Application configuration.

    This is a pure data structure - no I/O or side effects.

    Attributes:
        slack_bot_token: Bot token for the Slack Web API
        target_channel_id: Channel that receives alerts and status messages
        admin_users: Slack user IDs allowed to manage subscriptions
        polling_interval_minutes: How often to check the feeds
        health_check_interval_seconds: How often the health monitor runs
        max_consecutive_failures: Failures before a critical escalation
        processed_alert_retention_days: How long delivered IDs are remembered
        default_feeds: Zone feeds used to bootstrap an empty store
        storage_backend: "file", "firestore", or "memory"
        data_dir: Directory for the file backend
        firestore_database: Firestore database name (None for default)
        firestore_collection_prefix: Prefix for Firestore collection names
        user_agent: User-Agent sent to NWS and Nominatim
        request_timeout_seconds: Timeout for upstream HTTP requests
    """
    slack_bot_token: str = ""
    target_channel_id: str = ""
    admin_users: list[str] = field(default_factory=list)
    polling_interval_minutes: int = 5
    health_check_interval_seconds: int = 30
    max_consecutive_failures: int = 3
    processed_alert_retention_days: int = 7
    default_feeds: list[ZoneFeed] = field(default_factory=lambda: list(DEFAULT_ZONE_FEEDS))
    storage_backend: str = "file"
    data_dir: str = "data"
    firestore_database: str | None = None
    firestore_collection_prefix: str = "weather_alerts"
    user_agent: str = DEFAULT_USER_AGENT
    request_timeout_seconds: int = 30

    @property
    def poll_interval(self) -> timedelta:
        return timedelta(minutes=self.polling_interval_minutes)

    @property
    def retention(self) -> timedelta:
        return timedelta(days=self.processed_alert_retention_days)


def is_admin(user_id: str, config: Config) -> bool:
    """Check a user against the static admin allow-list."""
    return bool(user_id) and user_id in config.admin_users


@dataclass
class ValidationError:
    """A configuration validation error.

    Attributes:
        field: The field that has an error
        message: Human-readable error description
        severity: 'error' or 'warning'
    """
    field: str
    message: str
    severity: str = "error"


@dataclass
class ValidationResult:
    """Result of validating configuration.

    Attributes:
        valid: True if no errors (warnings are OK)
        errors: List of validation errors/warnings
    """
    valid: bool
    errors: list[ValidationError] = field(default_factory=list)

    @property
    def warnings(self) -> list[ValidationError]:
        """Get only warnings."""
        return [e for e in self.errors if e.severity == "warning"]

    @property
    def critical_errors(self) -> list[ValidationError]:
        """Get only critical errors."""
        return [e for e in self.errors if e.severity == "error"]


def _is_unresolved(value: str) -> bool:
    return not value or value.startswith("${")


def validate_config(config: Config) -> ValidationResult:
    """Validate configuration for errors and warnings.

    Pure function.

    Args:
        config: Configuration to validate

    Returns:
        ValidationResult with any errors/warnings found
    """
    errors: list[ValidationError] = []

    if config.polling_interval_minutes <= 0:
        errors.append(ValidationError(
            field="polling_interval_minutes",
            message=f"Polling interval must be positive, got {config.polling_interval_minutes}",
        ))

    if config.health_check_interval_seconds <= 0:
        errors.append(ValidationError(
            field="health_check_interval_seconds",
            message=f"Health check interval must be positive, got {config.health_check_interval_seconds}",
        ))

    if config.max_consecutive_failures < 1:
        errors.append(ValidationError(
            field="max_consecutive_failures",
            message=f"Failure threshold must be at least 1, got {config.max_consecutive_failures}",
        ))

    if config.processed_alert_retention_days < 1:
        errors.append(ValidationError(
            field="processed_alert_retention_days",
            message=f"Retention must be at least 1 day, got {config.processed_alert_retention_days}",
        ))

    if config.storage_backend not in STORAGE_BACKENDS:
        errors.append(ValidationError(
            field="storage_backend",
            message=(
                f"Unknown storage backend '{config.storage_backend}', "
                f"expected one of {', '.join(STORAGE_BACKENDS)}"
            ),
        ))

    if _is_unresolved(config.slack_bot_token):
        errors.append(ValidationError(
            field="slack_bot_token",
            message="Slack bot token not resolved (missing or still a placeholder)",
            severity="warning",
        ))

    if not config.target_channel_id:
        errors.append(ValidationError(
            field="target_channel_id",
            message="No target channel configured",
            severity="warning",
        ))

    if not config.admin_users:
        errors.append(ValidationError(
            field="admin_users",
            message="No admin users configured; escalations will only reach the channel",
            severity="warning",
        ))

    has_critical = any(e.severity == "error" for e in errors)

    return ValidationResult(
        valid=not has_critical,
        errors=errors,
    )
