"""Configuration Loader - Imperative Shell.

This module handles loading configuration from YAML files and
environment variables. All I/O is contained here.

The Config model is defined in src/core/config.py.
"""

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from src.core.config import Config
from src.core.subscription import DEFAULT_ZONE_FEEDS, ZoneFeed
from src.shell.secret_manager_client import SecretManagerClient, SecretManagerConfig


logger = logging.getLogger(__name__)


def _get_secret_manager_client() -> Optional[SecretManagerClient]:
    """Create a Secret Manager client for the current project.

    Returns None if GCP_PROJECT is not set (e.g., local development).
    """
    project_id = os.environ.get("GCP_PROJECT") or os.environ.get("GOOGLE_CLOUD_PROJECT")
    if project_id:
        return SecretManagerClient(SecretManagerConfig(project_id=project_id))
    return None


def _resolve_value(value: Any, secret_client: Optional[SecretManagerClient] = None) -> Any:
    """Resolve a value that may contain secret or env var placeholders.

    Args:
        value: Value to resolve (may contain ${...} placeholders)
        secret_client: Client for resolving secrets

    Returns:
        Resolved value
    """
    if not isinstance(value, str):
        return value

    if secret_client:
        return secret_client.resolve(value)

    # No secret client - only handle env vars
    if value.startswith("${") and value.endswith("}"):
        placeholder = value[2:-1]
        if not placeholder.startswith("secret:"):
            env_value = os.environ.get(placeholder)
            if env_value:
                return env_value
            logger.warning("Environment variable %s not set", placeholder)

    return value


def _parse_feed(data: dict[str, Any]) -> ZoneFeed:
    """Parse a default feed entry from config data."""
    return ZoneFeed(
        zone=data["zone"],
        name=data.get("name", data["zone"]),
        url=data.get("url", ""),
    )


def _parse_admin_users(value: Any) -> list[str]:
    if isinstance(value, str):
        return [u.strip() for u in value.split(",") if u.strip()]
    return [str(u).strip() for u in value or [] if str(u).strip()]


def load_config_from_dict(data: dict[str, Any]) -> Config:
    """Load configuration from a dictionary.

    This is a pure-ish function (only placeholder expansion has side effects).

    Args:
        data: Configuration dictionary

    Returns:
        Parsed Config object
    """
    secret_client = _get_secret_manager_client()
    defaults = Config()

    feeds = defaults.default_feeds
    if "default_feeds" in data:
        feeds = [_parse_feed(f) for f in data["default_feeds"] or []]

    slack = data.get("slack") or {}
    storage = data.get("storage") or {}

    return Config(
        slack_bot_token=_resolve_value(slack.get("bot_token", ""), secret_client),
        target_channel_id=_resolve_value(slack.get("target_channel_id", ""), secret_client),
        admin_users=_parse_admin_users(data.get("admin_users")),
        polling_interval_minutes=int(data.get("polling_interval_minutes", defaults.polling_interval_minutes)),
        health_check_interval_seconds=int(
            data.get("health_check_interval_seconds", defaults.health_check_interval_seconds)
        ),
        max_consecutive_failures=int(data.get("max_consecutive_failures", defaults.max_consecutive_failures)),
        processed_alert_retention_days=int(
            data.get("processed_alert_retention_days", defaults.processed_alert_retention_days)
        ),
        default_feeds=feeds,
        storage_backend=storage.get("backend", defaults.storage_backend),
        data_dir=storage.get("data_dir", defaults.data_dir),
        firestore_database=storage.get("firestore_database"),
        firestore_collection_prefix=storage.get(
            "firestore_collection_prefix", defaults.firestore_collection_prefix
        ),
        user_agent=data.get("user_agent", defaults.user_agent),
        request_timeout_seconds=int(data.get("request_timeout_seconds", defaults.request_timeout_seconds)),
    )


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a YAML file.

    This method performs file I/O.

    Args:
        config_path: Path to YAML config file.
                    If None, uses CONFIG_PATH env var or default.

    Returns:
        Parsed Config object

    Raises:
        yaml.YAMLError: If config file is invalid YAML
    """
    if config_path is None:
        config_path = os.environ.get("CONFIG_PATH", "config/config.yaml")

    path = Path(config_path)

    logger.info("Loading configuration from %s", path)

    if not path.exists():
        logger.warning("Config file not found: %s, using environment", path)
        return load_config_from_env()

    with open(path, "r") as f:
        data = yaml.safe_load(f)

    if data is None:
        logger.warning("Config file is empty, using environment")
        return load_config_from_env()

    config = load_config_from_dict(data)

    logger.info(
        "Loaded config: %d default feeds, %d admins, %s storage",
        len(config.default_feeds),
        len(config.admin_users),
        config.storage_backend,
    )

    return config


def load_config_from_env() -> Config:
    """Load configuration from environment variables.

    Environment variables:
        SLACK_BOT_TOKEN: Bot token (or SLACK_BOT_TOKEN_SECRET for Secret Manager)
        TARGET_CHANNEL_ID: Channel for alerts and status messages
        ADMIN_USERS: Comma-separated Slack user IDs
        POLLING_INTERVAL_MINUTES: Feed poll interval
        HEALTH_CHECK_INTERVAL_SECONDS: Health monitor interval
        MAX_CONSECUTIVE_FAILURES: Failures before escalation
        STORAGE_BACKEND: file, firestore, or memory
        DATA_DIR: Directory for the file backend
        FIRESTORE_DATABASE: Firestore database name
        FIRESTORE_COLLECTION_PREFIX: Prefix for Firestore collections
        NWS_USER_AGENT: User-Agent for NWS and Nominatim requests

    Returns:
        Config object from environment
    """
    defaults = Config()
    env = os.environ

    token = env.get("SLACK_BOT_TOKEN", "")
    secret_name = env.get("SLACK_BOT_TOKEN_SECRET")
    if not token and secret_name:
        secret_client = _get_secret_manager_client()
        if secret_client:
            token = secret_client.get_secret(secret_name) or ""
            if token:
                logger.info("Using Slack bot token from Secret Manager")

    if not token:
        logger.warning("SLACK_BOT_TOKEN not set and no secret found")

    return Config(
        slack_bot_token=token,
        target_channel_id=env.get("TARGET_CHANNEL_ID", ""),
        admin_users=_parse_admin_users(env.get("ADMIN_USERS", "")),
        polling_interval_minutes=int(env.get("POLLING_INTERVAL_MINUTES", defaults.polling_interval_minutes)),
        health_check_interval_seconds=int(
            env.get("HEALTH_CHECK_INTERVAL_SECONDS", defaults.health_check_interval_seconds)
        ),
        max_consecutive_failures=int(env.get("MAX_CONSECUTIVE_FAILURES", defaults.max_consecutive_failures)),
        default_feeds=list(DEFAULT_ZONE_FEEDS),
        storage_backend=env.get("STORAGE_BACKEND", defaults.storage_backend),
        data_dir=env.get("DATA_DIR", defaults.data_dir),
        firestore_database=env.get("FIRESTORE_DATABASE"),
        firestore_collection_prefix=env.get(
            "FIRESTORE_COLLECTION_PREFIX", defaults.firestore_collection_prefix
        ),
        user_agent=env.get("NWS_USER_AGENT", defaults.user_agent),
    )
