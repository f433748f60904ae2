"""Tests for the Configuration Loader module.

Tests configuration loading from YAML files and environment variables.
"""

import os
from unittest.mock import Mock, patch

import pytest

from src.core.config import Config
from src.shell.config_loader import (
    _get_secret_manager_client,
    _parse_admin_users,
    _resolve_value,
    load_config,
    load_config_from_dict,
    load_config_from_env,
)


@pytest.fixture(autouse=True)
def no_gcp_project():
    """Keep Secret Manager out of the picture unless a test opts in."""
    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("GCP_PROJECT", None)
        os.environ.pop("GOOGLE_CLOUD_PROJECT", None)
        yield


class TestResolveValue:
    """Tests for _resolve_value function."""

    def test_returns_non_string_unchanged(self):
        assert _resolve_value(123) == 123
        assert _resolve_value(None) is None

    def test_returns_plain_string_unchanged(self):
        assert _resolve_value("xoxb-plain") == "xoxb-plain"

    def test_resolves_env_var_placeholder(self):
        with patch.dict(os.environ, {"TEST_TOKEN": "xoxb-from-env"}):
            assert _resolve_value("${TEST_TOKEN}") == "xoxb-from-env"

    def test_returns_placeholder_if_env_var_not_set(self):
        os.environ.pop("UNDEFINED_VAR", None)
        assert _resolve_value("${UNDEFINED_VAR}") == "${UNDEFINED_VAR}"

    def test_uses_secret_client_when_provided(self):
        mock_client = Mock()
        mock_client.resolve.return_value = "secret_value"

        assert _resolve_value("${secret:slack-token}", mock_client) == "secret_value"
        mock_client.resolve.assert_called_once_with("${secret:slack-token}")


class TestGetSecretManagerClient:
    """Tests for _get_secret_manager_client."""

    def test_none_without_project(self):
        assert _get_secret_manager_client() is None

    def test_uses_gcp_project(self):
        with patch.dict(os.environ, {"GCP_PROJECT": "my-project"}):
            client = _get_secret_manager_client()
        assert client.config.project_id == "my-project"


class TestParseAdminUsers:
    """Tests for _parse_admin_users."""

    def test_comma_separated(self):
        assert _parse_admin_users("U1, U2,,U3 ") == ["U1", "U2", "U3"]

    def test_list(self):
        assert _parse_admin_users(["U1", " U2 "]) == ["U1", "U2"]

    def test_missing(self):
        assert _parse_admin_users(None) == []


class TestLoadConfigFromDict:
    """Tests for load_config_from_dict."""

    def test_empty_dict_uses_defaults(self):
        assert load_config_from_dict({}) == Config()

    def test_full_config(self):
        with patch.dict(os.environ, {"SLACK_BOT_TOKEN": "xoxb-env"}):
            config = load_config_from_dict({
                "slack": {"bot_token": "${SLACK_BOT_TOKEN}", "target_channel_id": "C123"},
                "admin_users": ["U1", "U2"],
                "polling_interval_minutes": 2,
                "health_check_interval_seconds": 15,
                "max_consecutive_failures": 5,
                "default_feeds": [{"zone": "NYZ072", "name": "New York (Manhattan)"}],
                "storage": {"backend": "firestore", "firestore_database": "wx"},
                "user_agent": "wx-test/1.0",
            })

        assert config.slack_bot_token == "xoxb-env"
        assert config.target_channel_id == "C123"
        assert config.admin_users == ["U1", "U2"]
        assert config.polling_interval_minutes == 2
        assert config.health_check_interval_seconds == 15
        assert config.max_consecutive_failures == 5
        assert [f.zone for f in config.default_feeds] == ["NYZ072"]
        assert config.default_feeds[0].feed_url.endswith("zone=NYZ072")
        assert config.storage_backend == "firestore"
        assert config.firestore_database == "wx"
        assert config.user_agent == "wx-test/1.0"


class TestLoadConfig:
    """Tests for load_config (file I/O)."""

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "slack:\n"
            "  target_channel_id: C999\n"
            "admin_users: U1,U2\n"
            "polling_interval_minutes: 10\n"
            "storage:\n"
            "  backend: memory\n"
        )

        config = load_config(path)

        assert config.target_channel_id == "C999"
        assert config.admin_users == ["U1", "U2"]
        assert config.polling_interval_minutes == 10
        assert config.storage_backend == "memory"

    def test_missing_file_falls_back_to_env(self, tmp_path):
        with patch.dict(os.environ, {"TARGET_CHANNEL_ID": "CENV"}):
            config = load_config(tmp_path / "missing.yaml")
        assert config.target_channel_id == "CENV"

    def test_empty_file_falls_back_to_env(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")

        with patch.dict(os.environ, {"TARGET_CHANNEL_ID": "CENV"}):
            assert load_config(path).target_channel_id == "CENV"


class TestLoadConfigFromEnv:
    """Tests for load_config_from_env."""

    def test_reads_environment(self):
        env = {
            "SLACK_BOT_TOKEN": "xoxb-env",
            "TARGET_CHANNEL_ID": "C123",
            "ADMIN_USERS": "U1,U2",
            "POLLING_INTERVAL_MINUTES": "3",
            "HEALTH_CHECK_INTERVAL_SECONDS": "20",
            "MAX_CONSECUTIVE_FAILURES": "4",
            "STORAGE_BACKEND": "memory",
            "DATA_DIR": "/tmp/wx",
            "FIRESTORE_DATABASE": "wx-db",
            "FIRESTORE_COLLECTION_PREFIX": "wx",
            "NWS_USER_AGENT": "wx-test/1.0",
        }
        with patch.dict(os.environ, env):
            config = load_config_from_env()

        assert config.slack_bot_token == "xoxb-env"
        assert config.target_channel_id == "C123"
        assert config.admin_users == ["U1", "U2"]
        assert config.polling_interval_minutes == 3
        assert config.health_check_interval_seconds == 20
        assert config.max_consecutive_failures == 4
        assert config.storage_backend == "memory"
        assert config.data_dir == "/tmp/wx"
        assert config.firestore_database == "wx-db"
        assert config.firestore_collection_prefix == "wx"
        assert config.user_agent == "wx-test/1.0"

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = load_config_from_env()

        assert config.slack_bot_token == ""
        assert config.polling_interval_minutes == 5
        assert config.storage_backend == "file"

    def test_token_from_secret_manager(self):
        env = {"GCP_PROJECT": "my-project", "SLACK_BOT_TOKEN_SECRET": "slack-bot-token"}
        with patch.dict(os.environ, env, clear=True), \
                patch("src.shell.config_loader.SecretManagerClient") as mock_cls:
            mock_cls.return_value.get_secret.return_value = "xoxb-secret"
            config = load_config_from_env()

        assert config.slack_bot_token == "xoxb-secret"
        mock_cls.return_value.get_secret.assert_called_once_with("slack-bot-token")
