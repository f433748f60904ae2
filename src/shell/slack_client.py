"""Slack Web API Client - Imperative Shell.

This module handles HTTP communication with the Slack Web API.
All I/O is contained here; message formatting is in the core module.
"""

import logging
from dataclasses import dataclass
from typing import Any

import requests


logger = logging.getLogger(__name__)


SLACK_API_BASE = "https://slack.com/api"

# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 10


@dataclass
class SlackResponse:
    """Response from the Slack Web API.

    Slack answers HTTP 200 for most application errors and reports
    them in the body, so success requires both a 2xx status and
    "ok": true.

    Attributes:
        success: Whether the call succeeded
        status_code: HTTP status code (0 if no response)
        error: Error message if failed
        data: Parsed response body
    """
    success: bool
    status_code: int
    error: str | None = None
    data: dict[str, Any] | None = None


class SlackClient:
    """Client for posting messages with a bot token.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        token: str,
        base_url: str = SLACK_API_BASE,
        timeout: int = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize Slack client.

        Args:
            token: Bot token (xoxb-...)
            base_url: Slack Web API base URL
            timeout: Request timeout in seconds
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _call(self, method: str, payload: dict[str, Any] | None = None) -> SlackResponse:
        url = f"{self.base_url}/{method}"
        try:
            response = requests.post(
                url,
                json=payload or {},
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.token}",
                    "Content-Type": "application/json; charset=utf-8",
                },
            )
        except requests.Timeout:
            logger.error("Slack %s request timed out", method)
            return SlackResponse(success=False, status_code=0, error="Request timed out")
        except requests.RequestException as e:
            logger.error("Slack %s request failed: %s", method, str(e))
            return SlackResponse(success=False, status_code=0, error=str(e))

        if response.status_code != 200:
            logger.warning(
                "Slack %s returned non-200: %d - %s",
                method,
                response.status_code,
                response.text,
            )
            return SlackResponse(
                success=False,
                status_code=response.status_code,
                error=response.text,
            )

        try:
            data = response.json()
        except ValueError:
            return SlackResponse(
                success=False,
                status_code=response.status_code,
                error="Invalid JSON response",
            )

        if not data.get("ok"):
            error = data.get("error", "unknown_error")
            logger.warning("Slack %s failed: %s", method, error)
            return SlackResponse(
                success=False,
                status_code=response.status_code,
                error=error,
                data=data,
            )

        return SlackResponse(success=True, status_code=response.status_code, data=data)

    def post_message(
        self,
        channel: str,
        text: str,
        blocks: list[dict[str, Any]] | None = None,
    ) -> SlackResponse:
        """Post a message to a channel or user.

        This method performs HTTP I/O.

        Args:
            channel: Channel ID, or a user ID for a direct message
            text: Message text (Slack mrkdwn)
            blocks: Optional Block Kit blocks

        Returns:
            SlackResponse indicating success or failure
        """
        payload: dict[str, Any] = {"channel": channel, "text": text}
        if blocks:
            payload["blocks"] = blocks

        logger.info("Posting message to Slack channel %s", channel)
        result = self._call("chat.postMessage", payload)
        if result.success:
            logger.info("Message sent successfully to %s", channel)
        return result

    def auth_test(self) -> SlackResponse:
        """Verify the token and connectivity (auth.test)."""
        return self._call("auth.test")
