"""Alert Feed Client - Imperative Shell.

This module handles HTTP communication with NWS alert feeds.
All I/O is contained here; decoding is in the core module (alert).
"""

import logging

import requests

from src.core.alert import Alert, parse_alert_feed
from src.core.config import DEFAULT_USER_AGENT
from src.core.errors import FetchError


logger = logging.getLogger(__name__)


# Default timeout for feed requests (seconds)
DEFAULT_TIMEOUT = 30


class FeedClient:
    """Client for fetching and decoding alert feeds.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize feed client.

        Args:
            timeout: Request timeout in seconds
            user_agent: User-Agent header (NWS asks clients to identify themselves)
            session: Optional requests session to reuse connections
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()

    def fetch_feed(self, url: str) -> bytes:
        """Download a feed document.

        This method performs HTTP I/O.

        Args:
            url: Feed URL

        Returns:
            Raw response body

        Raises:
            FetchError: On timeout, network failure, or non-2xx status
        """
        logger.info("Fetching alert feed %s", url)

        try:
            response = self.session.get(
                url,
                timeout=self.timeout,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/atom+xml",
                },
            )
        except requests.Timeout as e:
            raise FetchError(f"Timed out fetching feed {url}") from e
        except requests.RequestException as e:
            raise FetchError(f"Failed to fetch feed {url}: {e}") from e

        if not response.ok:
            raise FetchError(
                f"Failed to fetch feed {url}: {response.status_code} {response.reason}"
            )

        return response.content

    def fetch_and_parse_feed(self, url: str) -> list[Alert]:
        """Fetch a feed and decode its entries.

        Args:
            url: Feed URL

        Returns:
            Alerts in feed order (possibly empty)

        Raises:
            FetchError: If the request fails
            ParseError: If the body is not a valid feed
        """
        alerts = parse_alert_feed(self.fetch_feed(url))
        logger.info("Parsed %d alerts from %s", len(alerts), url)
        return alerts
