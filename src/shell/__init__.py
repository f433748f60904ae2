"""Imperative Shell - I/O and side effects.

This module contains all code that interacts with external systems:
- NWS alert feeds and forecast API (HTTP)
- Nominatim geocoding (HTTP)
- Slack Web API (HTTP)
- Key-value storage (files or Firestore)
- Configuration loading (environment/files)

Keep this layer thin and simple. All business logic should be in core.
"""

from src.shell.feed_client import FeedClient
from src.shell.nws_client import NWSClient
from src.shell.slack_client import SlackClient
from src.shell.store import create_store
from src.shell.config_loader import load_config

__all__ = [
    "FeedClient",
    "NWSClient",
    "SlackClient",
    "create_store",
    "load_config",
]
