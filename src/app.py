"""Application wiring.

Builds every long-lived component from a Config so the scheduler
service, the Cloud Function entry point, and the HTTP API share one
construction path.
"""

import logging
from dataclasses import dataclass

from src.core.config import Config, validate_config
from src.core.health import PollState
from src.forecast_service import ForecastService
from src.health_monitor import HealthMonitor
from src.poller import AlertPoller
from src.shell.clock import utc_now
from src.shell.feed_client import FeedClient
from src.shell.forecast_cache import ForecastCache
from src.shell.geocoder import LocationResolver, NominatimGeocoder
from src.shell.ledger import ProcessedAlertLedger
from src.shell.location_store import SavedLocationStore
from src.shell.nws_client import NWSClient
from src.shell.slack_client import SlackClient
from src.shell.store import KeyValueStore, create_store
from src.shell.subscription_store import SubscriptionStore


logger = logging.getLogger(__name__)


@dataclass
class Application:
    """Every component of a running instance."""
    config: Config
    store: KeyValueStore
    subscriptions: SubscriptionStore
    ledger: ProcessedAlertLedger
    saved_locations: SavedLocationStore
    forecast_cache: ForecastCache
    state: PollState
    poller: AlertPoller
    health_monitor: HealthMonitor
    forecasts: ForecastService

    def close(self) -> None:
        self.forecast_cache.close()


def build_app(config: Config, store: KeyValueStore | None = None) -> Application:
    """Construct the application from configuration.

    Args:
        config: Application configuration
        store: Backing store (created from config if not provided)

    Returns:
        Wired Application
    """
    validation = validate_config(config)
    for issue in validation.errors:
        log = logger.error if issue.severity == "error" else logger.warning
        log("Config %s: %s", issue.field, issue.message)
    if not validation.valid:
        raise ValueError("Invalid configuration: " + "; ".join(
            e.message for e in validation.critical_errors
        ))

    store = store or create_store(
        config.storage_backend,
        data_dir=config.data_dir,
        firestore_database=config.firestore_database,
        firestore_collection_prefix=config.firestore_collection_prefix,
    )

    subscriptions = SubscriptionStore(store, default_feeds=config.default_feeds)
    ledger = ProcessedAlertLedger(store, retention=config.retention)
    saved_locations = SavedLocationStore(store)
    forecast_cache = ForecastCache(store)
    state = PollState.starting_at(utc_now())
    slack_client = SlackClient(config.slack_bot_token)

    poller = AlertPoller(
        config,
        subscriptions,
        ledger,
        feed_client=FeedClient(timeout=config.request_timeout_seconds, user_agent=config.user_agent),
        slack_client=slack_client,
        state=state,
    )
    health_monitor = HealthMonitor(config, state, slack_client=slack_client)
    forecasts = ForecastService(
        forecast_cache,
        nws_client=NWSClient(timeout=config.request_timeout_seconds, user_agent=config.user_agent),
        resolver=LocationResolver(NominatimGeocoder(user_agent=config.user_agent)),
        saved_locations=saved_locations,
    )

    logger.info("Application built with %s storage", config.storage_backend)

    return Application(
        config=config,
        store=store,
        subscriptions=subscriptions,
        ledger=ledger,
        saved_locations=saved_locations,
        forecast_cache=forecast_cache,
        state=state,
        poller=poller,
        health_monitor=health_monitor,
        forecasts=forecasts,
    )
