"""Entry points.

Two ways to run the alert poller:
- run_service(): long-running process; APScheduler runs the poll and
  health-check jobs on their own intervals.
- weather_alerts_poll: Cloud Function HTTP entry point running a single
  poll cycle (triggered by Cloud Scheduler).
"""

import logging
import os
from typing import Any

import functions_framework
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.interval import IntervalTrigger
from flask import Request

from src.app import Application, build_app
from src.shell.config_loader import load_config, load_config_from_env


# Configure logging
log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _get_config():
    """Load configuration from file or environment."""
    config_path = os.environ.get("CONFIG_PATH")

    if config_path:
        return load_config(config_path)
    return load_config_from_env()


def create_scheduler(app: Application) -> BlockingScheduler:
    """Schedule the poll and health-check jobs.

    The poll job allows one instance at a time and coalesces missed
    runs; the poller also guards against overlap itself.
    """
    scheduler = BlockingScheduler(timezone="UTC")
    scheduler.add_job(
        app.poller.process,
        trigger=IntervalTrigger(minutes=app.config.polling_interval_minutes),
        id="poll_alerts",
        name="Poll weather alert feeds",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        app.health_monitor.check,
        trigger=IntervalTrigger(seconds=app.config.health_check_interval_seconds),
        id="health_check",
        name="Poller health check",
        max_instances=1,
        coalesce=True,
    )
    return scheduler


def run_service() -> None:
    """Run the poller until interrupted."""
    app = build_app(_get_config())
    scheduler = create_scheduler(app)

    logger.info(
        "Starting weather alerts service: polling every %d minutes, health check every %d seconds",
        app.config.polling_interval_minutes,
        app.config.health_check_interval_seconds,
    )

    # Check immediately rather than waiting a full interval
    app.poller.process()

    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Shutting down")
    finally:
        app.close()


@functions_framework.http
def weather_alerts_poll(request: Request) -> tuple[dict[str, Any], int]:
    """HTTP Cloud Function entry point.

    Runs one polling cycle.

    Args:
        request: Flask request object (not used, but required by framework)

    Returns:
        Tuple of (response dict, HTTP status code)
    """
    logger.info("Starting weather alert poll cycle")

    try:
        app = build_app(_get_config())
        try:
            result = app.poller.process()
        finally:
            app.close()

        response = {
            "status": "success" if result.success else "partial_failure",
            "summary": result.summary,
            "subscriptions_checked": result.subscriptions_checked,
            "alerts_fetched": result.alerts_fetched,
            "alerts_sent": len(result.alerts_sent),
            "alerts_failed": len(result.alerts_failed),
        }

        if result.errors:
            response["errors"] = result.errors

        logger.info("Completed: %s", result.summary)

        status_code = 200 if result.success else 207  # 207 = Multi-Status
        return response, status_code

    except Exception as e:
        logger.exception("Unexpected error in weather alert poll")
        return {
            "status": "error",
            "message": str(e),
        }, 500


if __name__ == "__main__":
    run_service()
