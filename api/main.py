"""Weather API - FastAPI service.

Forecast lookups (with per-user saved locations) and subscription
administration over the same components the alert poller uses.
Callers identify themselves with the X-User-Id header; subscription
and cache endpoints require the user to be on the admin allow-list.
"""

import logging
from typing import Any, Callable

from fastapi import Depends, FastAPI, Header, HTTPException, Query
from pydantic import BaseModel

from src.app import Application, build_app
from src.core.config import is_admin
from src.core.errors import NotFoundError, PersistenceError, TransportError
from src.core.formatter import get_temperature_trend
from src.core.subscription import SubscriptionUpdate, zone_feed_url
from src.shell.config_loader import load_config

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Weather Alerts API",
    description="NWS forecasts, saved locations, and alert feed subscriptions",
    version="1.0.0",
)


# ===== Request Models =====

class LocationCreate(BaseModel):
    nickname: str
    location: str


class SubscriptionCreate(BaseModel):
    name: str
    url: str | None = None
    zone: str | None = None
    active: bool = True


class SubscriptionChange(BaseModel):
    name: str | None = None
    url: str | None = None
    zone: str | None = None
    active: bool | None = None


# ===== Application =====

_application: Application | None = None


def get_application() -> Application:
    """Get or build the shared application."""
    global _application
    if _application is None:
        _application = build_app(load_config())
    return _application


def _call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a service call, mapping domain errors to HTTP errors."""
    try:
        return fn(*args, **kwargs)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TransportError as e:
        logger.error("Upstream request failed: %s", e)
        raise HTTPException(status_code=502, detail=str(e))
    except PersistenceError as e:
        logger.error("Storage failure: %s", e)
        raise HTTPException(status_code=500, detail="Storage unavailable")


def _require_user(x_user_id: str | None) -> str:
    if not x_user_id:
        raise HTTPException(status_code=401, detail="X-User-Id header required")
    return x_user_id


def _require_admin(x_user_id: str | None, application: Application) -> str:
    user_id = _require_user(x_user_id)
    if not is_admin(user_id, application.config):
        raise HTTPException(status_code=403, detail="Admin access required")
    return user_id


# ===== Forecast Endpoints =====

@app.get("/health")
async def health_check(application: Application = Depends(get_application)):
    """Liveness of the API process.

    The poller runs in its own process, so its health is not reported here.
    """
    return {
        "status": "ok",
        "started_at": application.state.snapshot().started_at.isoformat(),
        "forecast_cache": application.forecast_cache.stats(),
    }


@app.get("/forecast")
def get_forecast(
    location: str = Query(...),
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    """Seven-day forecast for a location or saved nickname."""
    result = _call(application.forecasts.get_seven_day_forecast, location, user_id=x_user_id)
    response = result.to_dict()
    periods = result.data.get("forecast", {}).get("periods", [])
    response["trend"] = get_temperature_trend(periods)
    return response


@app.get("/forecast/hourly")
def get_hourly_forecast(
    location: str = Query(...),
    hours: int = Query(default=24, ge=1, le=156),
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    result = _call(application.forecasts.get_hourly_forecast, location, hours=hours, user_id=x_user_id)
    return result.to_dict()


@app.get("/conditions")
def get_current_conditions(
    location: str = Query(...),
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    result = _call(application.forecasts.get_current_conditions, location, user_id=x_user_id)
    return result.to_dict()


@app.get("/alerts")
def get_active_alerts(
    location: str = Query(...),
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    result = _call(application.forecasts.get_active_alerts, location, user_id=x_user_id)
    return result.to_dict()


# ===== Saved Locations =====

@app.get("/locations")
def list_locations(
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    user_id = _require_user(x_user_id)
    locations = _call(application.saved_locations.list_for_user, user_id)
    return {"locations": [loc.to_dict() for loc in locations]}


@app.post("/locations", status_code=201)
def save_location(
    body: LocationCreate,
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    """Resolve a location and save it under a nickname."""
    user_id = _require_user(x_user_id)
    resolved = _call(application.forecasts.resolver.resolve, body.location)
    saved = _call(application.saved_locations.save, user_id, body.nickname, resolved)
    return saved.to_dict()


@app.delete("/locations/{nickname}")
def delete_location(
    nickname: str,
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    user_id = _require_user(x_user_id)
    if not _call(application.saved_locations.remove, user_id, nickname):
        raise HTTPException(status_code=404, detail=f"Location '{nickname}' not found")
    return {"message": f"Location '{nickname}' removed"}


# ===== Subscription Admin =====

@app.get("/admin/subscriptions")
def admin_list_subscriptions(
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    _require_admin(x_user_id, application)
    subscriptions = _call(application.subscriptions.list_subscriptions)
    return {"subscriptions": [s.to_dict() for s in subscriptions]}


@app.post("/admin/subscriptions", status_code=201)
def admin_add_subscription(
    body: SubscriptionCreate,
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    """Add a feed by URL, or by NWS zone code."""
    user_id = _require_admin(x_user_id, application)

    url = body.url or (zone_feed_url(body.zone) if body.zone else None)
    if not url:
        raise HTTPException(status_code=400, detail="Either url or zone is required")

    subscription = _call(
        application.subscriptions.add,
        url,
        body.name,
        user_id,
        zone=body.zone,
        active=body.active,
    )
    return subscription.to_dict()


@app.put("/admin/subscriptions/{subscription_id}")
def admin_update_subscription(
    subscription_id: str,
    body: SubscriptionChange,
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    _require_admin(x_user_id, application)
    changes = SubscriptionUpdate(name=body.name, url=body.url, zone=body.zone, active=body.active)
    updated = _call(application.subscriptions.update, subscription_id, changes)
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Subscription '{subscription_id}' not found")
    return updated.to_dict()


@app.post("/admin/subscriptions/{subscription_id}/toggle")
def admin_toggle_subscription(
    subscription_id: str,
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    _require_admin(x_user_id, application)
    updated = _call(application.subscriptions.toggle, subscription_id)
    if updated is None:
        raise HTTPException(status_code=404, detail=f"Subscription '{subscription_id}' not found")
    return updated.to_dict()


@app.delete("/admin/subscriptions/{subscription_id}")
def admin_remove_subscription(
    subscription_id: str,
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    _require_admin(x_user_id, application)
    if not _call(application.subscriptions.remove, subscription_id):
        raise HTTPException(status_code=404, detail=f"Subscription '{subscription_id}' not found")
    return {"message": f"Subscription '{subscription_id}' removed"}


# ===== Cache Admin =====

@app.get("/admin/cache")
def admin_cache_stats(
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    _require_admin(x_user_id, application)
    return application.forecast_cache.stats()


@app.post("/admin/cache/clean")
def admin_clean_cache(
    x_user_id: str | None = Header(default=None),
    application: Application = Depends(get_application),
):
    _require_admin(x_user_id, application)
    removed = application.forecast_cache.clean()
    return {"removed": removed, **application.forecast_cache.stats()}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8080)
