"""Forecast Service - request-facing forecast lookups.

Resolves the caller's location (or one of their saved nicknames),
serves fresh cached payloads, and falls back to the NWS API on a miss.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from src.core.cache import CacheKind
from src.core.location import ResolvedLocation
from src.shell.forecast_cache import ForecastCache
from src.shell.geocoder import LocationResolver
from src.shell.location_store import SavedLocationStore
from src.shell.nws_client import NWSClient


logger = logging.getLogger(__name__)


DEFAULT_HOURS = 24


@dataclass
class ForecastResult:
    """A weather payload and the location it answers for.

    Attributes:
        location: Resolved location
        data: Payload from the NWS client
        from_cache: True if served from the forecast cache
    """
    location: ResolvedLocation
    data: dict[str, Any]
    from_cache: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location.to_dict(),
            "data": self.data,
            "fromCache": self.from_cache,
        }


class ForecastService:
    """Coordinates location resolution, caching, and the NWS API."""

    def __init__(
        self,
        cache: ForecastCache,
        nws_client: NWSClient | None = None,
        resolver: LocationResolver | None = None,
        saved_locations: SavedLocationStore | None = None,
    ) -> None:
        self.cache = cache
        self.nws_client = nws_client or NWSClient()
        self.resolver = resolver or LocationResolver()
        self.saved_locations = saved_locations

    def resolve_location(self, value: str, user_id: str | None = None) -> ResolvedLocation:
        """Resolve input, checking the user's saved nicknames first.

        Raises:
            ValueError: If the input is empty or invalid
            NotFoundError: If the location cannot be geocoded
            TransportError: If the geocoding service is unreachable
        """
        if user_id and self.saved_locations:
            saved = self.saved_locations.find(user_id, value)
            if saved:
                logger.debug("Using saved location '%s' for %s", saved.nickname, user_id)
                return saved.location
        return self.resolver.resolve(value)

    def _lookup(
        self,
        kind: CacheKind,
        location: ResolvedLocation,
        fetch: Callable[[], dict[str, Any]],
        hours: int | None = None,
    ) -> ForecastResult:
        cached = self.cache.get(kind, location.latitude, location.longitude, hours)
        if cached is not None:
            return ForecastResult(location=location, data=cached, from_cache=True)

        logger.info(
            "Cache miss for %s at %.4f,%.4f",
            kind.value,
            location.latitude,
            location.longitude,
        )
        data = fetch()
        self.cache.put(kind, location.latitude, location.longitude, data, hours)
        return ForecastResult(location=location, data=data)

    def get_seven_day_forecast(self, value: str, user_id: str | None = None) -> ForecastResult:
        location = self.resolve_location(value, user_id)
        return self._lookup(
            CacheKind.FORECAST,
            location,
            lambda: self.nws_client.get_forecast(location.latitude, location.longitude),
        )

    def get_hourly_forecast(
        self,
        value: str,
        hours: int = DEFAULT_HOURS,
        user_id: str | None = None,
    ) -> ForecastResult:
        """Hourly forecast for the next `hours` hours."""
        if hours < 1:
            raise ValueError("Hours must be at least 1")
        location = self.resolve_location(value, user_id)
        return self._lookup(
            CacheKind.HOURLY,
            location,
            lambda: self.nws_client.get_hourly(location.latitude, location.longitude, hours),
            hours=hours,
        )

    def get_current_conditions(self, value: str, user_id: str | None = None) -> ForecastResult:
        location = self.resolve_location(value, user_id)
        return self._lookup(
            CacheKind.CURRENT,
            location,
            lambda: self.nws_client.get_current_conditions(location.latitude, location.longitude),
        )

    def get_active_alerts(self, value: str, user_id: str | None = None) -> ForecastResult:
        location = self.resolve_location(value, user_id)
        return self._lookup(
            CacheKind.ALERTS,
            location,
            lambda: self.nws_client.get_active_alerts(location.latitude, location.longitude),
        )
