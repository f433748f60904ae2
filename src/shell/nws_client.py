"""NWS API Client - Imperative Shell.

This module handles HTTP communication with api.weather.gov: grid point
lookup, seven-day and hourly forecasts, station observations, and
active alerts for a point. Payloads are returned as plain dicts so the
forecast cache can persist them as JSON.
"""

import logging
from typing import Any

import requests

from src.core.config import DEFAULT_USER_AGENT
from src.core.errors import NotFoundError, ParseError, TransportError


logger = logging.getLogger(__name__)


NWS_API_BASE = "https://api.weather.gov"

# Default timeout for API requests (seconds)
DEFAULT_TIMEOUT = 30

_FORECAST_PERIOD_FIELDS = (
    "number", "name", "startTime", "endTime", "isDaytime", "temperature",
    "temperatureUnit", "temperatureTrend", "windSpeed", "windDirection",
    "icon", "shortForecast", "detailedForecast",
)

_HOURLY_PERIOD_FIELDS = (
    "number", "startTime", "endTime", "isDaytime", "temperature",
    "temperatureUnit", "windSpeed", "windDirection", "icon", "shortForecast",
    "probabilityOfPrecipitation", "dewpoint", "relativeHumidity",
)

_OBSERVATION_FIELDS = (
    "timestamp", "textDescription", "temperature", "dewpoint",
    "windDirection", "windSpeed", "windGust", "barometricPressure",
    "seaLevelPressure", "visibility", "maxTemperatureLast24Hours",
    "minTemperatureLast24Hours", "precipitationLastHour",
    "precipitationLast3Hours", "precipitationLast6Hours",
    "relativeHumidity", "windChill", "heatIndex", "cloudLayers",
)

_ALERT_FIELDS = (
    "id", "areaDesc", "severity", "urgency", "certainty", "event",
    "headline", "description", "instruction", "response", "effective",
    "expires", "senderName", "sent",
)


def _pick(source: dict[str, Any], fields: tuple[str, ...]) -> dict[str, Any]:
    return {name: source.get(name) for name in fields}


class NWSClient:
    """Client for the National Weather Service API.

    This is part of the imperative shell - it handles HTTP I/O.
    """

    def __init__(
        self,
        base_url: str = NWS_API_BASE,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        """Initialize NWS client.

        Args:
            base_url: NWS API base URL
            timeout: Request timeout in seconds
            user_agent: User-Agent header (required by NWS)
            session: Optional requests session to reuse connections
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()

    def _request(self, endpoint: str, params: dict[str, str] | None = None) -> dict[str, Any]:
        """GET an endpoint and return its JSON body.

        Raises:
            NotFoundError: On HTTP 404
            TransportError: On timeout, network failure, or other non-2xx status
            ParseError: If the body is not JSON
        """
        url = f"{self.base_url}{endpoint}"
        logger.info("NWS API request: %s", url)

        try:
            response = self.session.get(
                url,
                params=params,
                timeout=self.timeout,
                headers={
                    "User-Agent": self.user_agent,
                    "Accept": "application/geo+json",
                },
            )
        except requests.Timeout as e:
            raise TransportError(f"NWS API request timed out: {url}") from e
        except requests.RequestException as e:
            raise TransportError(f"NWS API request failed: {e}") from e

        if response.status_code == 404:
            raise NotFoundError(f"NWS API has no data for {endpoint}")
        if not response.ok:
            raise TransportError(f"NWS API error: {response.status_code} {response.reason}")

        try:
            return response.json()
        except ValueError as e:
            raise ParseError(f"NWS API returned invalid JSON for {endpoint}") from e

    def get_grid_point(self, latitude: float, longitude: float) -> dict[str, Any]:
        """Convert coordinates to an NWS grid point."""
        data = self._request(f"/points/{latitude:.4f},{longitude:.4f}")
        props = data.get("properties")
        if not props:
            raise ParseError("Invalid grid point response")

        return {
            "gridId": props.get("gridId"),
            "gridX": props.get("gridX"),
            "gridY": props.get("gridY"),
            "forecastOffice": props.get("cwa"),
            "timeZone": props.get("timeZone"),
        }

    def _gridpoint_path(self, grid_point: dict[str, Any]) -> str:
        return f"/gridpoints/{grid_point['gridId']}/{grid_point['gridX']},{grid_point['gridY']}"

    def _periods(self, endpoint: str, fields: tuple[str, ...]) -> dict[str, Any]:
        props = self._request(endpoint).get("properties") or {}
        return {
            "updated": props.get("updated"),
            "units": props.get("units"),
            "periods": [_pick(p, fields) for p in props.get("periods", [])],
        }

    def get_observation_stations(self, grid_point: dict[str, Any]) -> list[dict[str, Any]]:
        data = self._request(f"{self._gridpoint_path(grid_point)}/stations")
        return [
            {
                "id": f["properties"].get("stationIdentifier"),
                "name": f["properties"].get("name"),
                "elevation": f["properties"].get("elevation"),
                "coordinates": (f.get("geometry") or {}).get("coordinates"),
            }
            for f in data.get("features", [])
            if f.get("properties")
        ]

    def get_latest_observation(self, station_id: str) -> dict[str, Any] | None:
        props = self._request(f"/stations/{station_id}/observations/latest").get("properties")
        if not props:
            return None
        return _pick(props, _OBSERVATION_FIELDS)

    def get_forecast(self, latitude: float, longitude: float) -> dict[str, Any]:
        """Seven-day forecast (day/night periods) for a point.

        Raises:
            NotFoundError: If NWS has no grid for the point
            TransportError: If the API cannot be reached
        """
        grid_point = self.get_grid_point(latitude, longitude)
        forecast = self._periods(f"{self._gridpoint_path(grid_point)}/forecast", _FORECAST_PERIOD_FIELDS)
        return {"gridPoint": grid_point, "forecast": forecast}

    def get_hourly(self, latitude: float, longitude: float, hours: int = 24) -> dict[str, Any]:
        """Hourly forecast for a point, trimmed to the first `hours` periods."""
        grid_point = self.get_grid_point(latitude, longitude)
        hourly = self._periods(
            f"{self._gridpoint_path(grid_point)}/forecast/hourly",
            _HOURLY_PERIOD_FIELDS,
        )
        hourly["periods"] = hourly["periods"][:hours]
        return {"gridPoint": grid_point, "hourlyForecast": hourly}

    def get_current_conditions(self, latitude: float, longitude: float) -> dict[str, Any]:
        """Latest observation from the nearest station plus the current forecast period.

        A missing or failed observation is not fatal; it is returned as None.
        """
        grid_point = self.get_grid_point(latitude, longitude)
        forecast = self._periods(f"{self._gridpoint_path(grid_point)}/forecast", _FORECAST_PERIOD_FIELDS)
        stations = self.get_observation_stations(grid_point)

        observation = None
        if stations:
            try:
                observation = self.get_latest_observation(stations[0]["id"])
            except (TransportError, NotFoundError, ParseError) as e:
                logger.warning("Could not get current observation: %s", e)

        periods = forecast["periods"]
        return {
            "gridPoint": grid_point,
            "currentObservation": observation,
            "nearestForecast": periods[0] if periods else None,
            "observationStations": stations,
        }

    def get_active_alerts(self, latitude: float, longitude: float) -> dict[str, Any]:
        """Active alerts for a point."""
        data = self._request("/alerts/active", params={"point": f"{latitude:.4f},{longitude:.4f}"})
        alerts = [
            _pick(f["properties"], _ALERT_FIELDS)
            for f in data.get("features", [])
            if f.get("properties")
        ]
        return {"alerts": alerts, "alertCount": len(alerts)}
