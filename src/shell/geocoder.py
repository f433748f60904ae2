"""Geocoding Client - Imperative Shell.

This module resolves addresses and ZIP codes to coordinates using the
OpenStreetMap Nominatim search API. Input classification is in the core
module (location); this module only performs the lookups.
"""

import logging
import threading
from typing import Any

import requests

from src.core.config import DEFAULT_USER_AGENT
from src.core.errors import NotFoundError, TransportError
from src.core.location import (
    LocationInputType,
    ResolvedLocation,
    coordinates_location,
    format_display_name,
    parse_location_input,
    validate_coordinates,
)


logger = logging.getLogger(__name__)


NOMINATIM_SEARCH_URL = "https://nominatim.openstreetmap.org/search"

# Default timeout for geocoding requests (seconds)
DEFAULT_TIMEOUT = 10


class NominatimGeocoder:
    """Client for the Nominatim search API.

    Successful lookups are memoized for the life of the client, since
    Nominatim's usage policy asks callers not to repeat queries.
    """

    def __init__(
        self,
        base_url: str = NOMINATIM_SEARCH_URL,
        timeout: int = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.user_agent = user_agent
        self.session = session or requests.Session()
        self._cache: dict[str, ResolvedLocation] = {}
        self._lock = threading.Lock()

    def _search(self, params: dict[str, Any]) -> list[dict[str, Any]]:
        query = {"format": "json", "limit": 1, "countrycodes": "us", **params}
        try:
            response = self.session.get(
                self.base_url,
                params=query,
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
            )
        except requests.Timeout as e:
            raise TransportError("Geocoding request timed out") from e
        except requests.RequestException as e:
            raise TransportError(f"Geocoding request failed: {e}") from e

        if not response.ok:
            raise TransportError(f"Geocoding error: {response.status_code} {response.reason}")

        try:
            results = response.json()
        except ValueError as e:
            raise TransportError("Geocoding service returned invalid JSON") from e

        if not isinstance(results, list):
            raise TransportError(f"Unexpected geocoding response: {results}")
        return results

    def _cached(self, cache_key: str) -> ResolvedLocation | None:
        with self._lock:
            return self._cache.get(cache_key)

    def _remember(self, cache_key: str, location: ResolvedLocation) -> ResolvedLocation:
        with self._lock:
            self._cache[cache_key] = location
        return location

    def geocode_address(self, address: str) -> ResolvedLocation:
        """Resolve a free-text address.

        Raises:
            NotFoundError: If nothing matches
            TransportError: If the service cannot be reached
        """
        cache_key = f"address:{address.lower()}"
        cached = self._cached(cache_key)
        if cached:
            logger.debug("Geocode cache hit for %s", address)
            return cached

        logger.info("Geocoding address: %s", address)
        results = self._search({"q": address})
        if not results:
            raise NotFoundError(f"Location not found: {address}")

        result = results[0]
        display_name = result.get("display_name", address)
        location = ResolvedLocation(
            latitude=float(result["lat"]),
            longitude=float(result["lon"]),
            formatted_address=format_display_name(display_name),
            display_name=display_name,
        )
        return self._remember(cache_key, location)

    def geocode_zipcode(self, zip_code: str) -> ResolvedLocation:
        """Resolve a US ZIP code.

        Raises:
            NotFoundError: If the ZIP code is unknown
            TransportError: If the service cannot be reached
        """
        cache_key = f"zip:{zip_code}"
        cached = self._cached(cache_key)
        if cached:
            logger.debug("Geocode cache hit for ZIP %s", zip_code)
            return cached

        logger.info("Geocoding ZIP code: %s", zip_code)
        results = self._search({"postalcode": zip_code})
        if not results:
            raise NotFoundError(f"ZIP code not found: {zip_code}")

        result = results[0]
        display_name = result.get("display_name", zip_code)
        location = ResolvedLocation(
            latitude=float(result["lat"]),
            longitude=float(result["lon"]),
            formatted_address=format_display_name(display_name, max_parts=2),
            display_name=display_name,
            zip_code=zip_code,
        )
        return self._remember(cache_key, location)


class LocationResolver:
    """Turn any supported location input into coordinates."""

    def __init__(self, geocoder: NominatimGeocoder | None = None) -> None:
        self.geocoder = geocoder or NominatimGeocoder()

    def resolve(self, value: str) -> ResolvedLocation:
        """Resolve coordinates, a ZIP code, "City, ST", or an address.

        Coordinates are validated and returned without a network call.

        Raises:
            ValueError: If the input is empty or coordinates are out of range
            NotFoundError: If geocoding finds nothing
            TransportError: If the geocoding service cannot be reached
        """
        parsed = parse_location_input(value)

        if parsed.input_type is LocationInputType.COORDINATES:
            lat, lon = validate_coordinates(parsed.latitude, parsed.longitude)
            return coordinates_location(lat, lon)

        if parsed.input_type is LocationInputType.ZIP_CODE:
            return self.geocoder.geocode_zipcode(parsed.zip_code)

        return self.geocoder.geocode_address(parsed.geocoding_query)
