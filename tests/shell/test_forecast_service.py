"""Tests for the ForecastService."""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest

from src.core.cache import CacheKind
from src.core.errors import NotFoundError
from src.core.location import ResolvedLocation
from src.forecast_service import ForecastService
from src.shell.forecast_cache import ForecastCache
from src.shell.geocoder import LocationResolver
from src.shell.location_store import SavedLocationStore
from src.shell.store import MemoryStore


NOW = datetime(2024, 6, 10, 12, 0, 0, tzinfo=timezone.utc)
RAMSEY = ResolvedLocation(41.0573, -74.141, "Ramsey, Bergen County", zip_code="07446")


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cache(store):
    cache = ForecastCache(store, clock=lambda: NOW)
    yield cache
    cache.close()


@pytest.fixture
def nws():
    client = Mock()
    client.get_forecast.return_value = {"forecast": {"periods": [{"temperature": 70}]}}
    client.get_hourly.return_value = {"hourlyForecast": {"periods": []}}
    client.get_current_conditions.return_value = {"currentObservation": None}
    client.get_active_alerts.return_value = {"alerts": [], "alertCount": 0}
    return client


@pytest.fixture
def geocoder():
    geocoder = Mock()
    geocoder.geocode_zipcode.return_value = RAMSEY
    geocoder.geocode_address.return_value = RAMSEY
    return geocoder


@pytest.fixture
def saved_locations(store):
    return SavedLocationStore(store, clock=lambda: NOW)


@pytest.fixture
def service(cache, nws, geocoder, saved_locations):
    return ForecastService(
        cache,
        nws_client=nws,
        resolver=LocationResolver(geocoder),
        saved_locations=saved_locations,
    )


class TestForecastService:
    """Tests for ForecastService lookups."""

    def test_seven_day_forecast(self, service, nws):
        result = service.get_seven_day_forecast("07446")

        assert result.location == RAMSEY
        assert result.from_cache is False
        assert result.data["forecast"]["periods"][0]["temperature"] == 70
        nws.get_forecast.assert_called_once_with(41.0573, -74.141)

    def test_second_lookup_served_from_cache(self, service, nws):
        service.get_seven_day_forecast("07446")
        result = service.get_seven_day_forecast("07446")

        assert result.from_cache is True
        assert nws.get_forecast.call_count == 1

    def test_kinds_cached_separately(self, service, nws):
        service.get_seven_day_forecast("07446")
        service.get_current_conditions("07446")

        nws.get_current_conditions.assert_called_once()

    def test_hourly_passes_hours(self, service, nws, cache):
        service.get_hourly_forecast("07446", hours=12)

        nws.get_hourly.assert_called_once_with(41.0573, -74.141, 12)
        assert cache.get(CacheKind.HOURLY, 41.0573, -74.141, hours=12) is not None

    def test_hourly_rejects_zero_hours(self, service):
        with pytest.raises(ValueError):
            service.get_hourly_forecast("07446", hours=0)

    def test_active_alerts(self, service, nws):
        result = service.get_active_alerts("41.06,-74.14")

        assert result.data["alertCount"] == 0
        nws.get_active_alerts.assert_called_once_with(41.06, -74.14)

    def test_coordinates_skip_geocoder(self, service, geocoder):
        service.get_current_conditions("41.06,-74.14")

        geocoder.geocode_zipcode.assert_not_called()
        geocoder.geocode_address.assert_not_called()

    def test_saved_nickname_used_for_user(self, service, saved_locations, geocoder, nws):
        saved_locations.save("U1", "Home", ResolvedLocation(40.74, -74.03, "Hoboken"))

        result = service.get_seven_day_forecast("home", user_id="U1")

        assert result.location.formatted_address == "Hoboken"
        nws.get_forecast.assert_called_once_with(40.74, -74.03)
        geocoder.geocode_address.assert_not_called()

    def test_unknown_nickname_falls_back_to_geocoding(self, service, geocoder):
        service.get_seven_day_forecast("Ramsey, NJ", user_id="U1")
        geocoder.geocode_address.assert_called_once_with("Ramsey, NJ, USA")

    def test_not_found_propagates(self, service, geocoder):
        geocoder.geocode_address.side_effect = NotFoundError("Location not found")

        with pytest.raises(NotFoundError):
            service.get_seven_day_forecast("Atlantis")

    def test_to_dict(self, service):
        result = service.get_active_alerts("41.06,-74.14").to_dict()

        assert result["location"]["latitude"] == 41.06
        assert result["fromCache"] is False
        assert result["data"]["alertCount"] == 0
