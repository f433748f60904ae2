"""Unit tests for location input parsing.

Pure function tests - no mocks needed.
"""

import math

import pytest

from src.core.location import (
    LocationInputType,
    SavedLocation,
    coordinates_location,
    format_display_name,
    parse_location_input,
    saved_location_key,
    validate_coordinates,
)


class TestParseLocationInput:
    """Tests for parse_location_input()."""

    def test_coordinates(self):
        parsed = parse_location_input("41.06,-74.14")

        assert parsed.input_type is LocationInputType.COORDINATES
        assert parsed.latitude == 41.06
        assert parsed.longitude == -74.14

    def test_coordinates_with_space(self):
        parsed = parse_location_input("41.06, -74.14")
        assert parsed.input_type is LocationInputType.COORDINATES

    @pytest.mark.parametrize("value", ["07446", "07446-1234"])
    def test_zip_code(self, value):
        parsed = parse_location_input(value)

        assert parsed.input_type is LocationInputType.ZIP_CODE
        assert parsed.zip_code == value

    def test_city_state(self):
        parsed = parse_location_input("Ramsey, nj")

        assert parsed.input_type is LocationInputType.CITY_STATE
        assert parsed.city == "Ramsey"
        assert parsed.state == "NJ"
        assert parsed.geocoding_query == "Ramsey, NJ, USA"

    def test_address(self):
        parsed = parse_location_input("  1600 Pennsylvania Ave NW Washington  ")

        assert parsed.input_type is LocationInputType.ADDRESS
        assert parsed.geocoding_query == "1600 Pennsylvania Ave NW Washington"

    @pytest.mark.parametrize("value", ["", "   ", None])
    def test_empty_input_rejected(self, value):
        with pytest.raises(ValueError):
            parse_location_input(value)


class TestValidateCoordinates:
    """Tests for validate_coordinates()."""

    def test_valid(self):
        assert validate_coordinates(41.06, -74.14) == (41.06, -74.14)

    def test_accepts_numeric_strings(self):
        assert validate_coordinates("41.06", "-74.14") == (41.06, -74.14)

    def test_latitude_out_of_range(self):
        with pytest.raises(ValueError, match="latitude"):
            validate_coordinates(91, 0)

    def test_longitude_out_of_range(self):
        with pytest.raises(ValueError, match="longitude"):
            validate_coordinates(0, -181)

    def test_nan_rejected(self):
        with pytest.raises(ValueError):
            validate_coordinates(math.nan, 0)

    def test_non_numeric_rejected(self):
        with pytest.raises(ValueError):
            validate_coordinates("north", 0)


class TestFormatDisplayName:
    """Tests for format_display_name()."""

    def test_drops_country_and_keeps_three_parts(self):
        name = "Ramsey, Bergen County, New Jersey, 07446, United States"
        assert format_display_name(name) == "Ramsey, Bergen County, New Jersey"

    def test_custom_part_count(self):
        name = "07446, Ramsey, Bergen County, New Jersey, USA"
        assert format_display_name(name, max_parts=2) == "07446, Ramsey"


class TestSavedLocations:
    """Tests for saved location helpers."""

    def test_key_folds_case(self):
        assert saved_location_key("U1", " Home ") == saved_location_key("U1", "HOME") == "U1/home"

    def test_location_property(self):
        saved = SavedLocation("U1", "home", 41.06, -74.14, "Ramsey, NJ", "2024-06-10T12:00:00+00:00")

        location = saved.location
        assert (location.latitude, location.longitude) == (41.06, -74.14)
        assert location.formatted_address == "Ramsey, NJ"

    def test_coordinates_location_label(self):
        location = coordinates_location(41.06, -74.14)
        assert location.formatted_address == "41.06, -74.14"
        assert location.zip_code is None
