"""Location input parsing and saved locations - Pure functions.

This module classifies free-form location input (coordinates, ZIP code,
"City, ST", or address) and holds the saved-location model. Geocoding
itself is I/O and lives in the shell (geocoder).
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any


_COORDINATES_PATTERN = re.compile(r"^(-?\d+\.?\d*),\s*(-?\d+\.?\d*)$")
_ZIP_CODE_PATTERN = re.compile(r"^\d{5}(-\d{4})?$")
_CITY_STATE_PATTERN = re.compile(r"^(.+),\s*([A-Z]{2})$", re.IGNORECASE)


class LocationInputType(str, Enum):
    COORDINATES = "coordinates"
    ZIP_CODE = "zipcode"
    CITY_STATE = "citystate"
    ADDRESS = "address"


@dataclass(frozen=True)
class ParsedLocationInput:
    """Classified location input.

    Only the fields relevant to input_type are set.
    """
    input_type: LocationInputType
    latitude: float | None = None
    longitude: float | None = None
    zip_code: str | None = None
    city: str | None = None
    state: str | None = None
    address: str | None = None

    @property
    def geocoding_query(self) -> str | None:
        """Free-text query to hand to address geocoding."""
        if self.input_type is LocationInputType.CITY_STATE:
            return f"{self.city}, {self.state}, USA"
        if self.input_type is LocationInputType.ADDRESS:
            return self.address
        return None


@dataclass(frozen=True)
class ResolvedLocation:
    """A location resolved to coordinates.

    Attributes:
        latitude: Latitude in degrees
        longitude: Longitude in degrees
        formatted_address: Short human-readable address
        display_name: Full name from the geocoder
        zip_code: ZIP code, when resolved from one
    """
    latitude: float
    longitude: float
    formatted_address: str
    display_name: str = ""
    zip_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "latitude": self.latitude,
            "longitude": self.longitude,
            "formatted_address": self.formatted_address,
            "display_name": self.display_name,
            "zip_code": self.zip_code,
        }


@dataclass(frozen=True)
class SavedLocation:
    """A user's named location.

    Attributes:
        user_id: Owning user
        nickname: User-chosen name (unique per user, case-insensitive)
        latitude: Resolved latitude
        longitude: Resolved longitude
        formatted_address: Short human-readable address
        saved_at: When it was saved (ISO 8601)
    """
    user_id: str
    nickname: str
    latitude: float
    longitude: float
    formatted_address: str
    saved_at: str

    @property
    def location(self) -> ResolvedLocation:
        return ResolvedLocation(
            latitude=self.latitude,
            longitude=self.longitude,
            formatted_address=self.formatted_address,
            display_name=self.formatted_address,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "nickname": self.nickname,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "formatted_address": self.formatted_address,
            "saved_at": self.saved_at,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SavedLocation":
        return cls(
            user_id=data["user_id"],
            nickname=data["nickname"],
            latitude=float(data["latitude"]),
            longitude=float(data["longitude"]),
            formatted_address=data.get("formatted_address", ""),
            saved_at=data.get("saved_at", ""),
        )


def saved_location_key(user_id: str, nickname: str) -> str:
    """Storage key for a saved location.

    Nicknames are folded to lower case so lookups are case-insensitive
    and re-saving a nickname in any case overwrites the old entry.
    """
    return f"{user_id}/{nickname.strip().lower()}"


def parse_location_input(value: str) -> ParsedLocationInput:
    """Classify free-form location input.

    Pure function.

    Args:
        value: User input such as "41.06,-74.14", "07446", "Ramsey, NJ"

    Returns:
        ParsedLocationInput describing how to resolve it

    Raises:
        ValueError: If the input is empty
    """
    if not value or not isinstance(value, str) or not value.strip():
        raise ValueError("Invalid location input")

    trimmed = value.strip()

    match = _COORDINATES_PATTERN.match(trimmed)
    if match:
        return ParsedLocationInput(
            input_type=LocationInputType.COORDINATES,
            latitude=float(match.group(1)),
            longitude=float(match.group(2)),
        )

    if _ZIP_CODE_PATTERN.match(trimmed):
        return ParsedLocationInput(
            input_type=LocationInputType.ZIP_CODE,
            zip_code=trimmed,
        )

    match = _CITY_STATE_PATTERN.match(trimmed)
    if match:
        return ParsedLocationInput(
            input_type=LocationInputType.CITY_STATE,
            city=match.group(1).strip(),
            state=match.group(2).upper(),
        )

    return ParsedLocationInput(
        input_type=LocationInputType.ADDRESS,
        address=trimmed,
    )


def validate_coordinates(latitude: float, longitude: float) -> tuple[float, float]:
    """Check that coordinates are numbers within range.

    Pure function.

    Raises:
        ValueError: If either value is out of range or not a number
    """
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError) as e:
        raise ValueError("Invalid coordinates: must be numbers") from e

    if lat != lat or lon != lon:
        raise ValueError("Invalid coordinates: must be numbers")

    if not -90 <= lat <= 90:
        raise ValueError("Invalid latitude: must be between -90 and 90")

    if not -180 <= lon <= 180:
        raise ValueError("Invalid longitude: must be between -180 and 180")

    return lat, lon


def format_display_name(display_name: str, max_parts: int = 3) -> str:
    """Shorten a geocoder display name.

    Pure function. Drops country parts and keeps the first few
    remaining parts.

    Example:
        "Ramsey, Bergen County, New Jersey, 07446, United States"
        -> "Ramsey, Bergen County, New Jersey"
    """
    parts = [p.strip() for p in display_name.split(",")]
    filtered = [
        p for p in parts
        if p and "United States" not in p and "USA" not in p
    ]
    return ", ".join(filtered[:max_parts])


def coordinates_location(latitude: float, longitude: float) -> ResolvedLocation:
    """Build a ResolvedLocation for raw coordinates (no geocoding)."""
    label = f"{latitude}, {longitude}"
    return ResolvedLocation(
        latitude=latitude,
        longitude=longitude,
        formatted_address=label,
        display_name=label,
    )
