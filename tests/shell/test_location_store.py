"""Tests for the saved-location store."""

from datetime import datetime, timedelta, timezone

import pytest

from src.core.location import ResolvedLocation
from src.shell.location_store import SavedLocationStore
from src.shell.store import MemoryStore


RAMSEY = ResolvedLocation(41.06, -74.14, "Ramsey, Bergen County, New Jersey")
HOBOKEN = ResolvedLocation(40.74, -74.03, "Hoboken, Hudson County, New Jersey")


class Clock:
    def __init__(self):
        self.now = datetime(2024, 6, 10, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        self.now += timedelta(minutes=1)
        return self.now


@pytest.fixture
def locations():
    return SavedLocationStore(MemoryStore(), clock=Clock())


class TestSavedLocationStore:
    """Tests for SavedLocationStore."""

    def test_save_and_find(self, locations):
        saved = locations.save("U1", "Home", RAMSEY)

        found = locations.find("U1", "Home")
        assert found == saved
        assert found.nickname == "Home"
        assert (found.latitude, found.longitude) == (41.06, -74.14)

    def test_find_ignores_case(self, locations):
        locations.save("U1", "Home", RAMSEY)
        assert locations.find("U1", "HOME") is not None

    def test_resave_overwrites(self, locations):
        """Saving a nickname again in any case replaces the old entry."""
        locations.save("U1", "Home", RAMSEY)
        locations.save("U1", "home", HOBOKEN)

        assert [loc.latitude for loc in locations.list_for_user("U1")] == [40.74]

    def test_users_are_isolated(self, locations):
        locations.save("U1", "Home", RAMSEY)

        assert locations.find("U2", "Home") is None
        assert locations.list_for_user("U2") == []

    def test_list_oldest_first(self, locations):
        locations.save("U1", "Work", HOBOKEN)
        locations.save("U1", "Home", RAMSEY)

        assert [loc.nickname for loc in locations.list_for_user("U1")] == ["Work", "Home"]

    def test_remove(self, locations):
        locations.save("U1", "Home", RAMSEY)

        assert locations.remove("U1", "home") is True
        assert locations.find("U1", "Home") is None
        assert locations.remove("U1", "Home") is False

    def test_blank_nickname_rejected(self, locations):
        with pytest.raises(ValueError):
            locations.save("U1", "  ", RAMSEY)

    def test_find_blank_nickname(self, locations):
        assert locations.find("U1", "") is None
