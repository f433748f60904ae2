"""Saved-Location Store - Imperative Shell.

Persists each user's named locations. The storage key folds the
nickname to lower case, so lookups ignore case and re-saving a
nickname replaces the previous entry.
"""

import logging
from datetime import datetime
from typing import Callable

from src.core.location import ResolvedLocation, SavedLocation, saved_location_key
from src.shell.clock import utc_now
from src.shell.store import SAVED_LOCATIONS, KeyValueStore


logger = logging.getLogger(__name__)


class SavedLocationStore:
    """Per-user nickname -> location mapping."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.store = store
        self.clock = clock

    def save(self, user_id: str, nickname: str, location: ResolvedLocation) -> SavedLocation:
        """Save (or overwrite) a named location for a user.

        Raises:
            ValueError: If the nickname is blank
        """
        nickname = nickname.strip()
        if not nickname:
            raise ValueError("Nickname is required")

        saved = SavedLocation(
            user_id=user_id,
            nickname=nickname,
            latitude=location.latitude,
            longitude=location.longitude,
            formatted_address=location.formatted_address,
            saved_at=self.clock().isoformat(),
        )
        self.store.put(SAVED_LOCATIONS, saved_location_key(user_id, nickname), saved.to_dict())
        logger.info("Saved location '%s' for user %s", nickname, user_id)
        return saved

    def find(self, user_id: str, nickname: str) -> SavedLocation | None:
        """Look up a saved location by nickname, ignoring case."""
        if not nickname or not nickname.strip():
            return None
        value = self.store.get(SAVED_LOCATIONS, saved_location_key(user_id, nickname))
        return SavedLocation.from_dict(value) if value else None

    def list_for_user(self, user_id: str) -> list[SavedLocation]:
        """All of a user's saved locations, oldest first."""
        prefix = f"{user_id}/"
        locations = [
            SavedLocation.from_dict(value)
            for key, value in self.store.scan(SAVED_LOCATIONS)
            if key.startswith(prefix)
        ]
        return sorted(locations, key=lambda loc: loc.saved_at)

    def remove(self, user_id: str, nickname: str) -> bool:
        """Delete a saved location. Returns False if it didn't exist."""
        if self.find(user_id, nickname) is None:
            return False
        self.store.delete(SAVED_LOCATIONS, saved_location_key(user_id, nickname))
        logger.info("Removed location '%s' for user %s", nickname, user_id)
        return True
