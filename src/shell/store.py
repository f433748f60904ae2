"""Key-Value Store - Imperative Shell.

This module hides the persistence technology behind a small interface:
named collections of JSON-serializable documents addressed by string
keys. Three backends are provided:

- MemoryStore: process-local, used in tests
- JsonFileStore: one JSON file per collection under a data directory
- FirestoreStore: one Firestore collection per collection name

Every backend raises PersistenceError when the underlying store fails.
"""

import hashlib
import json
import logging
import os
import threading
from copy import deepcopy
from pathlib import Path
from typing import Any, Iterator

from google.cloud import firestore

from src.core.errors import PersistenceError


logger = logging.getLogger(__name__)


# Collection names shared by every backend
SUBSCRIPTIONS = "subscriptions"
PROCESSED_ALERTS = "processed_alerts"
FORECAST_CACHE = "forecast_cache"
SAVED_LOCATIONS = "saved_locations"
METADATA = "metadata"


class KeyValueStore:
    """Interface for durable collection storage."""

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def put(self, collection: str, key: str, value: dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, collection: str, key: str) -> None:
        raise NotImplementedError

    def scan(self, collection: str) -> Iterator[tuple[str, dict[str, Any]]]:
        raise NotImplementedError

    def delete_many(self, collection: str, keys: list[str]) -> None:
        for key in keys:
            self.delete(collection, key)


class MemoryStore(KeyValueStore):
    """In-process store. Values are copied in and out."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        with self._lock:
            value = self._data.get(collection, {}).get(key)
            return deepcopy(value) if value is not None else None

    def put(self, collection: str, key: str, value: dict[str, Any]) -> None:
        with self._lock:
            self._data.setdefault(collection, {})[key] = deepcopy(value)

    def delete(self, collection: str, key: str) -> None:
        with self._lock:
            self._data.get(collection, {}).pop(key, None)

    def scan(self, collection: str) -> Iterator[tuple[str, dict[str, Any]]]:
        with self._lock:
            items = deepcopy(list(self._data.get(collection, {}).items()))
        return iter(items)


class JsonFileStore(KeyValueStore):
    """Store backed by one JSON file per collection.

    File layout: {data_dir}/{collection}.json containing an object that
    maps keys to documents. Writes go to a temporary file that is then
    renamed over the original.
    """

    def __init__(self, data_dir: str | Path = "data") -> None:
        """Initialize file store.

        Args:
            data_dir: Directory holding the collection files
        """
        self.data_dir = Path(data_dir)
        self._lock = threading.RLock()

    def _path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}.json"

    def _read(self, collection: str) -> dict[str, dict[str, Any]]:
        path = self._path(collection)
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise PersistenceError(f"Failed to read {path}: {e}") from e

        if not isinstance(data, dict):
            raise PersistenceError(f"Unexpected content in {path}")
        return data

    def _write(self, collection: str, data: dict[str, dict[str, Any]]) -> None:
        path = self._path(collection)
        tmp_path = path.with_suffix(".json.tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(f"Failed to write {path}: {e}") from e

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        with self._lock:
            return self._read(collection).get(key)

    def put(self, collection: str, key: str, value: dict[str, Any]) -> None:
        with self._lock:
            data = self._read(collection)
            data[key] = value
            self._write(collection, data)

    def delete(self, collection: str, key: str) -> None:
        self.delete_many(collection, [key])

    def delete_many(self, collection: str, keys: list[str]) -> None:
        with self._lock:
            data = self._read(collection)
            removed = [k for k in keys if data.pop(k, None) is not None]
            if removed:
                self._write(collection, data)

    def scan(self, collection: str) -> Iterator[tuple[str, dict[str, Any]]]:
        with self._lock:
            return iter(list(self._read(collection).items()))


class FirestoreStore(KeyValueStore):
    """Store backed by Google Cloud Firestore.

    Keys such as alert IDs contain '/' which Firestore forbids in
    document IDs, so each document ID is the SHA-1 of the key and the
    key itself is kept in the document:

    {
        "key": "<original key>",
        "value": {...}
    }
    """

    def __init__(
        self,
        project_id: str | None = None,
        database: str | None = None,
        collection_prefix: str = "weather_alerts",
    ) -> None:
        """Initialize Firestore store.

        Args:
            project_id: GCP project ID (None for default)
            database: Firestore database name (None for default database)
            collection_prefix: Prefix prepended to each collection name
        """
        self.project_id = project_id
        self.database = database
        self.collection_prefix = collection_prefix
        self._client: firestore.Client | None = None

    @property
    def client(self) -> firestore.Client:
        """Lazy initialization of Firestore client."""
        if self._client is None:
            kwargs = {}
            if self.project_id:
                kwargs["project"] = self.project_id
            if self.database:
                kwargs["database"] = self.database
            self._client = firestore.Client(**kwargs)
        return self._client

    def _collection(self, collection: str) -> Any:
        name = f"{self.collection_prefix}_{collection}" if self.collection_prefix else collection
        return self.client.collection(name)

    @staticmethod
    def document_id(key: str) -> str:
        return hashlib.sha1(key.encode("utf-8")).hexdigest()

    def get(self, collection: str, key: str) -> dict[str, Any] | None:
        try:
            doc = self._collection(collection).document(self.document_id(key)).get()
        except Exception as e:
            raise PersistenceError(f"Firestore read failed for {collection}: {e}") from e

        if not doc.exists:
            return None
        return doc.to_dict().get("value")

    def put(self, collection: str, key: str, value: dict[str, Any]) -> None:
        try:
            self._collection(collection).document(self.document_id(key)).set(
                {"key": key, "value": value}
            )
        except Exception as e:
            raise PersistenceError(f"Firestore write failed for {collection}: {e}") from e

    def delete(self, collection: str, key: str) -> None:
        try:
            self._collection(collection).document(self.document_id(key)).delete()
        except Exception as e:
            raise PersistenceError(f"Firestore delete failed for {collection}: {e}") from e

    def delete_many(self, collection: str, keys: list[str]) -> None:
        if not keys:
            return
        try:
            ref = self._collection(collection)
            # Firestore caps a batch at 500 writes
            for start in range(0, len(keys), 500):
                batch = self.client.batch()
                for key in keys[start:start + 500]:
                    batch.delete(ref.document(self.document_id(key)))
                batch.commit()
        except Exception as e:
            raise PersistenceError(f"Firestore batch delete failed for {collection}: {e}") from e

    def scan(self, collection: str) -> Iterator[tuple[str, dict[str, Any]]]:
        try:
            docs = list(self._collection(collection).stream())
        except Exception as e:
            raise PersistenceError(f"Firestore scan failed for {collection}: {e}") from e

        items = []
        for doc in docs:
            data = doc.to_dict() or {}
            if "key" in data:
                items.append((data["key"], data.get("value", {})))
        return iter(items)


def create_store(
    backend: str,
    data_dir: str = "data",
    firestore_database: str | None = None,
    firestore_collection_prefix: str = "weather_alerts",
) -> KeyValueStore:
    """Build the configured store backend."""
    if backend == "memory":
        return MemoryStore()
    if backend == "firestore":
        return FirestoreStore(
            database=firestore_database,
            collection_prefix=firestore_collection_prefix,
        )
    if backend == "file":
        return JsonFileStore(data_dir)
    raise ValueError(f"Unknown storage backend: {backend}")
