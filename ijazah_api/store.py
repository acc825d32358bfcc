"""JSON file store for platform records.

Records are stored one JSON file per record under:

    {DATA_DIR}/{collection}/{record_id}.json

Every record carries ``id``, ``created_at``, ``updated_at`` and a
``version`` counter used for optimistic concurrency on updates.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import json
import logging
import os
import threading
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from .exceptions import ConcurrencyError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

COLLECTIONS = (
    "profiles",
    "scholars",
    "scholar_applications",
    "ijazah_applications",
    "ijazah_certificates",
    "verification_logs",
    "notifications",
    "notification_preferences",
    "app_settings",
    "narration_types",
    "media_files",
)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO timestamp written by the store (None-safe)."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class JsonStore:
    """Thread-safe record store backed by one JSON file per record."""

    def __init__(self, base_dir: Path):
        """Initialize the store.

        Args:
            base_dir: Root directory holding one sub-directory per collection
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()
        self._last_timestamp: Optional[datetime] = None
        logger.info(f"JsonStore initialized at {self.base_dir}")

    # ------------------------------------------------------------------
    # Paths and raw IO
    # ------------------------------------------------------------------

    def _collection_dir(self, collection: str) -> Path:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return self.base_dir / collection

    def _record_path(self, collection: str, record_id: str) -> Path:
        # Record ids become file names, so reject anything path-like
        if not record_id or "/" in record_id or "\\" in record_id or record_id.startswith("."):
            raise NotFoundError(f"Invalid record id: {record_id!r}")
        return self._collection_dir(collection) / f"{record_id}.json"

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            with path.open("r", encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            return None
        except json.JSONDecodeError as e:
            logger.warning("Skipping corrupt record file %s: %s", path, e)
            return None

    def _write(self, path: Path, record: Dict[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(record, f, indent=2, ensure_ascii=False)
        os.replace(tmp_path, path)

    def _timestamp(self) -> str:
        """Return a strictly increasing ISO timestamp so ordering is stable."""
        now = utc_now()
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(microseconds=1)
        self._last_timestamp = now
        return now.isoformat()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Load a record by id, or None when it does not exist."""
        try:
            path = self._record_path(collection, record_id)
        except NotFoundError:
            return None
        with self._lock:
            return self._read(path)

    def require(self, collection: str, record_id: str, label: Optional[str] = None) -> Dict[str, Any]:
        """Load a record by id or raise NotFoundError."""
        record = self.get(collection, record_id)
        if record is None:
            raise NotFoundError(f"{label or collection} '{record_id}' not found")
        return record

    def list(
        self,
        collection: str,
        predicate: Optional[Callable[[Dict[str, Any]], bool]] = None,
        **filters: Any,
    ) -> List[Dict[str, Any]]:
        """List records matching equality filters and an optional predicate.

        Args:
            collection: Collection name
            predicate: Optional callable applied after the equality filters
            **filters: Field/value pairs that must match exactly

        Returns:
            Matching records, newest first
        """
        collection_dir = self._collection_dir(collection)
        if not collection_dir.exists():
            return []

        results: List[Dict[str, Any]] = []
        with self._lock:
            for file_path in collection_dir.glob("*.json"):
                record = self._read(file_path)
                if record is None:
                    continue
                if any(record.get(key) != value for key, value in filters.items()):
                    continue
                if predicate is not None and not predicate(record):
                    continue
                results.append(record)

        results.sort(key=lambda r: r.get("created_at", ""), reverse=True)
        return results

    def find_one(self, collection: str, **filters: Any) -> Optional[Dict[str, Any]]:
        """Return the newest record matching the filters, if any."""
        matches = self.list(collection, **filters)
        return matches[0] if matches else None

    def count(self, collection: str, **filters: Any) -> int:
        return len(self.list(collection, **filters))

    def insert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert a new record, assigning id, timestamps and version."""
        with self._lock:
            data = dict(record)
            data.setdefault("id", str(uuid.uuid4()))
            path = self._record_path(collection, data["id"])
            if path.exists():
                raise ConflictError(f"{collection} record '{data['id']}' already exists")

            now = self._timestamp()
            data.setdefault("created_at", now)
            data["updated_at"] = now
            data["version"] = 1
            self._write(path, data)

        logger.debug("Inserted %s/%s", collection, data["id"])
        return data

    def update(
        self,
        collection: str,
        record_id: str,
        changes: Dict[str, Any],
        expected_version: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Merge changes into an existing record.

        Args:
            collection: Collection name
            record_id: Record identifier
            changes: Fields to overwrite
            expected_version: When given, the update only applies if the
                stored version still matches

        Returns:
            The updated record

        Raises:
            NotFoundError: If the record does not exist
            ConcurrencyError: If ``expected_version`` is stale
        """
        with self._lock:
            path = self._record_path(collection, record_id)
            current = self._read(path)
            if current is None:
                raise NotFoundError(f"{collection} '{record_id}' not found")

            current_version = current.get("version", 1)
            if expected_version is not None and expected_version != current_version:
                raise ConcurrencyError(
                    f"{collection} '{record_id}' is at version {current_version}, "
                    f"expected {expected_version}"
                )

            protected = {"id", "created_at", "version"}
            current.update({k: v for k, v in changes.items() if k not in protected})
            current["version"] = current_version + 1
            current["updated_at"] = self._timestamp()
            self._write(path, current)

        return current

    def upsert(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """Insert the record, or merge it into the existing one with the same id."""
        with self._lock:
            if "id" in record and self.get(collection, record["id"]) is not None:
                return self.update(collection, record["id"], record)
            return self.insert(collection, record)

    def delete(self, collection: str, record_id: str) -> bool:
        """Delete a record. Returns True when a file was removed."""
        with self._lock:
            try:
                path = self._record_path(collection, record_id)
            except NotFoundError:
                return False
            if not path.exists():
                return False
            path.unlink()
        logger.debug("Deleted %s/%s", collection, record_id)
        return True
