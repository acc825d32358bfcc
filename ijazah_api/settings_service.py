"""App settings and narration types.

The platform keeps a single ``app_settings`` record (id ``default``) seeded
from the platform YAML, and a flat list of narration types grouped by
their parent reading.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict, List, Optional

from .exceptions import ConflictError, NotFoundError, ValidationFailedError
from .store import JsonStore

logger = logging.getLogger(__name__)

SETTINGS_ID = "default"
SETTINGS_TYPES = (str, bool, int, float, type(None))


# Settings

def seed_settings(store: JsonStore, defaults: Dict[str, Any]) -> Dict[str, Any]:
    """Create the settings record from the seed defaults when it is missing.

    Keys added to the seed file later are filled in; values already stored
    are never overwritten.
    """
    current = store.get("app_settings", SETTINGS_ID)
    if current is None:
        record = dict(defaults)
        record["id"] = SETTINGS_ID
        logger.info("Seeding app settings with %d keys", len(defaults))
        return store.insert("app_settings", record)

    missing = {k: v for k, v in defaults.items() if k not in current}
    if missing:
        logger.info(f"Adding new settings keys: {', '.join(sorted(missing))}")
        return store.update("app_settings", SETTINGS_ID, missing)
    return current


def get_settings(store: JsonStore) -> Dict[str, Any]:
    settings = store.get("app_settings", SETTINGS_ID)
    if settings is None:
        raise NotFoundError("App settings have not been initialized")
    return settings


def get_setting(store: JsonStore, key: str, default: Any = None) -> Any:
    settings = store.get("app_settings", SETTINGS_ID) or {}
    value = settings.get(key)
    return default if value in (None, "") else value


def update_settings(store: JsonStore, changes: Dict[str, Any], actor_id: str) -> Dict[str, Any]:
    """Apply a partial settings update.

    Args:
        store: Record store
        changes: Keys to overwrite; values must be scalars
        actor_id: Admin performing the update

    Returns:
        The updated settings record
    """
    if not changes:
        raise ValidationFailedError("No settings to update")
    reserved = {"id", "created_at", "updated_at", "version"} & set(changes)
    if reserved:
        raise ValidationFailedError(f"Reserved keys cannot be updated: {', '.join(sorted(reserved))}")
    bad = [k for k, v in changes.items() if not isinstance(v, SETTINGS_TYPES)]
    if bad:
        raise ValidationFailedError(f"Settings values must be scalars: {', '.join(sorted(bad))}")

    get_settings(store)
    updated = store.update("app_settings", SETTINGS_ID, dict(changes, updated_by=actor_id))
    logger.info(f"Settings updated by {actor_id}", extra={"keys": sorted(changes)})
    return updated


# Narration types

def list_narration_types(store: JsonStore, include_inactive: bool = False) -> List[Dict[str, Any]]:
    """Narration types ordered by display_order."""
    if include_inactive:
        items = store.list("narration_types")
    else:
        items = store.list("narration_types", is_active=True)
    return sorted(items, key=lambda n: (n.get("display_order", 0), n.get("name", "")))


def group_by_reading(narrations: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Group narration types under their parent reading, keeping order."""
    groups: Dict[str, List[Dict[str, Any]]] = {}
    for item in narrations:
        groups.setdefault(item.get("parent_reading") or "", []).append(item)
    return [{"reading": reading, "narrators": items} for reading, items in groups.items()]


def canonical_narrations(hierarchy: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Expand the reading hierarchy into narration type records."""
    records = []
    for reading_index, item in enumerate(hierarchy):
        for narrator_index, name in enumerate(item["narrators"]):
            records.append({
                "name": name,
                "parent_reading": item["reading"],
                "description": None,
                "is_active": True,
                "display_order": reading_index * 10 + narrator_index,
            })
    return records


def seed_narration_types(store: JsonStore, hierarchy: List[Dict[str, Any]]) -> int:
    """Insert the canonical hierarchy when no narration types exist yet."""
    if store.count("narration_types"):
        return 0
    records = canonical_narrations(hierarchy)
    for record in records:
        store.insert("narration_types", record)
    logger.info(f"Seeded {len(records)} narration types")
    return len(records)


def reset_narration_types(store: JsonStore, hierarchy: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Delete every narration type and recreate the canonical hierarchy."""
    for item in store.list("narration_types"):
        store.delete("narration_types", item["id"])
    for record in canonical_narrations(hierarchy):
        store.insert("narration_types", record)
    logger.info("Narration types reset to the canonical hierarchy")
    return list_narration_types(store)


def add_narration_type(
    store: JsonStore,
    name: str,
    parent_reading: str,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    name = (name or "").strip()
    parent_reading = (parent_reading or "").strip()
    if not name or not parent_reading:
        raise ValidationFailedError("Narrator name and parent reading are required")

    existing = store.list("narration_types")
    if any(n.get("name") == name and n.get("parent_reading") == parent_reading for n in existing):
        raise ConflictError(f"Narration '{name}' already exists under '{parent_reading}'")

    siblings = [n.get("display_order", 0) for n in existing if n.get("parent_reading") == parent_reading]
    if siblings:
        display_order = max(siblings) + 1
    else:
        display_order = (max((n.get("display_order", 0) for n in existing), default=-10) // 10 + 1) * 10

    created = store.insert("narration_types", {
        "name": name,
        "parent_reading": parent_reading,
        "description": description,
        "is_active": True,
        "display_order": display_order,
    })
    logger.info(f"Added narration type {name} ({parent_reading})")
    return created


def update_narration_type(store: JsonStore, narration_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
    store.require("narration_types", narration_id, "Narration type")
    allowed = {k: v for k, v in changes.items() if k in ("name", "parent_reading", "description")}
    for key in ("name", "parent_reading"):
        if key in allowed and not (allowed[key] or "").strip():
            raise ValidationFailedError(f"{key} cannot be empty")
    return store.update("narration_types", narration_id, allowed)


def toggle_narration_type(store: JsonStore, narration_id: str) -> Dict[str, Any]:
    narration = store.require("narration_types", narration_id, "Narration type")
    return store.update("narration_types", narration_id, {"is_active": not narration.get("is_active", True)})


def delete_narration_type(store: JsonStore, narration_id: str) -> None:
    if not store.delete("narration_types", narration_id):
        raise NotFoundError(f"Narration type '{narration_id}' not found")
    logger.info(f"Deleted narration type {narration_id}")
