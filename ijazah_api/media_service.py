"""Media library and certificate asset uploads.

Uploaded files are written under ``{DATA_DIR}/media/{folder}/`` and each
one is described by a ``media_files`` record. The ``library`` folder is
the admin media library; the ``settings`` folder holds the signature,
background and font files referenced from the settings record.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional, Set, Tuple

from werkzeug.utils import secure_filename

from . import settings_service
from .config import config
from .exceptions import NotFoundError, ValidationFailedError
from .store import JsonStore

logger = logging.getLogger(__name__)

LIBRARY = "library"
SETTINGS = "settings"
FOLDERS = (LIBRARY, SETTINGS)

IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp", "svg"}
FONT_EXTENSIONS = {"ttf", "otf", "woff", "woff2"}
DOCUMENT_EXTENSIONS = {"pdf"}
LIBRARY_EXTENSIONS = IMAGE_EXTENSIONS | FONT_EXTENSIONS | DOCUMENT_EXTENSIONS

# Settings key -> (stored file prefix, accepted extensions)
SETTINGS_ASSETS: Dict[str, Tuple[str, Set[str]]] = {
    "signature_image_url": ("signature", IMAGE_EXTENSIONS),
    "second_signature_image_url": ("second_signature", IMAGE_EXTENSIONS),
    "background_image_url": ("background", IMAGE_EXTENSIONS),
    "custom_font_file_url": ("font", FONT_EXTENSIONS),
}


def media_dir(store: JsonStore, folder: str) -> Path:
    return store.base_dir / "media" / folder


def media_url(folder: str, filename: str) -> str:
    return f"{config.MEDIA_BASE_URL}/{folder}/{filename}"


def file_extension(filename: Optional[str]) -> str:
    if not filename or "." not in filename:
        return ""
    return filename.rsplit(".", 1)[1].lower()


def _check_upload(filename: Optional[str], content: bytes, allowed: Set[str]) -> str:
    """Validate an upload and return its lower-case extension."""
    if not content:
        raise ValidationFailedError("Uploaded file is empty")
    if len(content) > config.MEDIA_MAX_BYTES:
        raise ValidationFailedError(
            f"File is larger than the {config.MEDIA_MAX_BYTES} byte upload limit"
        )
    extension = file_extension(filename)
    if extension not in allowed:
        raise ValidationFailedError(
            f"File type '.{extension}' is not allowed (accepted: {', '.join(sorted(allowed))})"
        )
    return extension


def _save(
    store: JsonStore,
    folder: str,
    stored_name: str,
    original_name: Optional[str],
    content: bytes,
    content_type: Optional[str],
    actor_id: str,
    setting_key: Optional[str] = None,
) -> Dict[str, Any]:
    directory = media_dir(store, folder)
    directory.mkdir(parents=True, exist_ok=True)
    (directory / stored_name).write_bytes(content)

    record = store.insert("media_files", {
        "folder": folder,
        "filename": stored_name,
        "original_name": original_name,
        "content_type": content_type or "application/octet-stream",
        "size": len(content),
        "url": media_url(folder, stored_name),
        "setting_key": setting_key,
        "uploaded_by": actor_id,
    })
    logger.info(f"Stored {folder}/{stored_name} ({len(content)} bytes) for {actor_id}")
    return record


def upload_library_file(
    store: JsonStore,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str],
    actor_id: str,
) -> Dict[str, Any]:
    """Add a file to the media library.

    The stored name keeps a sanitized form of the original name behind a
    unique prefix, so uploading the same file twice keeps both copies.
    """
    extension = _check_upload(filename, content, LIBRARY_EXTENSIONS)
    safe_name = secure_filename(filename or "")
    # Names made only of non-ASCII characters sanitize to nothing useful
    if not safe_name.lower().endswith(f".{extension}"):
        safe_name = f"file.{extension}"
    stored_name = f"{uuid.uuid4().hex[:12]}_{safe_name}"
    return _save(store, LIBRARY, stored_name, filename, content, content_type, actor_id)


def upload_settings_asset(
    store: JsonStore,
    setting_key: str,
    filename: Optional[str],
    content: bytes,
    content_type: Optional[str],
    actor_id: str,
) -> Dict[str, Any]:
    """Store a certificate asset and point its settings key at the new URL.

    Returns:
        ``{"setting_key", "url", "media_file", "settings"}``
    """
    if setting_key not in SETTINGS_ASSETS:
        raise ValidationFailedError(
            f"Unknown settings asset '{setting_key}' (expected one of: {', '.join(SETTINGS_ASSETS)})"
        )
    prefix, allowed = SETTINGS_ASSETS[setting_key]
    extension = _check_upload(filename, content, allowed)
    stored_name = f"{prefix}_{uuid.uuid4().hex[:12]}.{extension}"

    record = _save(
        store, SETTINGS, stored_name, filename, content, content_type, actor_id,
        setting_key=setting_key,
    )
    settings = settings_service.update_settings(store, {setting_key: record["url"]}, actor_id)
    return {
        "setting_key": setting_key,
        "url": record["url"],
        "media_file": record,
        "settings": settings,
    }


def list_media(store: JsonStore, folder: Optional[str] = None) -> List[Dict[str, Any]]:
    """Media records, newest first, optionally limited to one folder."""
    if folder is not None and folder not in FOLDERS:
        raise ValidationFailedError(f"Unknown media folder: {folder!r}")
    filters = {"folder": folder} if folder else {}
    return store.list("media_files", **filters)


def delete_media(store: JsonStore, media_id: str, actor_id: str) -> Dict[str, Any]:
    """Delete a media file and its record.

    A settings key that still points at the deleted file is cleared.

    Returns:
        The deleted record
    """
    record = store.require("media_files", media_id, "Media file")
    path = media_dir(store, record["folder"]) / record["filename"]
    path.unlink(missing_ok=True)
    store.delete("media_files", media_id)

    key = record.get("setting_key")
    if key and settings_service.get_setting(store, key) == record["url"]:
        settings_service.update_settings(store, {key: ""}, actor_id)
        logger.info(f"Cleared setting {key} after deleting its file")
    logger.info(f"Deleted media file {record['folder']}/{record['filename']}")
    return record


def resolve_media_file(store: JsonStore, folder: str, filename: str) -> Tuple[Path, Dict[str, Any]]:
    """Find a stored file by its public folder and name.

    Only names that have a ``media_files`` record are served.

    Raises:
        NotFoundError: If the file is unknown or missing on disk
    """
    if folder not in FOLDERS or "/" in filename or "\\" in filename:
        raise NotFoundError("Media file not found")
    record = store.find_one("media_files", folder=folder, filename=filename)
    path = media_dir(store, folder) / filename
    if record is None or not path.is_file():
        raise NotFoundError("Media file not found")
    return path, record
