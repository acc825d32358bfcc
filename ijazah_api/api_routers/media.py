"""Public access to uploaded media files.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse

from .. import media_service
from ..api_utils import get_store
from ..store import JsonStore

router = APIRouter(tags=["Media"])
logger = logging.getLogger(__name__)


@router.get("/media/{folder}/{filename}", operation_id="get_media_file")
async def get_media_file(folder: str, filename: str, store: JsonStore = Depends(get_store)):
    """Serve a library file or certificate asset by the URL it was given on upload."""
    path, record = media_service.resolve_media_file(store, folder, filename)
    logger.debug(f"Serving media file: {folder}/{filename}")
    return FileResponse(path=path, media_type=record["content_type"])
