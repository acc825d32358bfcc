"""Health check and status endpoints.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import os
import shutil
from datetime import datetime
from pathlib import Path
from typing import Dict, Any
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from .. import __version__
from ..api_utils import services
from ..platform_config import get_platform_config_path

router = APIRouter(tags=["Health"])


def check_disk_space(path: str = ".") -> Dict[str, Any]:
    """Check available disk space."""
    try:
        stat = shutil.disk_usage(path)
        total_gb = stat.total / (1024**3)
        used_gb = stat.used / (1024**3)
        free_gb = stat.free / (1024**3)
        percent_used = (stat.used / stat.total) * 100

        return {
            "status": "healthy" if percent_used < 90 else "warning",
            "total_gb": round(total_gb, 2),
            "used_gb": round(used_gb, 2),
            "free_gb": round(free_gb, 2),
            "percent_used": round(percent_used, 2)
        }
    except OSError as e:
        return {"status": "error", "error": str(e)}


def check_data_directory() -> Dict[str, Any]:
    """Check that the record store directory exists and is writable."""
    store = services.get("store")
    if store is None:
        return {"status": "unhealthy", "error": "Record store not initialized"}

    data_dir = Path(store.base_dir)
    writable = data_dir.exists() and os.access(data_dir, os.W_OK)
    return {
        "status": "healthy" if writable else "unhealthy",
        "data_dir_exists": data_dir.exists(),
        "data_dir_writable": writable,
        "data_dir_path": str(data_dir),
    }


def check_platform_config() -> Dict[str, Any]:
    """Check that the platform seed configuration was loaded."""
    platform = services.get("platform_config")
    config_path = get_platform_config_path()
    if not platform:
        return {"status": "unhealthy", "config_path": str(config_path), "loaded": False}
    return {
        "status": "healthy",
        "config_path": str(config_path),
        "loaded": True,
        "narration_readings": len(platform.get("narrations", [])),
    }


@router.get("/", operation_id="root")
async def root():
    """Root endpoint - API health check."""
    if "store" not in services:
        return JSONResponse(
            status_code=503,
            content={"error": "Service not initialized", "detail": "Record store not configured"}
        )
    return {
        "message": "Ijazah Platform API",
        "version": __version__,
        "status": "operational",
    }


@router.get("/health", operation_id="health_check")
async def health_check():
    """Enhanced health check endpoint with dependency verification.

    Returns detailed health status including:
    - Record store directory
    - Platform seed configuration
    - Disk space availability
    - Overall system health
    """
    store = services.get("store")
    checks = {
        "data_store": check_data_directory(),
        "platform_config": check_platform_config(),
        "disk_space": check_disk_space(str(store.base_dir) if store else "."),
    }

    # Disk space warnings do not make the service unhealthy
    all_healthy = all(
        check.get("status") in ("healthy", "warning") if name == "disk_space" else check.get("status") == "healthy"
        for name, check in checks.items()
    )

    overall_status = "healthy" if all_healthy else "degraded"
    status_code = 200 if all_healthy else 503

    response = {
        "status": overall_status,
        "timestamp": datetime.now().isoformat(),
        "checks": checks
    }

    return JSONResponse(
        status_code=status_code,
        content=response
    )
