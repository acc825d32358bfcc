"""API routers for modular endpoint organization.

This package contains FastAPI routers for the API server organized by functionality.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

from .health import router as health_router
from .auth import router as auth_router
from .profile import router as profile_router
from .applications import router as applications_router
from .scholar import router as scholar_router
from .certificates import router as certificates_router
from .notifications import router as notifications_router
from .settings import router as settings_router
from .media import router as media_router
from .admin import router as admin_router

__all__ = [
    "health_router",
    "auth_router",
    "profile_router",
    "applications_router",
    "scholar_router",
    "certificates_router",
    "notifications_router",
    "settings_router",
    "media_router",
    "admin_router",
]
