"""FastAPI server for the ijazah certification platform.

This module provides a REST API for student ijazah applications, scholar
review, certificate issuance with QR verification, role-based dashboards
and notifications.

Created: 2026-10-12
Version: 1.0.0
License: MIT

Example:
    Run the server::

        python -m ijazah_api.run_api --port 8300

    Or use uvicorn directly::

        uvicorn ijazah_api.api:app --reload --port 8300
"""

import os
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_cache import FastAPICache
from fastapi_cache.backends.inmemory import InMemoryBackend
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from . import __version__, settings_service
from .api_routers import (
    admin_router,
    applications_router,
    auth_router,
    certificates_router,
    health_router,
    media_router,
    notifications_router,
    profile_router,
    scholar_router,
    settings_router,
)
from .api_utils import limiter, services
from .auth import find_profile_by_email, register
from .config import config
from .exceptions import IjazahError
from .logging_config import setup_logging
from .platform_config import load_platform_config
from .store import JsonStore

# Configure logging
logger = setup_logging('api')


def seed_accounts(store: JsonStore, accounts: list) -> int:
    """Create bootstrap accounts whose password variable is set.

    Existing accounts are left untouched.
    """
    created = 0
    for account in accounts:
        if find_profile_by_email(store, account["email"]):
            continue
        password = os.getenv(account["password_env"])
        if not password:
            logger.warning(
                f"Skipping bootstrap account {account['email']}: "
                f"{account['password_env']} is not set"
            )
            continue
        register(
            store,
            account["email"],
            password,
            full_name=account.get("full_name"),
            roles=account["roles"],
        )
        created += 1
    return created


def initialize_services(
    data_dir: Optional[Path] = None,
    platform_config: Optional[Dict[str, Any]] = None,
) -> JsonStore:
    """Initialize the record store and seed platform data.

    Args:
        data_dir: Store directory (defaults to ``config.DATA_DIR``)
        platform_config: Parsed seed configuration (loaded from
            ``config.PLATFORM_CONFIG_FILE`` when omitted)

    Returns:
        The initialized store
    """
    platform = platform_config if platform_config is not None else load_platform_config()
    store = JsonStore(Path(data_dir) if data_dir else config.DATA_DIR)

    settings_service.seed_settings(store, platform.get("settings", {}))
    settings_service.seed_narration_types(store, platform.get("narrations", []))
    created = seed_accounts(store, platform.get("accounts", []))

    services["store"] = store
    services["platform_config"] = platform
    logger.info(
        f"Services initialized (data_dir={store.base_dir}, bootstrap accounts created={created})"
    )
    return store


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown events."""
    # Startup
    FastAPICache.init(InMemoryBackend(), prefix="ijazah-cache", enable=config.CACHE_ENABLED)
    if "store" not in services:
        initialize_services()
    yield
    # Shutdown (if needed in the future)


# Create FastAPI app
app = FastAPI(
    title="Ijazah Platform API",
    description="REST API for Quranic ijazah applications, scholar review and certificate verification",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
    servers=[
        {
            "url": "http://localhost:8300",
            "description": "Development server (default port)"
        }
    ]
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(IjazahError)
async def ijazah_error_handler(request: Request, exc: IjazahError):
    """Map domain errors to ``{"error", "detail"}`` JSON responses."""
    if exc.status_code >= 500:
        logger.error(f"{exc.error}: {exc.detail}", extra={"path": request.url.path})
    else:
        logger.info(
            f"{request.method} {request.url.path} -> {exc.status_code} {exc.error}: {exc.detail}"
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "detail": exc.detail},
    )


# Middleware for request logging
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming requests with timing information."""
    start_time = time.time()

    # Log request
    logger.info(
        f"Incoming request: {request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "client_host": request.client.host if request.client else None
        }
    )

    # Process request
    response = await call_next(request)

    # Log response
    duration = time.time() - start_time
    logger.info(
        f"Request completed: {request.method} {request.url.path} - Status: {response.status_code}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2)
        }
    )

    return response


app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(applications_router)
app.include_router(scholar_router)
app.include_router(certificates_router)
app.include_router(notifications_router)
app.include_router(settings_router)
app.include_router(media_router)
app.include_router(admin_router)
