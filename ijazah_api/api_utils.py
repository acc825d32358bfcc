"""Shared utilities for API routers.

This module holds the process-wide record store, the rate limiter and the
authentication dependencies used by multiple routers, so routers do not
import ``api.py`` (avoids circular imports).

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Query, Request
from fastapi_cache import FastAPICache
from slowapi import Limiter
from slowapi.util import get_remote_address

from .auth import extract_bearer_token, verify_token_with_context
from .config import config
from .policy import ROLE_ADMIN, ROLE_SCHOLAR, AccessPolicy, log_access_attempt, route_requirement
from .store import JsonStore

logger = logging.getLogger(__name__)

# Shared with api.py; set by initialize_services()
services: Dict[str, Any] = {}

# Rate limiter for auth endpoints
limiter = Limiter(key_func=get_remote_address, enabled=config.RATE_LIMIT_ENABLED)


def get_store() -> JsonStore:
    """Return the record store.

    Raises:
        HTTPException: 503 if services have not been initialized
    """
    store = services.get("store")
    if store is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return store


def get_platform_config() -> Dict[str, Any]:
    return services.get("platform_config") or {}


async def invalidate_cache(namespace: str) -> None:
    """Drop cached responses of a namespace after an admin change."""
    if config.CACHE_ENABLED:
        await FastAPICache.clear(namespace=namespace)


async def get_current_user(
    request: Request,
    authorization: Optional[str] = Header(
        None,
        description="Bearer authentication token issued by /auth/login",
    ),
    token_query: Optional[str] = Query(
        None,
        alias="token",
        description="Optional authentication token passed as a query parameter "
        "(used when the client cannot set Authorization headers).",
    ),
) -> Dict[str, Any]:
    """Dependency that returns the current user context.

    Requires a valid token. Paths under ``/admin`` and ``/scholar`` also
    require the matching role.
    """
    # Prefer Authorization header; fall back to explicit token query parameter.
    token = extract_bearer_token(authorization) or (token_query or "").strip()
    user = verify_token_with_context(token)
    if not user:
        logger.warning(
            "Rejected request with missing or invalid token",
            extra={"path": request.url.path, "has_token": bool(token)}
        )
        raise HTTPException(status_code=401, detail="Invalid or missing authentication token")

    required = route_requirement(request.url.path)
    if required and not AccessPolicy(user).satisfies(required):
        log_access_attempt(user["user_id"], f"{request.method} {request.url.path}", False)
        raise HTTPException(status_code=403, detail=f"The '{required}' role is required")

    context = dict(user)
    context["token"] = token
    return context


async def require_admin(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not AccessPolicy(user).satisfies(ROLE_ADMIN):
        raise HTTPException(status_code=403, detail="The 'admin' role is required")
    return user


async def require_scholar(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    if not AccessPolicy(user).satisfies(ROLE_SCHOLAR):
        raise HTTPException(status_code=403, detail="The 'scholar' role is required")
    return user
