"""Authentication endpoints.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Request

from ..api_utils import get_current_user, get_store, limiter
from ..auth import (
    create_token_with_context,
    public_profile,
    register,
    revoke_token,
    verify_credentials,
)
from ..models import LoginRequest, LoginResponse, RegisterRequest
from ..store import JsonStore

router = APIRouter(tags=["Authentication"], prefix="/auth")
logger = logging.getLogger(__name__)


@router.post("/register", status_code=201, operation_id="register")
@limiter.limit("5/minute")
async def register_account(
    request: Request,
    payload: RegisterRequest,
    store: JsonStore = Depends(get_store),
):
    """Create a student account.

    Rate limit: 5 registrations per minute per IP address.
    """
    profile = register(
        store,
        payload.email,
        payload.password,
        full_name=payload.full_name,
        full_name_arabic=payload.full_name_arabic,
        phone_number=payload.phone_number,
    )
    return public_profile(profile)


@router.post("/login", response_model=LoginResponse, operation_id="login")
@limiter.limit("10/minute")
async def login(
    request: Request,
    credentials: LoginRequest,
    store: JsonStore = Depends(get_store),
):
    """Exchange email and password for a bearer token.

    Rate limit: 10 login attempts per minute per IP address to prevent brute force attacks.
    """
    profile = verify_credentials(store, credentials.email, credentials.password)
    if not profile:
        logger.warning(f"Failed login attempt for {credentials.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    token_response = create_token_with_context(profile)
    logger.info(
        f"User logged in: {profile['email']}",
        extra={"user_id": profile["id"], "roles": token_response["roles"]}
    )
    return LoginResponse(**token_response)


@router.post("/logout", operation_id="logout")
async def logout(user: Dict[str, Any] = Depends(get_current_user)):
    """Revoke the token used for this request."""
    revoke_token(user["token"])
    logger.info(f"User logged out: {user['email']}")
    return {"success": True}


@router.get("/me", operation_id="current_user")
async def me(
    user: Dict[str, Any] = Depends(get_current_user),
    store: JsonStore = Depends(get_store),
):
    """Return the authenticated user's profile and roles."""
    profile = store.require("profiles", user["user_id"], "Profile")
    return public_profile(profile)
