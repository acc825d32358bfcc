"""Authentication module for the ijazah API.

This module provides account registration, password verification and
simple token-based authentication. Tokens are opaque, URL-safe strings
held in memory together with the user context they were issued for.

Created: 2026-10-12
Version: 1.0.0
License: MIT
"""

import logging
import re
import secrets
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from .config import config
from .exceptions import ConflictError, ValidationFailedError
from .store import JsonStore

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Store active tokens (in production, use Redis or database)
active_tokens: Dict[str, Dict] = {}


# Password hashing

def hash_password(password: str) -> str:
    """Hash a password with werkzeug's salted PBKDF2-SHA256."""
    return generate_password_hash(
        password, method=f"pbkdf2:sha256:{config.PASSWORD_HASH_ITERATIONS}"
    )


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    """Check a plaintext password against a stored werkzeug hash."""
    if not password_hash:
        return False
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        logger.warning("Unreadable password hash encountered")
        return False


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def public_profile(profile: Dict[str, Any]) -> Dict[str, Any]:
    """Return a profile without credential material."""
    return {k: v for k, v in profile.items() if k != "password_hash"}


# Accounts

def find_profile_by_email(store: JsonStore, email: str) -> Optional[Dict[str, Any]]:
    return store.find_one("profiles", email=normalize_email(email))


def register(
    store: JsonStore,
    email: str,
    password: str,
    full_name: Optional[str] = None,
    roles: Optional[List[str]] = None,
    **profile_fields: Any,
) -> Dict[str, Any]:
    """Create a new account.

    New accounts get the ``student`` role unless roles are given explicitly
    (bootstrap and admin tooling only).

    Args:
        store: Record store
        email: Login email (case-insensitive)
        password: Plaintext password
        full_name: Display name
        roles: Optional explicit role list
        **profile_fields: Extra profile columns (phone_number, country, ...)

    Returns:
        The stored profile (including the password hash)

    Raises:
        ValidationFailedError: If the email or password is unacceptable
        ConflictError: If the email is already registered
    """
    email = normalize_email(email)
    if not EMAIL_PATTERN.match(email):
        raise ValidationFailedError(f"Invalid email address: {email!r}")
    if len(password or "") < config.MIN_PASSWORD_LENGTH:
        raise ValidationFailedError(
            f"Password must be at least {config.MIN_PASSWORD_LENGTH} characters"
        )
    if find_profile_by_email(store, email):
        raise ConflictError(f"An account with email {email} already exists")

    profile = {
        "email": email,
        "full_name": full_name,
        "full_name_arabic": profile_fields.pop("full_name_arabic", None),
        "phone_number": profile_fields.pop("phone_number", None),
        "date_of_birth": profile_fields.pop("date_of_birth", None),
        "gender": profile_fields.pop("gender", None),
        "country": profile_fields.pop("country", None),
        "city": profile_fields.pop("city", None),
        "avatar_url": profile_fields.pop("avatar_url", None),
        "bio": profile_fields.pop("bio", None),
        "is_verified": False,
        "verification_level": "basic",
        "roles": list(dict.fromkeys(roles or ["student"])),
        "enabled": True,
        "metadata": profile_fields.pop("metadata", {}),
        "preferences": {},
        "password_hash": hash_password(password),
    }
    created = store.insert("profiles", profile)
    logger.info(
        f"Registered account {email}",
        extra={"user_id": created["id"], "roles": created["roles"]}
    )
    return created


def verify_credentials(store: JsonStore, email: str, password: str) -> Optional[Dict[str, Any]]:
    """Verify email and password credentials.

    Args:
        store: Record store
        email: Login email
        password: Plaintext password

    Returns:
        The profile when credentials are valid and the account is enabled,
        otherwise None
    """
    profile = find_profile_by_email(store, email)
    if not profile or not profile.get("enabled", True):
        return None
    if not verify_password(password, profile.get("password_hash")):
        return None
    return profile


# Tokens

def create_token_with_context(profile: Dict[str, Any]) -> Dict:
    """Create a new authentication token carrying the user's role context.

    Args:
        profile: Authenticated profile record

    Returns:
        Dictionary containing token and user context
    """
    token = secrets.token_urlsafe(32)
    roles = profile.get("roles") or ["student"]

    active_tokens[token] = {
        "user_id": profile["id"],
        "email": profile["email"],
        "full_name": profile.get("full_name"),
        "roles": list(roles),
        "created": datetime.now()
    }

    return {
        "token": token,
        "user_id": profile["id"],
        "email": profile["email"],
        "full_name": profile.get("full_name"),
        "roles": list(roles),
    }


def verify_token_with_context(token: Optional[str]) -> Optional[Dict]:
    """Verify token and return full user context.

    Tokens older than ``TOKEN_EXPIRY_HOURS`` are removed on access.

    Args:
        token: Authentication token to verify

    Returns:
        Dictionary with user context or None if invalid
    """
    if not token:
        return None

    token_data = active_tokens.get(token)
    if not token_data:
        return None

    if datetime.now() - token_data["created"] > timedelta(hours=config.TOKEN_EXPIRY_HOURS):
        del active_tokens[token]
        return None

    return token_data


def refresh_token_roles(user_id: str, roles: List[str]) -> int:
    """Update the roles cached in every live token of a user.

    Called after an admin changes roles so the change applies without a
    fresh login. Returns the number of tokens updated.
    """
    updated = 0
    for token_data in active_tokens.values():
        if token_data["user_id"] == user_id:
            token_data["roles"] = list(roles)
            updated += 1
    return updated


def revoke_token(token: str) -> bool:
    """Revoke an authentication token, invalidating it immediately.

    Args:
        token: The authentication token to revoke

    Returns:
        True if the token existed and was revoked, False otherwise
    """
    if token in active_tokens:
        del active_tokens[token]
        return True
    return False


def revoke_user_tokens(user_id: str) -> int:
    """Revoke every token issued to a user (e.g. when the account is disabled)."""
    doomed = [t for t, data in active_tokens.items() if data["user_id"] == user_id]
    for token in doomed:
        del active_tokens[token]
    return len(doomed)


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract bearer token from Authorization header if present."""
    if not authorization:
        return None
    parts = authorization.split()
    if len(parts) == 2 and parts[0].lower() == "bearer":
        return parts[1]
    # Fallback: treat entire header as token
    return authorization.strip() or None
