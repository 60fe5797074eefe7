"""
Password hashing and caller identification for the API.

Passwords are hashed with PBKDF2-HMAC-SHA256 before they reach the
``users`` table.  Session handling lives outside this service: the
calling web tier identifies the user with an ``X-User-Id`` header and
elevates a request to administrator by presenting the static
``ADMIN_TOKEN`` as a bearer token.
"""

import hashlib
import hmac
import os
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings

PBKDF2_ITERATIONS = 100_000


def hash_password(password: str) -> str:
    """Hash a password using PBKDF2-HMAC with SHA-256.

    A 16-byte random salt is generated for each password.  The result
    holds the salt and the digest in hex separated by ``$``.
    """
    salt = os.urandom(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return f"{salt.hex()}${dk.hex()}"


def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Check a plain password against a ``salt$hash`` string."""
    if not hashed_password or "$" not in hashed_password:
        return False
    salt_hex, hash_hex = hashed_password.split("$", 1)
    try:
        salt = bytes.fromhex(salt_hex)
        stored_hash = bytes.fromhex(hash_hex)
    except ValueError:
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain_password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    return hmac.compare_digest(dk, stored_hash)


security = HTTPBearer(auto_error=False)


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_user_id: Optional[str] = Header(None),
) -> Dict[str, Any]:
    """Return the caller context ``{"user_id": ..., "is_admin": ...}``.

    Never rejects a request; use ``require_user`` or ``require_admin``
    for routes that need an identity.
    """
    is_admin = bool(
        settings.admin_token
        and credentials is not None
        and hmac.compare_digest(
            credentials.credentials.encode("utf-8"), settings.admin_token.encode("utf-8")
        )
    )
    return {"user_id": x_user_id or None, "is_admin": is_admin}


def require_user(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Dependency for routes acting on behalf of a user."""
    if current_user["user_id"] is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-Id header",
        )
    return current_user


def require_admin(current_user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    """Dependency for administrator-only routes."""
    if not current_user["is_admin"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return current_user
