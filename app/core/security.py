"""Tokens and passwords.

Employees arrive with an HS256 JWT from the company identity provider, carrying
``sub``, ``email``, ``name``, ``role`` and ``company`` claims. The admin
password login mints the same kind of token (``role=admin``, no company) and
stores it in the ``admin_token`` cookie for the dashboard.
"""
import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

import argon2
import jwt
from fastapi import HTTPException, Request

from app.core import config
from app.core.constants import ADMIN_ROLES, ROLE_ADMIN

ADMIN_COOKIE_NAME = "admin_token"
ARGON2_PREFIX = "$argon2"

ph = argon2.PasswordHasher(time_cost=2, memory_cost=65536, parallelism=1, hash_len=32, salt_len=16)


def get_password_hash(password: str) -> str:
    return ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return ph.verify(password_hash, password)
    except (argon2.exceptions.VerificationError, argon2.exceptions.InvalidHashError):
        return False


def verify_admin_password(password: str) -> bool:
    """Check the admin login password.

    ADMIN_PASSWORD may hold an argon2 hash (``python manage.py hash-password``)
    or, in development, the plain password.
    """
    stored = config.settings.ADMIN_PASSWORD
    if stored.startswith(ARGON2_PREFIX):
        return verify_password(password, stored)
    return hmac.compare_digest(password.encode(), stored.encode())


def create_access_token(claims: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Sign ``claims`` with an ``exp`` (default ACCESS_TOKEN_EXPIRE_MINUTES from now)."""
    lifetime = expires_delta or timedelta(minutes=config.settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    payload = {**claims, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(payload, config.settings.SECRET_KEY, algorithm=config.settings.ALGORITHM)


def create_admin_token() -> str:
    return create_access_token({"sub": "admin", "role": ROLE_ADMIN, "is_admin": True})


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, config.settings.SECRET_KEY, algorithms=[config.settings.ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=401, detail="Token expired")
    except jwt.PyJWTError:
        raise HTTPException(status_code=401, detail="Invalid token")


def _token_from(request: Request) -> Optional[str]:
    # A bearer header wins over the dashboard cookie
    scheme, _, credentials = (request.headers.get("Authorization") or "").partition(" ")
    if scheme.lower() == "bearer" and credentials.strip():
        return credentials.strip()
    return request.cookies.get(ADMIN_COOKIE_NAME)


def is_admin_claims(claims: dict) -> bool:
    return bool(claims.get("is_admin")) or claims.get("role") in ADMIN_ROLES


def verify_identity_token(request: Request) -> dict:
    """Claims of the caller's token; 401 if it is missing, invalid, expired or has no subject."""
    token = _token_from(request)
    if not token:
        raise HTTPException(status_code=401, detail="Not authenticated")

    claims = decode_token(token)
    if not claims.get("sub"):
        raise HTTPException(status_code=401, detail="Invalid token")
    return claims


def verify_admin_token(request: Request) -> dict:
    """Like verify_identity_token, plus 403 unless the token carries an admin role."""
    claims = verify_identity_token(request)
    if not is_admin_claims(claims):
        raise HTTPException(status_code=403, detail="Not authorized")
    return claims
