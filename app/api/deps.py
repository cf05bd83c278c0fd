"""Shared API dependencies."""
from datetime import datetime, timezone

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.db import get_db, get_db_context
from app.core.config import settings
from app.core.security import verify_admin_token, verify_identity_token
from app.db.models import User
from app.services.users import get_user_by_external_id


def get_now() -> datetime:
    """Current instant; overridden in tests to pin the clock."""
    return datetime.now(timezone.utc)


def get_current_identity(request: Request) -> dict:
    return verify_identity_token(request)


def get_current_user(
    claims: dict = Depends(get_current_identity),
    db: Session = Depends(get_db),
) -> User:
    """The registered local user for the caller's identity token."""
    user = get_user_by_external_id(db, str(claims["sub"]))
    if not user:
        raise HTTPException(status_code=404, detail="User not registered")
    return user


def get_admin_company_id(admin: dict = Depends(verify_admin_token)) -> int:
    """Company an admin acts on: the token's company claim, else the default company."""
    return int(admin.get("company") or settings.DEFAULT_COMPANY_ID)


def get_admin_actor(admin: dict = Depends(verify_admin_token)) -> str:
    return str(admin.get("sub") or "admin")


__all__ = [
    "get_db",
    "get_db_context",
    "get_now",
    "get_current_identity",
    "get_current_user",
    "get_admin_company_id",
    "get_admin_actor",
    "verify_admin_token",
]
