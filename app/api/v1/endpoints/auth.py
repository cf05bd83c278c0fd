"""Bootstrap admin login.

Employees never log in here; their tokens come from the identity provider.
The password login lets an operator configure the default company before any
admin exists in the provider.
"""
import logging
from fastapi import APIRouter, HTTPException, Request, Response

from app.schemas import AdminLoginRequest, SuccessResponse
from app.core.security import ADMIN_COOKIE_NAME, create_admin_token, verify_admin_password
from app.core.rate_limit import limiter, RATE_LIMITS
from app.core import config

logger = logging.getLogger(__name__)
router = APIRouter()


def _client(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/admin/login", response_model=SuccessResponse)
@limiter.limit(RATE_LIMITS["admin_login"])
async def admin_login(request: Request, login: AdminLoginRequest, response: Response) -> SuccessResponse:
    """
    Exchange ADMIN_PASSWORD for an admin token in the ``admin_token`` cookie.

    The cookie is httpOnly, SameSite=Lax, Secure in production, and lives as
    long as the token (ACCESS_TOKEN_EXPIRE_MINUTES). The token has no company
    claim, so admin endpoints act on DEFAULT_COMPANY_ID.

    Raises:
        HTTPException: 401 "Invalid password"; 429 after too many attempts
    """
    if not verify_admin_password(login.password):
        logger.warning(f"Rejected admin login from {_client(request)}")
        raise HTTPException(status_code=401, detail="Invalid password")

    settings = config.settings
    response.set_cookie(
        key=ADMIN_COOKIE_NAME,
        value=create_admin_token(),
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT == "production",
    )
    logger.info(f"Admin logged in from {_client(request)}")
    return SuccessResponse(success=True, message="Logged in successfully")


@router.post("/admin/logout", response_model=SuccessResponse)
async def admin_logout(response: Response) -> SuccessResponse:
    """Clear the admin cookie. Safe to call when not logged in."""
    response.delete_cookie(key=ADMIN_COOKIE_NAME)
    return SuccessResponse(success=True, message="Logged out successfully")
