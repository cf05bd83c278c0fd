"""User profile endpoints."""
import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.api.deps import get_current_identity, get_current_user, get_db, get_now
from app.schemas import (
    CheckInRecord,
    CheckInStats,
    PointTransactionResponse,
    RedemptionResponse,
    RegisterRequest,
    RegisterResponse,
    UserBadgeResponse,
    UserResponse,
)
from app.db.models import User
from app.services.badges import get_user_badges
from app.services.checkin import get_check_in_stats, get_user_check_ins
from app.services.rewards import list_redemptions
from app.services.users import get_point_history, register_user
from app.core.rate_limit import limiter, RATE_LIMITS

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=RegisterResponse)
@limiter.limit(RATE_LIMITS["register"])
async def register_endpoint(
    request: Request,
    body: Optional[RegisterRequest] = None,
    claims: dict = Depends(get_current_identity),
    db: Session = Depends(get_db)
):
    """
    Create the local profile for the caller's identity (idempotent).

    The first call creates the user with zeroed points and streaks; later calls
    return the existing profile unchanged. New users start ``pending`` until an
    admin approves them, unless AUTO_APPROVE_USERS is set.

    Raises:
        HTTPException: 400 if the token has no email or the company is unknown
        HTTPException: 401 if the identity token is missing or invalid
    """
    try:
        user, created = register_user(db, claims, department=body.department if body else None)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if created:
        logger.info(f"Registered user {user.id} (status={user.status})")
    return RegisterResponse(user=UserResponse.model_validate(user), created=created)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    return user


@router.get("/me/stats", response_model=CheckInStats)
async def get_my_stats(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """Check-in totals, streaks, perfect weeks and average arrival time."""
    return get_check_in_stats(db, user, now)


@router.get("/me/check-ins", response_model=List[CheckInRecord])
async def get_my_check_ins(
    limit: int = Query(30, ge=1, le=365),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return get_user_check_ins(db, user.id, limit)


@router.get("/me/transactions", response_model=List[PointTransactionResponse])
async def get_my_transactions(
    limit: int = Query(50, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Points ledger, newest first. Spending appears as negative amounts."""
    return get_point_history(db, user.id, limit)


@router.get("/me/badges", response_model=List[UserBadgeResponse])
async def get_my_badges(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return get_user_badges(db, user.id)


@router.get("/me/redemptions", response_model=List[RedemptionResponse])
async def get_my_redemptions(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return list_redemptions(db, user.company_id, user_id=user.id)
