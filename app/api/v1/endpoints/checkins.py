"""Check-in endpoints."""
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db, get_now
from app.schemas import CheckInRecord, CheckInRequest, CheckInResponse, RejectionDetail, RejectionResponse, TodayStatus
from app.db.models import User
from app.engine import CheckInRejection, RejectionKind, evaluate_window
from app.services.checkin import get_todays_check_in, perform_check_in
from app.services.config import get_active_config
from app.core.rate_limit import limiter, RATE_LIMITS
from app.core.cache import global_cache

logger = logging.getLogger(__name__)
router = APIRouter()

REJECTION_STATUS = {
    RejectionKind.ALREADY_CHECKED_IN: 409,
    RejectionKind.OUTSIDE_WINDOW: 400,
    RejectionKind.INVALID_QR_CODE: 400,
}


@router.post(
    "",
    response_model=CheckInResponse,
    responses={400: {"model": RejectionResponse}, 409: {"model": RejectionResponse}},
)
@limiter.limit(RATE_LIMITS["check_in"])
async def check_in_endpoint(
    request: Request,
    check_in: CheckInRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """
    Record today's check-in for the caller and award points.

    At most one check-in per user per local day is ever recorded, even when
    the same request is sent twice concurrently.

    Args:
        request: FastAPI Request (for rate limiting)
        check_in: CheckInRequest with the scanned QR code and optional location
        user: Registered user for the identity token (injected)
        db: Database session (injected)
        now: Current instant (injected)

    Returns:
        CheckInResponse with the classification, points, streak and message

    Raises:
        HTTPException: 400 if outside the window or the QR code is invalid
        HTTPException: 403 if the user is not approved
        HTTPException: 409 if the user already checked in today
        HTTPException: 500 if the company's check-in settings are invalid
        HTTPException: 503 if the check-in could not be saved

    Example:
        Request:
            POST /api/v1/check-ins
            Authorization: Bearer eyJhbGc...
            {
                "qr_code": "SK2025-BAKODIFU"
            }

        Response (200):
            {
                "classification": "early",
                "base_points": 2,
                "bonus_points": 0,
                "total_points": 2,
                "streak_day": 1,
                "message": "Check-in successful! You earned 2 points for checking in early!",
                ...
            }

        Response (409):
            {
                "detail": {"code": "already_checked_in", "message": "You have already checked in today"}
            }

    Rate Limit:
        300 requests per minute per IP
    """
    try:
        outcome = perform_check_in(
            db,
            user,
            now=now,
            qr_code=check_in.qr_code,
            location=check_in.location,
            cache=global_cache,
        )
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))

    if isinstance(outcome, CheckInRejection):
        detail = RejectionDetail(
            code=outcome.kind.value,
            message=outcome.message,
            window=outcome.window,
            local_time=outcome.local_time,
        )
        raise HTTPException(status_code=REJECTION_STATUS[outcome.kind], detail=detail.model_dump(exclude_none=True))

    result = outcome["result"]
    return CheckInResponse(
        check_in_id=outcome["check_in_id"],
        check_in_time=result.check_in_time,
        local_date=result.local_date,
        classification=result.classification,
        base_points=result.base_points,
        bonus_points=result.bonus_points,
        total_points=result.total_points,
        streak_day=result.streak_day,
        longest_streak=result.longest_streak,
        bonus_reasons=result.bonuses.reasons,
        points_balance=outcome["points_balance"],
        message=result.message,
        quote=outcome["quote"],
        new_badges=outcome["new_badges"],
    )


@router.get("/today", response_model=TodayStatus)
async def today_endpoint(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """Whether the caller has checked in today and whether the window is open."""
    config = get_active_config(db, user.company_id, global_cache)

    existing = get_todays_check_in(db, user.id, config, now)
    window = evaluate_window(now, config)

    return TodayStatus(
        checked_in=existing is not None,
        check_in=CheckInRecord.model_validate(existing) if existing else None,
        window_open=window.allowed,
        window_start=config.window_start,
        window_end=config.window_end,
        timezone=config.timezone,
        local_time=window.local_time,
    )
