"""Admin endpoints."""
import logging
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from app.api.deps import get_admin_actor, get_admin_company_id, get_db, get_now, verify_admin_token
from app.schemas import (
    CheckInSettingsUpdate,
    PointsAdjustment,
    QrCodeResponse,
    QrRotateRequest,
    RedemptionDecision,
    RedemptionFulfillment,
    RedemptionResponse,
    RewardCreate,
    RewardResponse,
    RewardUpdate,
    SuccessResponse,
    UserResponse,
    UserStatusUpdate,
)
from app.engine import InvalidConfigError
from app.services.activity import get_company_analytics
from app.services.checkin import get_todays_check_ins
from app.services.config import get_active_config, update_company_config
from app.services.qr_codes import checkin_url, get_active_qr_code, render_qr_svg, rotate_qr_code
from app.services.rewards import (
    approve_redemption,
    create_reward,
    deactivate_reward,
    fulfill_redemption,
    list_redemptions,
    list_rewards,
    reject_redemption,
    update_reward,
)
from app.services.users import adjust_points, list_users, set_user_status
from app.core.cache import global_cache

logger = logging.getLogger(__name__)
router = APIRouter(dependencies=[Depends(verify_admin_token)])


def _not_found_or_bad_request(e: ValueError) -> HTTPException:
    status_code = 404 if "not found" in str(e).lower() else 400
    return HTTPException(status_code=status_code, detail=str(e))


# Check-in settings

@router.get("/settings")
async def get_settings_endpoint(
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db)
):
    """The company's active check-in configuration."""
    return get_active_config(db, company_id, global_cache).model_dump(mode="json")


@router.put("/settings")
async def update_settings_endpoint(
    changes: CheckInSettingsUpdate,
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db)
):
    """
    Update the check-in window, cutoffs, points or bonuses.

    The merged configuration is validated as a whole (e.g. cutoffs must lie
    within the window); an invalid update is rejected with 400 and nothing is
    stored. The new settings apply to the next check-in.
    """
    try:
        config = update_company_config(db, company_id, changes.model_dump(exclude_unset=True), global_cache)
    except InvalidConfigError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))

    logger.info(f"Check-in settings updated for company {company_id}")
    return config.model_dump(mode="json")


# Users

@router.get("/users", response_model=List[UserResponse])
async def list_users_endpoint(
    status: Optional[str] = None,
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db)
):
    return list_users(db, company_id, status)


@router.put("/users/{user_id}/status", response_model=UserResponse)
async def set_user_status_endpoint(
    user_id: int,
    body: UserStatusUpdate,
    company_id: int = Depends(get_admin_company_id),
    actor: str = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Approve, reject or suspend an employee."""
    try:
        return set_user_status(db, company_id, user_id, body.status, actor)
    except ValueError as e:
        raise _not_found_or_bad_request(e)


@router.post("/users/{user_id}/points", response_model=UserResponse)
async def adjust_points_endpoint(
    user_id: int,
    body: PointsAdjustment,
    company_id: int = Depends(get_admin_company_id),
    actor: str = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Credit (positive) or debit (negative) a user's balance with a ledger entry."""
    try:
        return adjust_points(db, company_id, user_id, body.amount, body.reason, actor)
    except ValueError as e:
        raise _not_found_or_bad_request(e)


# Rewards

@router.get("/rewards", response_model=List[RewardResponse])
async def list_all_rewards_endpoint(
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db)
):
    return list_rewards(db, company_id, include_inactive=True)


@router.post("/rewards", response_model=RewardResponse)
async def create_reward_endpoint(
    reward: RewardCreate,
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db)
):
    try:
        return create_reward(db, company_id, reward.model_dump())
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.put("/rewards/{reward_id}", response_model=RewardResponse)
async def update_reward_endpoint(
    reward_id: int,
    changes: RewardUpdate,
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db)
):
    try:
        return update_reward(db, company_id, reward_id, changes.model_dump(exclude_unset=True))
    except ValueError as e:
        raise _not_found_or_bad_request(e)


@router.delete("/rewards/{reward_id}", response_model=SuccessResponse)
async def delete_reward_endpoint(
    reward_id: int,
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db)
):
    """Deactivate a reward. Existing redemptions are kept."""
    try:
        deactivate_reward(db, company_id, reward_id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return SuccessResponse(success=True, message="Reward deactivated")


# Redemptions

@router.get("/redemptions", response_model=List[RedemptionResponse])
async def list_redemptions_endpoint(
    status: Optional[str] = None,
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db)
):
    try:
        return list_redemptions(db, company_id, status=status)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/redemptions/{redemption_id}/approve", response_model=RedemptionResponse)
async def approve_redemption_endpoint(
    redemption_id: int,
    company_id: int = Depends(get_admin_company_id),
    actor: str = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    try:
        return approve_redemption(db, company_id, redemption_id, actor)
    except ValueError as e:
        raise _not_found_or_bad_request(e)


@router.post("/redemptions/{redemption_id}/reject", response_model=RedemptionResponse)
async def reject_redemption_endpoint(
    redemption_id: int,
    body: Optional[RedemptionDecision] = None,
    company_id: int = Depends(get_admin_company_id),
    actor: str = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    """Reject a pending redemption; the points and stock are returned."""
    try:
        return reject_redemption(db, company_id, redemption_id, actor, body.reason if body else None)
    except ValueError as e:
        raise _not_found_or_bad_request(e)


@router.post("/redemptions/{redemption_id}/fulfill", response_model=RedemptionResponse)
async def fulfill_redemption_endpoint(
    redemption_id: int,
    body: Optional[RedemptionFulfillment] = None,
    company_id: int = Depends(get_admin_company_id),
    actor: str = Depends(get_admin_actor),
    db: Session = Depends(get_db)
):
    try:
        return fulfill_redemption(db, company_id, redemption_id, actor, body.notes if body else None)
    except ValueError as e:
        raise _not_found_or_bad_request(e)


# QR codes

@router.get("/qr-code", response_model=QrCodeResponse)
async def get_qr_code_endpoint(
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    qr_code = get_active_qr_code(db, company_id, now)
    if not qr_code:
        raise HTTPException(status_code=404, detail="No active QR code")
    return qr_code


@router.post("/qr-code/rotate", response_model=QrCodeResponse)
async def rotate_qr_code_endpoint(
    body: Optional[QrRotateRequest] = None,
    company_id: int = Depends(get_admin_company_id),
    actor: str = Depends(get_admin_actor),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """Retire the current code and issue a new one. Old printouts stop working immediately."""
    strategy = body.strategy if body else "manual"
    try:
        return rotate_qr_code(db, company_id, created_by=actor, strategy=strategy, now=now)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/qr-code/svg")
async def get_qr_code_svg_endpoint(
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """The active code as a printable SVG image."""
    qr_code = get_active_qr_code(db, company_id, now)
    if not qr_code:
        raise HTTPException(status_code=404, detail="No active QR code")
    return Response(content=render_qr_svg(checkin_url(qr_code.code)), media_type="image/svg+xml")


# Monitoring

@router.get("/check-ins/today")
async def todays_check_ins_endpoint(
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    config = get_active_config(db, company_id, global_cache)
    return get_todays_check_ins(db, company_id, config, now)


@router.get("/analytics")
async def analytics_endpoint(
    days: int = Query(30, ge=1, le=365),
    company_id: int = Depends(get_admin_company_id),
    db: Session = Depends(get_db),
    now: datetime = Depends(get_now)
):
    """Daily participation, classification split, redemptions and top streaks."""
    return get_company_analytics(db, company_id, now, days)


@router.get("/cache/stats")
async def cache_stats_endpoint():
    return global_cache.get_stats()
