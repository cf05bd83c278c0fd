"""Reward catalogue and leaderboard endpoints."""
import logging
from typing import List
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.schemas import LeaderboardEntry, RedeemResponse, RedemptionResponse, RewardResponse
from app.db.models import User
from app.core.constants import DEFAULT_LEADERBOARD_SIZE, MAX_LEADERBOARD_SIZE
from app.services.rewards import list_rewards, redeem_reward
from app.services.users import get_leaderboard
from app.core.rate_limit import limiter, RATE_LIMITS
from app.core.cache import global_cache

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/rewards", response_model=List[RewardResponse])
async def list_rewards_endpoint(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Active rewards in the caller's company catalogue, cheapest first."""
    return list_rewards(db, user.company_id)


@router.post("/rewards/{reward_id}/redeem", response_model=RedeemResponse)
@limiter.limit(RATE_LIMITS["redeem"])
async def redeem_endpoint(
    request: Request,
    reward_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Spend points on a reward. The redemption starts ``pending`` until an admin
    approves, rejects (refunding the points) or fulfills it.

    Raises:
        HTTPException: 400 if the balance is too low or the reward is out of stock
        HTTPException: 403 if the user is not approved
        HTTPException: 404 if the reward does not exist or is inactive
        HTTPException: 503 if the redemption could not be saved
    """
    try:
        redemption = redeem_reward(db, user, reward_id)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except ValueError as e:
        status_code = 404 if "not found" in str(e).lower() else 400
        raise HTTPException(status_code=status_code, detail=str(e))

    return RedeemResponse(
        redemption=RedemptionResponse.model_validate(redemption),
        points_balance=user.points_balance,
    )


@router.get("/leaderboard", response_model=List[LeaderboardEntry])
@limiter.limit(RATE_LIMITS["leaderboard"])
async def leaderboard_endpoint(
    request: Request,
    limit: int = Query(DEFAULT_LEADERBOARD_SIZE, ge=1, le=MAX_LEADERBOARD_SIZE),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Top employees in the caller's company by points balance.

    Cached for a few seconds; check-ins and redemptions invalidate it.
    """
    return get_leaderboard(db, user.company_id, limit, cache=global_cache)
