"""Reward catalogue and redemption business logic."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.core.constants import MAX_REWARD_COST, MIN_REWARD_COST, REDEMPTION_STATUSES, REWARD_CATEGORIES
from app.core.exceptions import PersistenceError
from app.core.sanitization import (
    MAX_DESCRIPTION_LENGTH,
    MAX_NOTES_LENGTH,
    sanitize_optional_text,
    sanitize_reward_name,
)
from app.db.models import PointTransaction, Redemption, Reward, User
from app.services.users import invalidate_leaderboard

logger = structlog.get_logger(__name__)

REWARD_FIELDS = ("name", "description", "points_cost", "category", "icon", "quantity_available", "is_active")

TRANSITION_VERBS = {"approved": "approve", "rejected": "reject", "fulfilled": "fulfill"}


def _validate_reward_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleaned = dict(fields)
    if "name" in cleaned:
        cleaned["name"] = sanitize_reward_name(cleaned["name"])
    if "description" in cleaned:
        cleaned["description"] = sanitize_optional_text(cleaned["description"], MAX_DESCRIPTION_LENGTH)
    if "points_cost" in cleaned:
        cost = cleaned["points_cost"]
        if cost is None or not MIN_REWARD_COST <= cost <= MAX_REWARD_COST:
            raise ValueError(f"Points cost must be between {MIN_REWARD_COST} and {MAX_REWARD_COST}")
    if "category" in cleaned and cleaned["category"] not in REWARD_CATEGORIES:
        raise ValueError(f"Unknown reward category '{cleaned['category']}'")
    if cleaned.get("quantity_available") is not None and cleaned["quantity_available"] < 0:
        raise ValueError("Quantity available cannot be negative")
    return cleaned


def get_reward(db: Session, company_id: int, reward_id: int) -> Optional[Reward]:
    return db.query(Reward).filter(Reward.id == reward_id, Reward.company_id == company_id).first()


def list_rewards(db: Session, company_id: int, include_inactive: bool = False) -> List[Reward]:
    """Rewards in the company's catalogue, cheapest first."""
    query = db.query(Reward).filter(Reward.company_id == company_id)
    if not include_inactive:
        query = query.filter(Reward.is_active.is_(True))
    return query.order_by(Reward.points_cost, Reward.name).all()


def create_reward(db: Session, company_id: int, fields: Dict[str, Any]) -> Reward:
    """
    Add a reward to the catalogue.

    Raises:
        ValueError: If a field is invalid
    """
    missing = [name for name in ("name", "points_cost") if fields.get(name) is None]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")

    cleaned = _validate_reward_fields({k: v for k, v in fields.items() if k in REWARD_FIELDS})
    reward = Reward(company_id=company_id, **cleaned)
    db.add(reward)
    db.commit()
    db.refresh(reward)

    logger.info("reward_created", reward_id=reward.id, company_id=company_id, points_cost=reward.points_cost)
    return reward


def update_reward(db: Session, company_id: int, reward_id: int, changes: Dict[str, Any]) -> Reward:
    """
    Raises:
        ValueError: If the reward is not found or a field is invalid
    """
    reward = get_reward(db, company_id, reward_id)
    if not reward:
        raise ValueError("Reward not found")

    cleaned = _validate_reward_fields({k: v for k, v in changes.items() if k in REWARD_FIELDS})
    for name, value in cleaned.items():
        setattr(reward, name, value)
    db.commit()
    db.refresh(reward)

    logger.info("reward_updated", reward_id=reward_id, fields=sorted(cleaned))
    return reward


def deactivate_reward(db: Session, company_id: int, reward_id: int) -> None:
    """Hide a reward from the catalogue; past redemptions keep pointing at it."""
    reward = get_reward(db, company_id, reward_id)
    if not reward:
        raise ValueError("Reward not found")
    reward.is_active = False
    db.commit()
    logger.info("reward_deactivated", reward_id=reward_id)


def redeem_reward(db: Session, user: User, reward_id: int) -> Redemption:
    """
    Spend points on a reward.

    The balance and stock are decremented with conditional UPDATEs so two
    concurrent redemptions can never overdraw the balance or oversell a
    limited reward.

    Raises:
        PermissionError: If the user is not approved
        ValueError: If the reward is unavailable or the balance is too low
        PersistenceError: If the write failed
    """
    if user.status != "approved":
        raise PermissionError("Your account is not approved for redemptions yet")

    reward = get_reward(db, user.company_id, reward_id)
    if not reward or not reward.is_active:
        raise ValueError("Reward not found")
    if reward.quantity_available is not None and reward.quantity_available <= 0:
        raise ValueError("This reward is out of stock")

    cost = reward.points_cost
    try:
        debited = db.query(User).filter(
            User.id == user.id,
            User.points_balance >= cost
        ).update({User.points_balance: User.points_balance - cost}, synchronize_session=False)
        if debited == 0:
            db.rollback()
            raise ValueError("Insufficient points for this reward")

        if reward.quantity_available is not None:
            reserved = db.query(Reward).filter(
                Reward.id == reward.id,
                Reward.quantity_available > 0
            ).update({Reward.quantity_available: Reward.quantity_available - 1}, synchronize_session=False)
            if reserved == 0:
                db.rollback()
                raise ValueError("This reward is out of stock")

        redemption = Redemption(
            user_id=user.id,
            reward_id=reward.id,
            points_spent=cost,
            status="pending",
            requested_at=datetime.now(timezone.utc),
        )
        db.add(redemption)
        db.flush()

        db.add(PointTransaction(
            user_id=user.id,
            transaction_type="spent",
            amount=-cost,
            reference_type="redemption",
            reference_id=redemption.id,
            description=f"Redeemed: {reward.name}",
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("redemption_persist_failed", user_id=user.id, reward_id=reward_id, error=str(e))
        raise PersistenceError("Your redemption could not be saved. Please try again.") from e

    db.refresh(user)
    db.refresh(redemption)
    invalidate_leaderboard(user.company_id)
    logger.info("reward_redeemed", user_id=user.id, reward_id=reward.id, points_spent=cost)
    return redemption


def _get_company_redemption(db: Session, company_id: int, redemption_id: int) -> Redemption:
    redemption = (
        db.query(Redemption)
        .join(User, Redemption.user_id == User.id)
        .filter(Redemption.id == redemption_id, User.company_id == company_id)
        .first()
    )
    if not redemption:
        raise ValueError("Redemption not found")
    return redemption


def _transition(
    db: Session,
    redemption: Redemption,
    from_status: str,
    to_status: str,
    actor: str,
    **fields: Any,
) -> None:
    """
    Move a redemption from ``from_status`` to ``to_status`` with a conditional UPDATE.

    The status check happens in the UPDATE itself, so of two admins acting on
    the same redemption only one wins; the other gets ValueError and nothing
    of theirs is written.
    """
    changed = db.query(Redemption).filter(
        Redemption.id == redemption.id,
        Redemption.status == from_status
    ).update({
        Redemption.status: to_status,
        Redemption.processed_at: datetime.now(timezone.utc),
        Redemption.processed_by: actor,
        **{getattr(Redemption, name): value for name, value in fields.items()},
    }, synchronize_session=False)
    if changed == 0:
        db.rollback()
        db.refresh(redemption)
        raise ValueError(f"Cannot {TRANSITION_VERBS[to_status]} a {redemption.status} redemption")


def approve_redemption(db: Session, company_id: int, redemption_id: int, actor: str) -> Redemption:
    redemption = _get_company_redemption(db, company_id, redemption_id)
    _transition(db, redemption, "pending", "approved", actor)
    db.commit()
    db.refresh(redemption)

    logger.info("redemption_approved", redemption_id=redemption_id, actor=actor)
    return redemption


def reject_redemption(
    db: Session,
    company_id: int,
    redemption_id: int,
    actor: str,
    reason: Optional[str] = None,
) -> Redemption:
    """
    Reject a pending redemption and give the points (and stock) back.

    The refund is applied in SQL after the status has been claimed, so a
    redemption is refunded at most once even if two admins reject it together.

    Raises:
        ValueError: If the redemption is unknown or no longer pending
        PersistenceError: If the write failed
    """
    redemption = _get_company_redemption(db, company_id, redemption_id)
    refund = redemption.points_spent
    reward = redemption.reward

    try:
        _transition(
            db, redemption, "pending", "rejected", actor,
            rejection_reason=sanitize_optional_text(reason, MAX_NOTES_LENGTH),
        )
        db.query(User).filter(User.id == redemption.user_id).update(
            {User.points_balance: User.points_balance + refund}, synchronize_session=False
        )
        if reward.quantity_available is not None:
            db.query(Reward).filter(Reward.id == reward.id).update(
                {Reward.quantity_available: Reward.quantity_available + 1}, synchronize_session=False
            )
        db.add(PointTransaction(
            user_id=redemption.user_id,
            transaction_type="refunded",
            amount=refund,
            reference_type="redemption",
            reference_id=redemption.id,
            description=f"Refund: {reward.name}",
            created_by=actor,
        ))
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("redemption_reject_failed", redemption_id=redemption_id, error=str(e))
        raise PersistenceError("The rejection could not be saved. Please try again.") from e

    db.refresh(redemption)
    invalidate_leaderboard(company_id)
    logger.info("redemption_rejected", redemption_id=redemption_id, actor=actor, refunded=refund)
    return redemption


def fulfill_redemption(
    db: Session,
    company_id: int,
    redemption_id: int,
    actor: str,
    notes: Optional[str] = None,
) -> Redemption:
    """Mark an approved redemption as handed over. Pending ones must be approved first."""
    redemption = _get_company_redemption(db, company_id, redemption_id)
    _transition(
        db, redemption, "approved", "fulfilled", actor,
        fulfillment_notes=sanitize_optional_text(notes, MAX_NOTES_LENGTH),
    )
    db.commit()
    db.refresh(redemption)

    logger.info("redemption_fulfilled", redemption_id=redemption_id, actor=actor)
    return redemption


def list_redemptions(
    db: Session,
    company_id: int,
    status: Optional[str] = None,
    user_id: Optional[int] = None,
) -> List[Redemption]:
    """Redemptions for a company, newest first, optionally filtered."""
    if status and status not in REDEMPTION_STATUSES:
        raise ValueError(f"Unknown redemption status '{status}'")

    query = (
        db.query(Redemption)
        .join(User, Redemption.user_id == User.id)
        .options(joinedload(Redemption.user), joinedload(Redemption.reward))
        .filter(User.company_id == company_id)
    )
    if status:
        query = query.filter(Redemption.status == status)
    if user_id is not None:
        query = query.filter(Redemption.user_id == user_id)
    return query.order_by(Redemption.requested_at.desc(), Redemption.id.desc()).all()
