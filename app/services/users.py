"""User business logic."""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.cache import TTLCache, get_or_fetch, global_cache
from app.core.config import settings
from app.core.constants import ADMIN_ROLES, ROLE_EMPLOYEE, USER_ROLES, USER_STATUSES
from app.db.models import Company, PointTransaction, User
from app.engine import CheckInResult, UserCheckInState

logger = structlog.get_logger(__name__)


def leaderboard_cache_key(company_id: int, limit: int) -> str:
    return f"leaderboard:{company_id}:{limit}"


def invalidate_leaderboard(company_id: int, cache: Optional[TTLCache] = None) -> None:
    (cache or global_cache).invalidate_prefix(f"leaderboard:{company_id}:")


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def get_user_by_external_id(db: Session, external_id: str) -> Optional[User]:
    return db.query(User).filter(User.external_id == external_id).first()


def get_user_state(user: User) -> UserCheckInState:
    """Snapshot of the counters the check-in engine reads."""
    return UserCheckInState.model_validate(user)


def update_user_state(user: User, result: CheckInResult) -> None:
    """Apply an accepted check-in to the user's counters. The caller commits."""
    user.points_balance += result.total_points
    user.total_points_earned += result.total_points
    user.current_streak = result.streak_day
    user.longest_streak = result.longest_streak
    user.total_check_ins += 1
    user.last_check_in_time = result.check_in_time


def register_user(
    db: Session,
    claims: Dict[str, Any],
    company_id: Optional[int] = None,
    department: Optional[str] = None,
) -> Tuple[User, bool]:
    """
    Create the local user for an identity, or return the existing one.

    Args:
        claims: Verified identity token claims (sub, email, name, role, company)
        company_id: Company to join when the token carries no company claim
        department: Optional department name

    Returns:
        (user, created) tuple

    Raises:
        ValueError: If the token lacks an email or the company does not exist
    """
    external_id = str(claims["sub"])
    existing = get_user_by_external_id(db, external_id)
    if existing:
        return existing, False

    email = claims.get("email")
    if not email:
        raise ValueError("Identity token is missing an email claim")

    company_id = claims.get("company") or company_id or settings.DEFAULT_COMPANY_ID
    company = db.query(Company).filter(Company.id == company_id).first()
    if not company:
        raise ValueError("Company not found")

    role = claims.get("role") if claims.get("role") in USER_ROLES else ROLE_EMPLOYEE
    approved = settings.AUTO_APPROVE_USERS or role in ADMIN_ROLES

    user = User(
        external_id=external_id,
        email=email,
        name=claims.get("name") or email.split("@")[0],
        role=role,
        status="approved" if approved else "pending",
        department=department,
        company_id=company.id,
        points_balance=0,
        total_points_earned=0,
        current_streak=0,
        longest_streak=0,
        total_check_ins=0,
    )

    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError:
        # Registered concurrently from another tab/device
        db.rollback()
        return get_user_by_external_id(db, external_id), False

    logger.info("user_registered", user_id=user.id, company_id=company.id, status=user.status)
    return user, True


def list_users(db: Session, company_id: int, status: Optional[str] = None) -> List[User]:
    query = db.query(User).filter(User.company_id == company_id)
    if status:
        query = query.filter(User.status == status)
    return query.order_by(User.name).all()


def set_user_status(db: Session, company_id: int, user_id: int, status: str, actor: str) -> User:
    """
    Approve, reject or suspend a user.

    Raises:
        ValueError: If the status is unknown or the user is not in the company
    """
    if status not in USER_STATUSES:
        raise ValueError(f"Unknown status '{status}'")

    user = db.query(User).filter(User.id == user_id, User.company_id == company_id).first()
    if not user:
        raise ValueError("User not found")

    user.status = status
    if status == "approved":
        user.approved_by = actor
        user.approved_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(user)

    invalidate_leaderboard(company_id)
    logger.info("user_status_changed", user_id=user_id, status=status, actor=actor)
    return user


def adjust_points(
    db: Session,
    company_id: int,
    user_id: int,
    amount: int,
    reason: str,
    actor: str,
) -> User:
    """
    Manually credit or debit a user's balance.

    Credits count towards lifetime points; debits never reduce them.

    Raises:
        ValueError: If amount is zero, the user is unknown, or the balance would go negative
    """
    if amount == 0:
        raise ValueError("Adjustment amount cannot be zero")

    user = db.query(User).filter(User.id == user_id, User.company_id == company_id).first()
    if not user:
        raise ValueError("User not found")

    if user.points_balance + amount < 0:
        raise ValueError("Adjustment would make the points balance negative")

    user.points_balance += amount
    if amount > 0:
        user.total_points_earned += amount

    db.add(PointTransaction(
        user_id=user.id,
        transaction_type="adjusted",
        amount=amount,
        reference_type="admin_adjustment",
        description=reason,
        created_by=actor,
    ))
    db.commit()
    db.refresh(user)

    invalidate_leaderboard(company_id)
    logger.info("points_adjusted", user_id=user_id, amount=amount, actor=actor)
    return user


def get_point_history(db: Session, user_id: int, limit: int = 50) -> List[PointTransaction]:
    return (
        db.query(PointTransaction)
        .filter(PointTransaction.user_id == user_id)
        .order_by(PointTransaction.created_at.desc(), PointTransaction.id.desc())
        .limit(limit)
        .all()
    )


def get_leaderboard(
    db: Session,
    company_id: int,
    limit: int = 10,
    cache: Optional[TTLCache] = None,
) -> List[Dict[str, Any]]:
    """
    Top approved employees by points balance, ties broken by current streak.

    Cached for LEADERBOARD_CACHE_TTL seconds per (company, limit).
    """
    if cache is None:
        cache = global_cache

    def fetch_leaderboard():
        users = (
            db.query(User)
            .filter(
                User.company_id == company_id,
                User.role == ROLE_EMPLOYEE,
                User.status == "approved",
            )
            .order_by(User.points_balance.desc(), User.current_streak.desc(), User.id)
            .limit(limit)
            .all()
        )
        return [
            {
                "rank": index + 1,
                "user_id": user.id,
                "name": user.name,
                "department": user.department,
                "points_balance": user.points_balance,
                "current_streak": user.current_streak,
                "longest_streak": user.longest_streak,
            }
            for index, user in enumerate(users)
        ]

    return get_or_fetch(
        cache,
        leaderboard_cache_key(company_id, limit),
        fetch_leaderboard,
        ttl_seconds=settings.LEADERBOARD_CACHE_TTL,
    )
