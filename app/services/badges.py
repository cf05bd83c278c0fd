"""Badge business logic."""
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Set

import structlog
from sqlalchemy.orm import Session, joinedload

from app.core.constants import CLASSIFICATION_EARLY
from app.db.models import Badge, CheckIn, User, UserBadge

logger = structlog.get_logger(__name__)

# Seeded for every new installation
DEFAULT_BADGES = [
    {"code": "welcome_aboard", "name": "Welcome Aboard", "description": "Complete your first check-in",
     "icon": "party", "criteria_type": "checkins", "criteria_value": 1},
    {"code": "early_bird", "name": "Early Bird", "description": "Check in early 5 times",
     "icon": "sunrise", "criteria_type": "early_checkins", "criteria_value": 5},
    {"code": "streak_master", "name": "Streak Master", "description": "Maintain a 7-day streak",
     "icon": "flame", "criteria_type": "streak", "criteria_value": 7},
    {"code": "consistency_champion", "name": "Consistency Champion", "description": "Maintain a 10-day streak",
     "icon": "trophy", "criteria_type": "streak", "criteria_value": 10},
    {"code": "dedication_master", "name": "Dedication Master", "description": "Achieve a 30-day streak",
     "icon": "diamond", "criteria_type": "streak", "criteria_value": 30},
    {"code": "point_collector", "name": "Point Collector", "description": "Earn your first 100 points",
     "icon": "target", "criteria_type": "points", "criteria_value": 100},
    {"code": "rising_star", "name": "Rising Star", "description": "Earn 500 total points",
     "icon": "star", "criteria_type": "points", "criteria_value": 500},
    {"code": "team_player", "name": "Team Player", "description": "Complete 50 check-ins",
     "icon": "handshake", "criteria_type": "checkins", "criteria_value": 50},
    {"code": "company_legend", "name": "Company Legend", "description": "Complete 200 check-ins",
     "icon": "crown", "criteria_type": "checkins", "criteria_value": 200},
]


def evaluate_badges(stats: Dict[str, int], badges: Iterable[Badge], owned_ids: Set[int]) -> List[Badge]:
    """
    Return the badges a user qualifies for but does not hold yet.

    Args:
        stats: Progress per criteria type (streak, points, checkins, early_checkins)
        badges: Candidate badges
        owned_ids: IDs of badges the user already holds
    """
    earned = []
    for badge in badges:
        if not badge.is_active or badge.id in owned_ids:
            continue
        if stats.get(badge.criteria_type, 0) >= badge.criteria_value:
            earned.append(badge)
    return earned


def badge_stats(db: Session, user: User) -> Dict[str, int]:
    """Current progress of a user towards every badge criteria type."""
    early_count = db.query(CheckIn).filter(
        CheckIn.user_id == user.id,
        CheckIn.classification == CLASSIFICATION_EARLY
    ).count()

    return {
        "streak": user.current_streak or 0,
        "points": user.total_points_earned or 0,
        "checkins": user.total_check_ins or 0,
        "early_checkins": early_count,
    }


def award_badges(db: Session, user: User, now: Optional[datetime] = None) -> List[Badge]:
    """
    Add UserBadge rows for newly earned badges.

    Does not commit: runs inside the caller's check-in transaction so badges
    only exist when the check-in that earned them does.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    owned_ids = {
        badge_id for (badge_id,) in db.query(UserBadge.badge_id).filter(UserBadge.user_id == user.id).all()
    }
    candidates = db.query(Badge).filter(Badge.is_active.is_(True)).all()

    earned = evaluate_badges(badge_stats(db, user), candidates, owned_ids)
    for badge in earned:
        db.add(UserBadge(user_id=user.id, badge_id=badge.id, earned_at=now))
        logger.info("badge_awarded", user_id=user.id, badge=badge.code)

    return earned


def serialize_badge(badge: Badge) -> Dict:
    return {
        "code": badge.code,
        "name": badge.name,
        "description": badge.description,
        "icon": badge.icon,
    }


def get_user_badges(db: Session, user_id: int) -> List[Dict]:
    """Badges held by a user, most recent first."""
    user_badges = (
        db.query(UserBadge)
        .options(joinedload(UserBadge.badge))
        .filter(UserBadge.user_id == user_id)
        .order_by(UserBadge.earned_at.desc())
        .all()
    )
    return [
        {**serialize_badge(ub.badge), "earned_at": ub.earned_at}
        for ub in user_badges
    ]
