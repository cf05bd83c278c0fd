"""Admin live activity feed.

Builds the snapshot streamed to the admin dashboard over SSE: today's
check-in counts plus the most recent check-ins, redemptions and badges
merged into one newest-first feed.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from app.core.cache import TTLCache, get_or_fetch, global_cache
from app.core.constants import CLASSIFICATIONS
from app.core.utils import local_day_bounds, to_utc
from app.db.models import CheckIn, Redemption, User, UserBadge
from app.engine import local_day
from app.services.config import get_active_config

FEED_SIZE = 20
ACTIVITY_CACHE_TTL = 3.0


def activity_cache_key(company_id: int) -> str:
    return f"activity:{company_id}"


def _check_in_events(db: Session, company_id: int, limit: int) -> List[Dict[str, Any]]:
    check_ins = (
        db.query(CheckIn)
        .join(User, CheckIn.user_id == User.id)
        .options(joinedload(CheckIn.user))
        .filter(User.company_id == company_id)
        .order_by(CheckIn.check_in_time.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "type": "user_checked_in",
            "timestamp": to_utc(c.check_in_time),
            "user_id": c.user_id,
            "user_name": c.user.name,
            "details": {
                "classification": c.classification,
                "points": c.total_points,
                "streak_day": c.streak_day,
            },
        }
        for c in check_ins
    ]


def _redemption_events(db: Session, company_id: int, limit: int) -> List[Dict[str, Any]]:
    redemptions = (
        db.query(Redemption)
        .join(User, Redemption.user_id == User.id)
        .options(joinedload(Redemption.user), joinedload(Redemption.reward))
        .filter(User.company_id == company_id)
        .order_by(Redemption.requested_at.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "type": "reward_redeemed",
            "timestamp": to_utc(r.requested_at),
            "user_id": r.user_id,
            "user_name": r.user.name,
            "details": {"reward": r.reward.name, "points_spent": r.points_spent, "status": r.status},
        }
        for r in redemptions
    ]


def _badge_events(db: Session, company_id: int, limit: int) -> List[Dict[str, Any]]:
    user_badges = (
        db.query(UserBadge)
        .join(User, UserBadge.user_id == User.id)
        .options(joinedload(UserBadge.user), joinedload(UserBadge.badge))
        .filter(User.company_id == company_id)
        .order_by(UserBadge.earned_at.desc())
        .limit(limit)
        .all()
    )
    return [
        {
            "type": "achievement_unlocked",
            "timestamp": to_utc(ub.earned_at),
            "user_id": ub.user_id,
            "user_name": ub.user.name,
            "details": {"badge": ub.badge.name, "icon": ub.badge.icon},
        }
        for ub in user_badges
    ]


def get_activity_feed(db: Session, company_id: int, limit: int = FEED_SIZE) -> List[Dict[str, Any]]:
    """Most recent events of every kind, newest first, timestamps as ISO strings."""
    events = (
        _check_in_events(db, company_id, limit)
        + _redemption_events(db, company_id, limit)
        + _badge_events(db, company_id, limit)
    )
    events.sort(key=lambda e: e["timestamp"], reverse=True)
    return [{**e, "timestamp": e["timestamp"].isoformat()} for e in events[:limit]]


def get_realtime_stats(db: Session, company_id: int, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Counters for the dashboard header."""
    if now is None:
        now = datetime.now(timezone.utc)
    config = get_active_config(db, company_id)
    today = local_day(now, config)

    rows = (
        db.query(CheckIn.classification, func.count(CheckIn.id))
        .join(User, CheckIn.user_id == User.id)
        .filter(User.company_id == company_id, CheckIn.check_in_date == today)
        .group_by(CheckIn.classification)
        .all()
    )
    by_classification = {c: 0 for c in CLASSIFICATIONS}
    by_classification.update(dict(rows))

    active_employees = db.query(func.count(User.id)).filter(
        User.company_id == company_id,
        User.status == "approved"
    ).scalar()
    pending_users = db.query(func.count(User.id)).filter(
        User.company_id == company_id,
        User.status == "pending"
    ).scalar()
    pending_redemptions = (
        db.query(func.count(Redemption.id))
        .join(User, Redemption.user_id == User.id)
        .filter(User.company_id == company_id, Redemption.status == "pending")
        .scalar()
    )

    points_today = (
        db.query(func.coalesce(func.sum(CheckIn.base_points + CheckIn.bonus_points), 0))
        .join(User, CheckIn.user_id == User.id)
        .filter(User.company_id == company_id, CheckIn.check_in_date == today)
        .scalar()
    )

    checked_in = sum(by_classification.values())
    day_start, _ = local_day_bounds(today, config.tz)
    return {
        "date": today.isoformat(),
        "day_started_at": day_start.isoformat(),
        "checked_in_today": checked_in,
        "by_classification": by_classification,
        "active_employees": active_employees,
        "participation_rate": round(checked_in / active_employees * 100, 1) if active_employees else 0.0,
        "points_awarded_today": points_today,
        "pending_users": pending_users,
        "pending_redemptions": pending_redemptions,
    }


def get_activity_snapshot(
    db: Session,
    company_id: int,
    now: Optional[datetime] = None,
    cache: Optional[TTLCache] = None,
) -> Dict[str, Any]:
    """
    Stats plus feed, cached briefly so several open dashboards share one query.
    """
    if cache is None:
        cache = global_cache

    def fetch_snapshot():
        return {
            "type": "realtime_stats",
            "stats": get_realtime_stats(db, company_id, now),
            "feed": get_activity_feed(db, company_id),
        }

    return get_or_fetch(cache, activity_cache_key(company_id), fetch_snapshot, ttl_seconds=ACTIVITY_CACHE_TTL)


def get_company_analytics(
    db: Session,
    company_id: int,
    now: Optional[datetime] = None,
    days: int = 30,
) -> Dict[str, Any]:
    """
    Participation over the last ``days`` local days.

    Returns daily check-in counts (oldest first, days without check-ins
    included as zero), the classification split, redemptions by status and
    the users holding the longest streaks.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    config = get_active_config(db, company_id)
    today = local_day(now, config)
    first_day = today - timedelta(days=days - 1)

    daily_rows = (
        db.query(CheckIn.check_in_date, func.count(CheckIn.id))
        .join(User, CheckIn.user_id == User.id)
        .filter(User.company_id == company_id, CheckIn.check_in_date >= first_day)
        .group_by(CheckIn.check_in_date)
        .all()
    )
    per_day = dict(daily_rows)
    daily = [
        {"date": (first_day + timedelta(days=i)).isoformat(), "check_ins": per_day.get(first_day + timedelta(days=i), 0)}
        for i in range(days)
    ]

    class_rows = (
        db.query(CheckIn.classification, func.count(CheckIn.id))
        .join(User, CheckIn.user_id == User.id)
        .filter(User.company_id == company_id, CheckIn.check_in_date >= first_day)
        .group_by(CheckIn.classification)
        .all()
    )
    classifications = {c: 0 for c in CLASSIFICATIONS}
    classifications.update(dict(class_rows))

    redemption_rows = (
        db.query(Redemption.status, func.count(Redemption.id))
        .join(User, Redemption.user_id == User.id)
        .filter(User.company_id == company_id)
        .group_by(Redemption.status)
        .all()
    )

    top_streaks = (
        db.query(User)
        .filter(User.company_id == company_id, User.status == "approved")
        .order_by(User.longest_streak.desc(), User.id)
        .limit(5)
        .all()
    )

    return {
        "from": first_day.isoformat(),
        "to": today.isoformat(),
        "daily": daily,
        "classifications": classifications,
        "redemptions_by_status": dict(redemption_rows),
        "top_streaks": [
            {"user_id": u.id, "name": u.name, "longest_streak": u.longest_streak, "current_streak": u.current_streak}
            for u in top_streaks
        ],
    }
