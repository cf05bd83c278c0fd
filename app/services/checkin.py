"""Check-in business logic.

The engine decides; this module reads the inputs it needs and writes its
result. A check-in record, the user's counters, the ledger rows and any badges
it earns are committed in one transaction. The ``(user_id, check_in_date)``
unique constraint is what actually prevents a double award: the read in the
engine is only a fast path for the common case.
"""
import random
from collections import Counter
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Union

import structlog
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.core.cache import TTLCache
from app.core.constants import CLASSIFICATIONS, MOTIVATIONAL_QUOTES, PERFECT_WEEK_LENGTH
from app.core.exceptions import PersistenceError
from app.core.utils import format_minutes, previous_weekday, to_timezone, to_utc
from app.db.models import CheckIn, PointTransaction, QrCode, User
from app.engine import (
    ALREADY_CHECKED_IN_MESSAGE,
    CheckInConfig,
    CheckInRejection,
    CheckInResult,
    RejectionKind,
    local_day,
    process_check_in,
)
from app.services.badges import award_badges, serialize_badge
from app.services.config import get_active_config
from app.services.qr_codes import validate_qr_code
from app.services.users import get_user_state, invalidate_leaderboard, update_user_state

logger = structlog.get_logger(__name__)

INVALID_QR_CODE_MESSAGE = "This QR code is not valid or has expired"


def get_check_in_for_day(db: Session, user_id: int, day: date) -> Optional[CheckIn]:
    """The user's check-in for a local calendar day, if any."""
    return db.query(CheckIn).filter(
        CheckIn.user_id == user_id,
        CheckIn.check_in_date == day
    ).first()


def _check_in_recorded(db: Session, user_id: int, day: date) -> bool:
    """Authoritative re-read after a failed write, bypassing the engine's lookup."""
    return db.query(CheckIn.id).filter(
        CheckIn.user_id == user_id,
        CheckIn.check_in_date == day
    ).first() is not None


def get_todays_check_in(
    db: Session,
    user_id: int,
    config: CheckInConfig,
    now: Optional[datetime] = None,
) -> Optional[CheckIn]:
    """The user's check-in for today in the configured timezone."""
    if now is None:
        now = datetime.now(timezone.utc)
    return get_check_in_for_day(db, user_id, local_day(now, config))


def pick_quote(classification: str, rng: Optional[random.Random] = None) -> Dict[str, str]:
    quotes = MOTIVATIONAL_QUOTES[classification]
    return (rng or random).choice(quotes)


def _bonus_reason(result: CheckInResult) -> Optional[str]:
    if not result.bonuses.reasons:
        return None
    return ", ".join(result.bonuses.reasons)


def write_check_in(
    db: Session,
    user: User,
    result: CheckInResult,
    qr_record: Optional[QrCode] = None,
    location: Optional[str] = None,
) -> CheckIn:
    """
    Stage an accepted check-in: the record, the user's counters, ledger rows
    for base and bonus points, and the QR usage count.

    Nothing is committed; the caller owns the transaction. The record is
    flushed first so a second check-in for the same day fails with
    IntegrityError before anything else is queued.
    """
    record = CheckIn(
        user_id=user.id,
        check_in_time=result.check_in_time,
        check_in_date=result.local_date,
        classification=result.classification,
        base_points=result.base_points,
        bonus_points=result.bonus_points,
        streak_day=result.streak_day,
        bonus_reason=_bonus_reason(result),
        qr_code=qr_record.code if qr_record else None,
        location=location,
    )
    db.add(record)
    update_user_state(user, result)
    db.flush()

    ledger = (
        ("earned", result.base_points, f"{result.classification} check-in"),
        ("bonus", result.bonus_points, f"Streak bonus: {_bonus_reason(result)}"),
    )
    for transaction_type, amount, description in ledger:
        if amount > 0:
            db.add(PointTransaction(
                user_id=user.id,
                transaction_type=transaction_type,
                amount=amount,
                reference_type="checkin",
                reference_id=record.id,
                description=description,
            ))
    if qr_record is not None:
        # Incremented in SQL so concurrent scans of the same code all count
        qr_record.usage_count = QrCode.usage_count + 1

    db.flush()
    return record


def perform_check_in(
    db: Session,
    user: User,
    now: Optional[datetime] = None,
    qr_code: Optional[str] = None,
    location: Optional[str] = None,
    cache: Optional[TTLCache] = None,
    rng: Optional[random.Random] = None,
) -> Union[CheckInRejection, Dict[str, Any]]:
    """
    Run a check-in attempt end to end.

    Args:
        db: Database session
        user: The user checking in
        now: Instant of the attempt (defaults to the current time)
        qr_code: Scanned QR code, required when the company config demands it
        location: Optional free-form location reported by the client
        cache: Cache for the active configuration
        rng: Random source for the motivational quote

    Returns:
        CheckInRejection when refused, otherwise a dict with the committed
        check-in id, the engine result, a quote and any newly earned badges

    Raises:
        PermissionError: If the user is not approved
        InvalidConfigError: If the company's configuration is missing or invalid
        PersistenceError: If the write failed; nothing was committed
    """
    now = to_utc(now or datetime.now(timezone.utc))

    if user.status != "approved":
        raise PermissionError("Your account is not approved for check-ins yet")

    config = get_active_config(db, user.company_id, cache)
    outcome = process_check_in(
        user.id,
        now,
        get_user_state(user),
        config,
        lambda user_id, day: get_check_in_for_day(db, user_id, day),
    )

    if isinstance(outcome, CheckInRejection):
        logger.info("check_in_rejected", user_id=user.id, kind=outcome.kind.value)
        return outcome

    qr_record = None
    if config.require_qr_code:
        qr_record = validate_qr_code(db, user.company_id, qr_code, now)
        if qr_record is None:
            logger.info("check_in_rejected", user_id=user.id, kind=RejectionKind.INVALID_QR_CODE.value)
            return CheckInRejection(kind=RejectionKind.INVALID_QR_CODE, message=INVALID_QR_CODE_MESSAGE)

    try:
        record = write_check_in(db, user, outcome, qr_record=qr_record, location=location)
        new_badges = award_badges(db, user, now)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        if not _check_in_recorded(db, user.id, outcome.local_date):
            # Some other constraint failed; this is not a duplicate check-in
            logger.error("check_in_persist_failed", user_id=user.id, error=str(e))
            raise PersistenceError(PersistenceError.user_message) from e
        # Lost the race against a concurrent check-in for the same day
        logger.info("check_in_duplicate_write", user_id=user.id, day=outcome.local_date.isoformat())
        return CheckInRejection(kind=RejectionKind.ALREADY_CHECKED_IN, message=ALREADY_CHECKED_IN_MESSAGE)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("check_in_persist_failed", user_id=user.id, error=str(e))
        raise PersistenceError(PersistenceError.user_message) from e

    invalidate_leaderboard(user.company_id)
    logger.info(
        "check_in_accepted",
        user_id=user.id,
        classification=outcome.classification,
        total_points=outcome.total_points,
        streak_day=outcome.streak_day,
    )

    return {
        "check_in_id": record.id,
        "result": outcome,
        "quote": pick_quote(outcome.classification, rng),
        "new_badges": [serialize_badge(badge) for badge in new_badges],
        "points_balance": user.points_balance,
    }


def get_user_check_ins(db: Session, user_id: int, limit: int = 30) -> List[CheckIn]:
    return (
        db.query(CheckIn)
        .filter(CheckIn.user_id == user_id)
        .order_by(CheckIn.check_in_time.desc())
        .limit(limit)
        .all()
    )


def effective_streak(user: User, config: CheckInConfig, now: datetime) -> int:
    """
    The streak as the user would see it today.

    The stored streak only changes on check-in, so after a missed day it is
    stale until the next one; report 0 once the streak can no longer continue.
    """
    if not user.last_check_in_time or not user.current_streak:
        return 0

    today = local_day(now, config)
    last_day = local_day(user.last_check_in_time, config)
    if config.streak_policy == "weekday":
        still_alive = last_day >= previous_weekday(today)
    else:
        still_alive = (today - last_day).days <= 1
    return user.current_streak if still_alive else 0


def get_check_in_stats(
    db: Session,
    user: User,
    now: Optional[datetime] = None,
    cache: Optional[TTLCache] = None,
) -> Dict[str, Any]:
    """Summary statistics for a user's profile page."""
    now = to_utc(now or datetime.now(timezone.utc))
    config = get_active_config(db, user.company_id, cache)

    check_ins = db.query(CheckIn.check_in_time, CheckIn.classification).filter(
        CheckIn.user_id == user.id
    ).all()

    average_time = None
    if check_ins:
        local_times = [to_timezone(check_in_time, config.tz) for check_in_time, _ in check_ins]
        minutes = [t.hour * 60 + t.minute for t in local_times]
        average_time = format_minutes(round(sum(minutes) / len(minutes)))

    counts = Counter(classification for _, classification in check_ins)

    return {
        "total_check_ins": user.total_check_ins,
        "current_streak": effective_streak(user, config, now),
        "longest_streak": user.longest_streak,
        "perfect_weeks": user.longest_streak // PERFECT_WEEK_LENGTH,
        "points_balance": user.points_balance,
        "total_points_earned": user.total_points_earned,
        "average_check_in_time": average_time,
        "classification_counts": {c: counts.get(c, 0) for c in CLASSIFICATIONS},
    }


def get_todays_check_ins(
    db: Session,
    company_id: int,
    config: CheckInConfig,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """All check-ins for a company's current local day (admin dashboard)."""
    if now is None:
        now = datetime.now(timezone.utc)
    today = local_day(now, config)

    check_ins = (
        db.query(CheckIn)
        .join(User, CheckIn.user_id == User.id)
        .options(joinedload(CheckIn.user))
        .filter(User.company_id == company_id, CheckIn.check_in_date == today)
        .order_by(CheckIn.check_in_time)
        .all()
    )

    return [
        {
            "id": check_in.id,
            "user_id": check_in.user_id,
            "user_name": check_in.user.name,
            "check_in_time": to_timezone(check_in.check_in_time, config.tz).isoformat(),
            "classification": check_in.classification,
            "base_points": check_in.base_points,
            "bonus_points": check_in.bonus_points,
            "streak_day": check_in.streak_day,
        }
        for check_in in check_ins
    ]
