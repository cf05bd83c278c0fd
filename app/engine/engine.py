"""Check-in evaluation.

``process_check_in`` is the single entry point every caller goes through. It
reads nothing but its arguments (plus the today's-check-in lookup) and writes
nothing: persisting the result is the caller's job.
"""
from datetime import datetime
from typing import Union

from app.core.constants import CLASSIFICATION_EARLY, CLASSIFICATION_LATE
from app.core.utils import to_utc
from app.engine.config import CheckInConfig
from app.engine.models import (
    BonusBreakdown,
    CheckInRejection,
    CheckInResult,
    RejectionKind,
    UserCheckInState,
)
from app.engine.rules import (
    TodaysCheckInLookup,
    already_checked_in_today,
    classify,
    compute_bonuses,
    compute_streak,
    evaluate_window,
    local_day,
)

ALREADY_CHECKED_IN_MESSAGE = "You have already checked in today"


def build_message(classification: str, base_points: int, bonuses: BonusBreakdown, streak_day: int) -> str:
    """Human-readable summary shown to the user after a successful check-in."""
    message = f"Check-in successful! You earned {base_points} point{'' if base_points == 1 else 's'}"
    if classification == CLASSIFICATION_EARLY:
        message += " for checking in early"

    if bonuses.bonus_points > 0:
        message += f" plus {bonuses.bonus_points} bonus points"
        reasons = []
        if bonuses.perfect_week:
            reasons.append("a perfect week")
        if bonuses.streak_bonus or bonuses.milestone:
            reasons.append(f"your {streak_day}-day streak")
        if reasons:
            message += " for " + " and ".join(reasons)
    message += "!"

    if classification == CLASSIFICATION_LATE:
        message += " You made it, keep improving."
    return message


def process_check_in(
    user_id: int,
    now: datetime,
    prior_state: UserCheckInState,
    config: CheckInConfig,
    lookup: TodaysCheckInLookup,
) -> Union[CheckInResult, CheckInRejection]:
    """
    Evaluate a check-in attempt.

    Args:
        user_id: User attempting to check in
        now: Instant of the attempt (naive values are treated as UTC)
        prior_state: The user's counters before this check-in
        config: Active check-in configuration for the user's company
        lookup: Returns the stored check-in for (user_id, local day) or None

    Returns:
        CheckInResult when accepted, CheckInRejection otherwise
    """
    now = to_utc(now)

    if already_checked_in_today(user_id, now, config, lookup):
        return CheckInRejection(
            kind=RejectionKind.ALREADY_CHECKED_IN,
            message=ALREADY_CHECKED_IN_MESSAGE,
        )

    window = evaluate_window(now, config)
    if not window.allowed:
        return CheckInRejection(
            kind=RejectionKind.OUTSIDE_WINDOW,
            message=window.reason,
            window=f"{config.window_start}-{config.window_end} {config.timezone}",
            local_time=window.local_time,
        )

    classification = classify(now, config)
    base_points = config.points_for(classification)
    streak = compute_streak(prior_state, now, config)
    bonuses = compute_bonuses(streak.streak_day, config)

    return CheckInResult(
        user_id=user_id,
        check_in_time=now,
        local_date=local_day(now, config),
        classification=classification,
        base_points=base_points,
        bonus_points=bonuses.bonus_points,
        total_points=base_points + bonuses.bonus_points,
        streak_day=streak.streak_day,
        longest_streak=streak.longest_streak,
        bonuses=bonuses,
        message=build_message(classification, base_points, bonuses, streak.streak_day),
    )
