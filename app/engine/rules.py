"""Check-in rules: window gating, classification, streaks and bonuses.

All functions are pure. Times are compared at minute resolution in the
configured timezone: 08:59:59 local counts as 08:59.

Boundary conventions:
- The window is inclusive-exclusive: ``window_start <= now < window_end``.
- A time equal to a cutoff belongs to the earlier bucket, so 07:45 with an
  early cutoff of 07:45 is "early".
"""
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from app.core.constants import (
    CLASSIFICATION_EARLY,
    CLASSIFICATION_LATE,
    CLASSIFICATION_ON_TIME,
    PERFECT_WEEK_LENGTH,
)
from app.core.utils import format_minutes, previous_weekday, to_timezone
from app.engine.config import CheckInConfig
from app.engine.models import BonusBreakdown, StreakUpdate, UserCheckInState, WindowDecision

# lookup(user_id, local_day) -> the stored check-in for that day, or None
TodaysCheckInLookup = Callable[[int, date], Optional[Any]]


def local_now(now: datetime, config: CheckInConfig) -> datetime:
    """Convert an instant to the configured timezone (naive values are UTC)."""
    return to_timezone(now, config.tz)


def local_minutes(now: datetime, config: CheckInConfig) -> int:
    local = local_now(now, config)
    return local.hour * 60 + local.minute


def local_day(now: datetime, config: CheckInConfig) -> date:
    """The calendar day ``now`` falls on in the configured timezone."""
    return local_now(now, config).date()


def evaluate_window(now: datetime, config: CheckInConfig) -> WindowDecision:
    """Decide whether ``now`` falls inside the check-in window."""
    minutes = local_minutes(now, config)
    local_time = format_minutes(minutes)
    allowed = config.window_start_minutes <= minutes < config.window_end_minutes

    if allowed:
        return WindowDecision(allowed=True, local_time=local_time)

    return WindowDecision(
        allowed=False,
        local_time=local_time,
        reason=(
            f"Check-in is only available between {config.window_start} and "
            f"{config.window_end} ({config.timezone}). Current time: {local_time}."
        ),
    )


def classify(now: datetime, config: CheckInConfig) -> str:
    """Bucket a check-in time as early, ontime or late."""
    minutes = local_minutes(now, config)
    if minutes <= config.early_cutoff_minutes:
        return CLASSIFICATION_EARLY
    if minutes <= config.on_time_cutoff_minutes:
        return CLASSIFICATION_ON_TIME
    return CLASSIFICATION_LATE


def already_checked_in_today(
    user_id: int,
    now: datetime,
    config: CheckInConfig,
    lookup: TodaysCheckInLookup,
) -> bool:
    """Ask the persistence lookup whether a check-in exists for today's local day."""
    return lookup(user_id, local_day(now, config)) is not None


def _expected_previous_day(today: date, config: CheckInConfig) -> date:
    if config.streak_policy == "weekday":
        return previous_weekday(today)
    return today - timedelta(days=1)


def compute_streak(prior_state: UserCheckInState, now: datetime, config: CheckInConfig) -> StreakUpdate:
    """
    Work out the streak day this check-in lands on.

    The streak continues only when the previous check-in was on the
    immediately preceding day (calendar day, or weekday under the
    ``weekday`` policy). Any other gap, including a previous check-in dated
    today or in the future, starts over at 1.
    """
    if prior_state.last_check_in_time is None:
        streak_day = 1
    else:
        today = local_day(now, config)
        last_day = local_day(prior_state.last_check_in_time, config)
        if last_day == _expected_previous_day(today, config):
            streak_day = prior_state.current_streak + 1
        else:
            streak_day = 1

    return StreakUpdate(
        streak_day=streak_day,
        longest_streak=max(prior_state.longest_streak, streak_day),
    )


def compute_bonuses(streak_day: int, config: CheckInConfig) -> BonusBreakdown:
    """Bonuses earned on a streak day. Every bonus that fires is added."""
    breakdown = BonusBreakdown()
    if streak_day < 1:
        return breakdown

    if streak_day % PERFECT_WEEK_LENGTH == 0:
        breakdown.perfect_week = True
        breakdown.bonus_points += config.perfect_week_bonus
        breakdown.reasons.append("perfect week")

    if streak_day % config.streak_bonus_interval == 0:
        breakdown.streak_bonus = True
        breakdown.bonus_points += config.streak_bonus
        breakdown.reasons.append(f"{streak_day}-day streak")

    milestone_points = config.milestone_bonuses.get(streak_day)
    if milestone_points is not None:
        breakdown.milestone = True
        breakdown.bonus_points += milestone_points
        breakdown.reasons.append(f"{streak_day}-day milestone")

    return breakdown
