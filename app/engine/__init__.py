"""Check-in engine: pure rules for window gating, points, streaks and bonuses."""
from app.engine.config import CheckInConfig, InvalidConfigError, default_config_dict, load_config
from app.engine.engine import ALREADY_CHECKED_IN_MESSAGE, build_message, process_check_in
from app.engine.models import (
    BonusBreakdown,
    CheckInRejection,
    CheckInResult,
    RejectionKind,
    StreakUpdate,
    UserCheckInState,
    WindowDecision,
)
from app.engine.rules import (
    already_checked_in_today,
    classify,
    compute_bonuses,
    compute_streak,
    evaluate_window,
    local_day,
)

__all__ = [
    # config
    "CheckInConfig",
    "InvalidConfigError",
    "default_config_dict",
    "load_config",
    # rules
    "already_checked_in_today",
    "classify",
    "compute_bonuses",
    "compute_streak",
    "evaluate_window",
    "local_day",
    # engine
    "ALREADY_CHECKED_IN_MESSAGE",
    "build_message",
    "process_check_in",
    # models
    "BonusBreakdown",
    "CheckInRejection",
    "CheckInResult",
    "RejectionKind",
    "StreakUpdate",
    "UserCheckInState",
    "WindowDecision",
]
