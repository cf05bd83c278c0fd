"""Value types produced and consumed by the check-in engine."""
from datetime import date, datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserCheckInState(BaseModel):
    """A user's streak and point counters before a check-in."""

    model_config = ConfigDict(from_attributes=True)

    current_streak: int = Field(0, ge=0)
    longest_streak: int = Field(0, ge=0)
    points_balance: int = Field(0, ge=0)
    total_points_earned: int = Field(0, ge=0)
    last_check_in_time: Optional[datetime] = None


class WindowDecision(BaseModel):
    allowed: bool
    local_time: str
    reason: Optional[str] = None


class StreakUpdate(BaseModel):
    streak_day: int
    longest_streak: int


class BonusBreakdown(BaseModel):
    """Which bonuses fired for a streak day; all of them add up."""

    perfect_week: bool = False
    streak_bonus: bool = False
    milestone: bool = False
    bonus_points: int = 0
    reasons: List[str] = Field(default_factory=list)


class RejectionKind(str, Enum):
    ALREADY_CHECKED_IN = "already_checked_in"
    OUTSIDE_WINDOW = "outside_window"
    INVALID_QR_CODE = "invalid_qr_code"


class CheckInRejection(BaseModel):
    """A check-in that was refused; returned as a value, not raised."""

    accepted: Literal[False] = False
    kind: RejectionKind
    message: str
    window: Optional[str] = None
    local_time: Optional[str] = None


class CheckInResult(BaseModel):
    """An accepted check-in, ready for the caller to persist."""

    accepted: Literal[True] = True
    user_id: int
    check_in_time: datetime
    local_date: date
    classification: Literal["early", "ontime", "late"]
    base_points: int
    bonus_points: int
    total_points: int
    streak_day: int
    longest_streak: int
    bonuses: BonusBreakdown
    message: str
