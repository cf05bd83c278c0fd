"""Check-in schemas."""
from datetime import date, datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.sanitization import sanitize_qr_code, sanitize_optional_text


class CheckInRequest(BaseModel):
    qr_code: Optional[str] = Field(None, max_length=200)  # bare code or the scanned URL
    location: Optional[str] = Field(None, max_length=200)

    @field_validator('qr_code')
    @classmethod
    def sanitize_qr_code_field(cls, v: Optional[str]) -> Optional[str]:
        """Reduce a scanned payload to its code."""
        if v is None:
            return v
        return sanitize_qr_code(v)

    @field_validator('location')
    @classmethod
    def sanitize_location_field(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_optional_text(v, 200)


class Quote(BaseModel):
    text: str
    author: str


class EarnedBadge(BaseModel):
    code: str
    name: str
    description: str
    icon: Optional[str] = None


class CheckInResponse(BaseModel):
    check_in_id: int
    check_in_time: datetime
    local_date: date
    classification: str
    base_points: int
    bonus_points: int
    total_points: int
    streak_day: int
    longest_streak: int
    bonus_reasons: List[str]
    points_balance: int
    message: str
    quote: Quote
    new_badges: List[EarnedBadge]


class CheckInRecord(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    check_in_time: datetime
    check_in_date: date
    classification: str
    base_points: int
    bonus_points: int
    total_points: int
    streak_day: int
    bonus_reason: Optional[str] = None


class TodayStatus(BaseModel):
    checked_in: bool
    check_in: Optional[CheckInRecord] = None
    window_open: bool
    window_start: str
    window_end: str
    timezone: str
    local_time: str


class CheckInStats(BaseModel):
    total_check_ins: int
    current_streak: int
    longest_streak: int
    perfect_weeks: int
    points_balance: int
    total_points_earned: int
    average_check_in_time: Optional[str] = None
    classification_counts: Dict[str, int]
