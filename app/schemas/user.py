"""User, ledger, badge and leaderboard schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.sanitization import MAX_DEPARTMENT_LENGTH, sanitize_optional_text, sanitize_text


class RegisterRequest(BaseModel):
    department: Optional[str] = Field(None, max_length=MAX_DEPARTMENT_LENGTH)

    @field_validator('department')
    @classmethod
    def sanitize_department_field(cls, v: Optional[str]) -> Optional[str]:
        return sanitize_optional_text(v, MAX_DEPARTMENT_LENGTH)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    role: str
    status: str
    department: Optional[str] = None
    company_id: int
    points_balance: int
    total_points_earned: int
    current_streak: int
    longest_streak: int
    total_check_ins: int
    last_check_in_time: Optional[datetime] = None


class RegisterResponse(BaseModel):
    user: UserResponse
    created: bool


class PointTransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    transaction_type: str
    amount: int
    reference_type: Optional[str] = None
    reference_id: Optional[int] = None
    description: str
    created_at: datetime


class UserBadgeResponse(BaseModel):
    code: str
    name: str
    description: str
    icon: Optional[str] = None
    earned_at: datetime


class LeaderboardEntry(BaseModel):
    rank: int
    user_id: int
    name: str
    department: Optional[str] = None
    points_balance: int
    current_streak: int
    longest_streak: int


class UserStatusUpdate(BaseModel):
    status: str


class PointsAdjustment(BaseModel):
    amount: int
    reason: str = Field(..., min_length=1, max_length=255)

    @field_validator('reason')
    @classmethod
    def sanitize_reason_field(cls, v: str) -> str:
        sanitized = sanitize_text(v, max_length=255)
        if not sanitized:
            raise ValueError("Reason cannot be empty")
        return sanitized
