"""Admin schemas: company check-in settings and QR codes."""
from datetime import datetime
from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, Field


class CheckInSettingsUpdate(BaseModel):
    """Partial update; omitted fields keep their stored value."""
    model_config = ConfigDict(extra="forbid")

    window_start: Optional[str] = None
    window_end: Optional[str] = None
    timezone: Optional[str] = None
    early_cutoff: Optional[str] = None
    on_time_cutoff: Optional[str] = None
    early_points: Optional[int] = None
    on_time_points: Optional[int] = None
    late_points: Optional[int] = None
    perfect_week_bonus: Optional[int] = None
    streak_bonus: Optional[int] = None
    streak_bonus_interval: Optional[int] = None
    milestone_bonuses: Optional[Dict[int, int]] = None
    streak_policy: Optional[str] = None
    require_qr_code: Optional[bool] = None


class QrCodeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    valid_from: datetime
    valid_until: Optional[datetime] = None
    is_active: bool
    rotation_strategy: str
    usage_count: int


class QrRotateRequest(BaseModel):
    strategy: str = "manual"


class AdminLoginRequest(BaseModel):
    password: str = Field(..., min_length=1)
