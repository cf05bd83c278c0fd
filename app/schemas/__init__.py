"""Pydantic schemas for request/response validation."""
from app.schemas.checkin import (
    CheckInRecord,
    CheckInRequest,
    CheckInResponse,
    CheckInStats,
    EarnedBadge,
    Quote,
    TodayStatus,
)
from app.schemas.user import (
    LeaderboardEntry,
    PointsAdjustment,
    PointTransactionResponse,
    RegisterRequest,
    RegisterResponse,
    UserBadgeResponse,
    UserResponse,
    UserStatusUpdate,
)
from app.schemas.reward import (
    RedeemResponse,
    RedemptionDecision,
    RedemptionFulfillment,
    RedemptionResponse,
    RewardCreate,
    RewardResponse,
    RewardUpdate,
)
from app.schemas.admin import AdminLoginRequest, CheckInSettingsUpdate, QrCodeResponse, QrRotateRequest
from app.schemas.common import RejectionDetail, RejectionResponse, SuccessResponse

__all__ = [
    "AdminLoginRequest",
    "CheckInRecord",
    "CheckInRequest",
    "CheckInResponse",
    "CheckInStats",
    "EarnedBadge",
    "Quote",
    "TodayStatus",
    "LeaderboardEntry",
    "PointsAdjustment",
    "PointTransactionResponse",
    "RegisterRequest",
    "RegisterResponse",
    "UserBadgeResponse",
    "UserResponse",
    "UserStatusUpdate",
    "RedeemResponse",
    "RedemptionDecision",
    "RedemptionFulfillment",
    "RedemptionResponse",
    "RewardCreate",
    "RewardResponse",
    "RewardUpdate",
    "CheckInSettingsUpdate",
    "QrCodeResponse",
    "QrRotateRequest",
    "RejectionDetail",
    "RejectionResponse",
    "SuccessResponse",
]
