"""Reward and redemption schemas."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field

from app.core.constants import MAX_REWARD_COST, MIN_REWARD_COST


class RewardCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    points_cost: int = Field(..., ge=MIN_REWARD_COST, le=MAX_REWARD_COST)
    category: str = "weekly"
    icon: Optional[str] = Field(None, max_length=50)
    quantity_available: Optional[int] = Field(None, ge=0)


class RewardUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=500)
    points_cost: Optional[int] = Field(None, ge=MIN_REWARD_COST, le=MAX_REWARD_COST)
    category: Optional[str] = None
    icon: Optional[str] = Field(None, max_length=50)
    quantity_available: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class RewardResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    points_cost: int
    category: str
    icon: Optional[str] = None
    quantity_available: Optional[int] = None
    is_active: bool


class RedemptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    reward_id: int
    points_spent: int
    status: str
    requested_at: datetime
    processed_at: Optional[datetime] = None
    processed_by: Optional[str] = None
    rejection_reason: Optional[str] = None
    fulfillment_notes: Optional[str] = None


class RedeemResponse(BaseModel):
    redemption: RedemptionResponse
    points_balance: int


class RedemptionDecision(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class RedemptionFulfillment(BaseModel):
    notes: Optional[str] = Field(None, max_length=500)
