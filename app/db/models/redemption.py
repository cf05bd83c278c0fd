"""Redemption model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class Redemption(Base):
    __tablename__ = "redemptions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    reward_id = Column(Integer, ForeignKey("rewards.id"), nullable=False)
    points_spent = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False, default="pending")
    requested_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    processed_at = Column(DateTime(timezone=True), nullable=True)
    processed_by = Column(String(128), nullable=True)
    rejection_reason = Column(String(500), nullable=True)
    fulfillment_notes = Column(String(500), nullable=True)

    # Relationships
    user = relationship("User", back_populates="redemptions")
    reward = relationship("Reward", back_populates="redemptions")

    __table_args__ = (
        Index("idx_redemptions_user", "user_id"),
        Index("idx_redemptions_status", "status"),
    )
