"""Reward model."""
from sqlalchemy import Boolean, CheckConstraint, Column, Integer, String, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class Reward(Base):
    __tablename__ = "rewards"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    points_cost = Column(Integer, nullable=False)
    category = Column(String(20), nullable=False, default="weekly")
    icon = Column(String(50), nullable=True)
    quantity_available = Column(Integer, nullable=True)  # None means unlimited
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    company = relationship("Company", back_populates="rewards")
    redemptions = relationship("Redemption", back_populates="reward")

    __table_args__ = (
        Index("idx_rewards_company", "company_id"),
        CheckConstraint("points_cost >= 1", name="ck_rewards_points_cost_positive"),
    )
