"""PointTransaction model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class PointTransaction(Base):
    __tablename__ = "point_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    transaction_type = Column(String(20), nullable=False)  # earned, bonus, spent, refunded, adjusted
    amount = Column(Integer, nullable=False)  # signed: spending is negative
    reference_type = Column(String(30), nullable=True)  # checkin, redemption, admin_adjustment
    reference_id = Column(Integer, nullable=True)
    description = Column(String(255), nullable=False)
    created_by = Column(String(128), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    user = relationship("User", back_populates="transactions")

    __table_args__ = (Index("idx_point_transactions_user", "user_id"),)
