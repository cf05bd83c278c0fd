"""Badge and UserBadge models."""
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class Badge(Base):
    __tablename__ = "badges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    code = Column(String(50), unique=True, nullable=False)
    name = Column(String(100), nullable=False)
    description = Column(String(255), nullable=False)
    icon = Column(String(50), nullable=True)
    criteria_type = Column(String(20), nullable=False)  # streak, points, checkins, early_checkins
    criteria_value = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Relationships
    holders = relationship("UserBadge", back_populates="badge", cascade="all, delete-orphan")


class UserBadge(Base):
    __tablename__ = "user_badges"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    badge_id = Column(Integer, ForeignKey("badges.id", ondelete="CASCADE"), nullable=False)
    earned_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    user = relationship("User", back_populates="badges")
    badge = relationship("Badge", back_populates="holders")

    __table_args__ = (
        Index("idx_user_badges_user", "user_id"),
        UniqueConstraint("user_id", "badge_id", name="uq_user_badge"),
    )
