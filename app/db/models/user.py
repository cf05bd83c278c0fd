"""User model."""
from datetime import datetime, timezone as tz
from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    external_id = Column(String(128), unique=True, nullable=False, index=True)  # identity provider subject
    email = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    role = Column(String(20), nullable=False, default="employee")
    status = Column(String(20), nullable=False, default="pending")
    department = Column(String(50), nullable=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)

    # Check-in state
    points_balance = Column(Integer, nullable=False, default=0)
    total_points_earned = Column(Integer, nullable=False, default=0)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    total_check_ins = Column(Integer, nullable=False, default=0)
    last_check_in_time = Column(DateTime(timezone=True), nullable=True)

    approved_by = Column(String(128), nullable=True)
    approved_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    company = relationship("Company", back_populates="users")
    check_ins = relationship("CheckIn", back_populates="user", cascade="all, delete-orphan")
    transactions = relationship("PointTransaction", back_populates="user", cascade="all, delete-orphan")
    redemptions = relationship("Redemption", back_populates="user", cascade="all, delete-orphan")
    badges = relationship("UserBadge", back_populates="user", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_users_company", "company_id"),
        CheckConstraint("points_balance >= 0", name="ck_users_points_balance_non_negative"),
    )
