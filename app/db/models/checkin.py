"""CheckIn model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, Date, DateTime, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class CheckIn(Base):
    __tablename__ = "check_ins"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    check_in_time = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    check_in_date = Column(Date, nullable=False)  # local calendar day in the company timezone
    classification = Column(String(10), nullable=False)
    base_points = Column(Integer, nullable=False, default=0)
    bonus_points = Column(Integer, nullable=False, default=0)
    streak_day = Column(Integer, nullable=False)
    bonus_reason = Column(String(200), nullable=True)
    qr_code = Column(String(64), nullable=True)
    location = Column(String(200), nullable=True)

    # Relationships
    user = relationship("User", back_populates="check_ins")

    __table_args__ = (
        Index("idx_check_ins_date", "check_in_date"),
        # At most one check-in per user per local day, enforced by the database
        UniqueConstraint("user_id", "check_in_date", name="uq_user_check_in_date"),
    )

    @property
    def total_points(self) -> int:
        return (self.base_points or 0) + (self.bonus_points or 0)
