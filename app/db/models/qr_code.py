"""QrCode model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Boolean, Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.db.base import Base


class QrCode(Base):
    __tablename__ = "qr_codes"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False)
    code = Column(String(64), unique=True, nullable=False, index=True)
    valid_from = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))
    valid_until = Column(DateTime(timezone=True), nullable=True)  # None means until rotated
    is_active = Column(Boolean, nullable=False, default=True)
    rotation_strategy = Column(String(20), nullable=False, default="manual")
    usage_count = Column(Integer, nullable=False, default=0)
    created_by = Column(String(128), nullable=True)

    # Relationships
    company = relationship("Company", back_populates="qr_codes")

    __table_args__ = (Index("idx_qr_codes_company_active", "company_id", "is_active"),)
