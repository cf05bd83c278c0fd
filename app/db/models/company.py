"""Company model."""
from datetime import datetime, timezone as tz
from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.orm import relationship

from app.db.base import Base


class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), unique=True, nullable=False)
    settings = Column(JSON, nullable=True)  # CheckInConfig payload
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(tz.utc))

    # Relationships
    users = relationship("User", back_populates="company")
    rewards = relationship("Reward", back_populates="company", cascade="all, delete-orphan")
    qr_codes = relationship("QrCode", back_populates="company", cascade="all, delete-orphan")
