"""Initial data for a new installation."""
from typing import Optional

import structlog
from sqlalchemy.orm import Session

from app.db.models import Badge, Company, Reward
from app.engine import default_config_dict
from app.services.badges import DEFAULT_BADGES
from app.services.qr_codes import get_active_qr_code, rotate_qr_code

logger = structlog.get_logger(__name__)

DEFAULT_COMPANY_NAME = "Default Company"

DEFAULT_REWARDS = [
    {"name": "$5 Maverick Card", "description": "Fuel up with a $5 Maverick gift card",
     "points_cost": 5, "category": "weekly", "icon": "card"},
    {"name": "Coffee Voucher", "description": "Free coffee from the company cafe",
     "points_cost": 3, "category": "weekly", "icon": "cafe"},
    {"name": "$25 Gift Card", "description": "Choose from popular retailers",
     "points_cost": 25, "category": "monthly", "icon": "gift"},
    {"name": "$100 Gift Card", "description": "High-value gift card of your choice",
     "points_cost": 75, "category": "quarterly", "icon": "gift"},
    {"name": "Half-Day Off", "description": "Take a half day off with pay",
     "points_cost": 100, "category": "quarterly", "icon": "calendar"},
    {"name": "Tech Gadget", "description": "Choose from latest tech accessories",
     "points_cost": 120, "category": "quarterly", "icon": "phone-portrait"},
    {"name": "Paid Trip", "description": "Paid trip to a destination of your choice",
     "points_cost": 300, "category": "annual", "icon": "airplane"},
    {"name": "Vacation Day", "description": "Additional paid vacation day",
     "points_cost": 350, "category": "annual", "icon": "calendar"},
    {"name": "Professional Course", "description": "Enroll in any professional development course",
     "points_cost": 400, "category": "annual", "icon": "school"},
]


def seed_badges(db: Session) -> int:
    """Insert missing default badges. Returns how many were added."""
    existing = {code for (code,) in db.query(Badge.code).all()}
    added = 0
    for data in DEFAULT_BADGES:
        if data["code"] not in existing:
            db.add(Badge(**data))
            added += 1
    db.commit()
    return added


def seed_company(db: Session, name: str = DEFAULT_COMPANY_NAME) -> Company:
    """Create the company with default check-in settings, or return it."""
    company = db.query(Company).filter(Company.name == name).first()
    if company:
        return company

    company = Company(name=name, settings=default_config_dict())
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


def seed_rewards(db: Session, company: Company) -> int:
    """Add the default reward catalogue to a company that has none."""
    if db.query(Reward).filter(Reward.company_id == company.id).count():
        return 0
    for data in DEFAULT_REWARDS:
        db.add(Reward(company_id=company.id, **data))
    db.commit()
    return len(DEFAULT_REWARDS)


def seed_all(db: Session, company_name: Optional[str] = None) -> Company:
    """Idempotently seed badges, a company, its rewards and a QR code."""
    badges = seed_badges(db)
    company = seed_company(db, company_name or DEFAULT_COMPANY_NAME)
    rewards = seed_rewards(db, company)
    if get_active_qr_code(db, company.id) is None:
        rotate_qr_code(db, company.id, created_by="seed")

    logger.info("database_seeded", company_id=company.id, badges_added=badges, rewards_added=rewards)
    return company
