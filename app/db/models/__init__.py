"""Database models."""
from app.db.models.company import Company
from app.db.models.user import User
from app.db.models.checkin import CheckIn
from app.db.models.point_transaction import PointTransaction
from app.db.models.reward import Reward
from app.db.models.redemption import Redemption
from app.db.models.badge import Badge, UserBadge
from app.db.models.qr_code import QrCode

__all__ = [
    "Company",
    "User",
    "CheckIn",
    "PointTransaction",
    "Reward",
    "Redemption",
    "Badge",
    "UserBadge",
    "QrCode",
]
