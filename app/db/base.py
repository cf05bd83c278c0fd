"""Database base class and model imports."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Import all models here for Alembic to detect them
from app.db.models.company import Company  # noqa: F401, E402
from app.db.models.user import User  # noqa: F401, E402
from app.db.models.checkin import CheckIn  # noqa: F401, E402
from app.db.models.point_transaction import PointTransaction  # noqa: F401, E402
from app.db.models.reward import Reward  # noqa: F401, E402
from app.db.models.redemption import Redemption  # noqa: F401, E402
from app.db.models.badge import Badge, UserBadge  # noqa: F401, E402
from app.db.models.qr_code import QrCode  # noqa: F401, E402
