"""QR code business logic.

Each company has at most one active check-in code. Scanning it is what proves
the employee is physically on site; rendering the image is delegated to the
``qrcode`` library and decoding happens on the client.
"""
import io
from datetime import datetime, timedelta, timezone
from typing import Optional

import qrcode
import structlog
from qrcode.image.svg import SvgImage
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.constants import QR_CODE_PREFIX, QR_ROTATION_STRATEGIES
from app.core.sanitization import sanitize_qr_code
from app.core.utils import make_pronounceable, to_utc
from app.db.models import QrCode

logger = structlog.get_logger(__name__)

ROTATION_LIFETIMES = {
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
    "monthly": timedelta(days=30),
    "manual": None,
}


def generate_code(now: datetime) -> str:
    """Build a code like ``SK2025-BAKODIFU``."""
    return f"{QR_CODE_PREFIX}{now.year}-{make_pronounceable()}"


def is_code_valid(qr_code: QrCode, now: datetime) -> bool:
    """Whether a stored code can be used at ``now``."""
    if not qr_code.is_active:
        return False
    now = to_utc(now)
    if to_utc(qr_code.valid_from) > now:
        return False
    if qr_code.valid_until is not None and to_utc(qr_code.valid_until) < now:
        return False
    return True


def get_active_qr_code(db: Session, company_id: int, now: Optional[datetime] = None) -> Optional[QrCode]:
    """Return the company's currently valid code, if any."""
    if now is None:
        now = datetime.now(timezone.utc)

    codes = db.query(QrCode).filter(
        QrCode.company_id == company_id,
        QrCode.is_active.is_(True)
    ).order_by(QrCode.valid_from.desc()).all()

    for code in codes:
        if is_code_valid(code, now):
            return code
    return None


def validate_qr_code(db: Session, company_id: int, code: Optional[str], now: datetime) -> Optional[QrCode]:
    """
    Look up a scanned code for a company.

    Returns:
        The matching QrCode when it belongs to the company and is valid now, else None
    """
    if not code:
        return None

    try:
        code = sanitize_qr_code(code)
    except ValueError:
        return None

    qr_code = db.query(QrCode).filter(
        QrCode.company_id == company_id,
        QrCode.code == code
    ).first()

    if qr_code is None or not is_code_valid(qr_code, now):
        return None
    return qr_code


def rotate_qr_code(
    db: Session,
    company_id: int,
    created_by: Optional[str] = None,
    strategy: str = "manual",
    now: Optional[datetime] = None,
) -> QrCode:
    """
    Retire the company's active codes and issue a new one.

    Raises:
        ValueError: If the rotation strategy is unknown or no unique code could be generated
    """
    if strategy not in QR_ROTATION_STRATEGIES:
        raise ValueError(f"Unknown rotation strategy '{strategy}'")

    now = to_utc(now or datetime.now(timezone.utc))
    lifetime = ROTATION_LIFETIMES[strategy]

    # Try a few times in case of a code collision
    for _ in range(3):
        active_codes = db.query(QrCode).filter(
            QrCode.company_id == company_id,
            QrCode.is_active.is_(True)
        ).all()
        for active in active_codes:
            active.is_active = False
            if active.valid_until is None or to_utc(active.valid_until) > now:
                active.valid_until = now

        qr_code = QrCode(
            company_id=company_id,
            code=generate_code(now),
            valid_from=now,
            valid_until=now + lifetime if lifetime else None,
            is_active=True,
            rotation_strategy=strategy,
            created_by=created_by,
        )

        try:
            db.add(qr_code)
            db.commit()
            db.refresh(qr_code)
            logger.info("qr_code_rotated", company_id=company_id, strategy=strategy, retired=len(active_codes))
            return qr_code
        except IntegrityError:
            db.rollback()
            continue

    raise ValueError("Failed to generate unique QR code")


def checkin_url(code: str) -> str:
    """The URL printed in the QR image; scanning it opens the check-in page for this code."""
    return f"{settings.CHECKIN_URL_BASE}/checkin/{code}"


def render_qr_svg(data: str) -> bytes:
    """Render a QR code as SVG bytes."""
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_M,
        box_size=10,
        border=4,
    )
    qr.add_data(data)
    qr.make(fit=True)

    img = qr.make_image(image_factory=SvgImage)
    buffer = io.BytesIO()
    img.save(buffer)
    return buffer.getvalue()
