"""Response bodies shared across routers."""
from typing import Optional

from pydantic import BaseModel


class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None


class RejectionDetail(BaseModel):
    """``detail`` of a refused check-in (400 or 409)."""
    code: str  # already_checked_in, outside_window, invalid_qr_code
    message: str
    window: Optional[str] = None  # "06:00-09:00" when outside the window
    local_time: Optional[str] = None


class RejectionResponse(BaseModel):
    detail: RejectionDetail
