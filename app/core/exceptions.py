"""Domain exceptions shared by services and endpoints.

Expected check-in refusals (already checked in, outside the window, bad QR
code) are returned as ``CheckInRejection`` values and never raised. The
exceptions here are for failures the caller cannot branch around; the
application maps them to responses in one place (see ``app.main``):

- ``InvalidConfigError``: 500 with ``CONFIG_ERROR_DETAIL``
- ``PersistenceError``: 503 with the error message
"""
from app.engine.config import InvalidConfigError

CONFIG_ERROR_DETAIL = "Check-in settings are misconfigured. Contact an administrator."


class PersistenceError(RuntimeError):
    """A write failed after the engine approved it; nothing was committed."""

    user_message = "Your check-in could not be saved. Please try again."


__all__ = ["CONFIG_ERROR_DETAIL", "InvalidConfigError", "PersistenceError"]
