"""Cleaning of user-supplied text before it reaches services or the database.

Free text (reward names, descriptions, fulfilment notes, departments, check-in
locations) has markup removed and whitespace collapsed but is not HTML-escaped;
clients escape on render. QR payloads are reduced to the bare code.
"""
import re
from typing import Optional


MAX_QR_CODE_LENGTH = 64        # SK<year>-<code> plus headroom for legacy codes
MAX_REWARD_NAME_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MAX_NOTES_LENGTH = 500
MAX_DEPARTMENT_LENGTH = 50

_TAG = re.compile(r"<[^>]*>")
_WHITESPACE = re.compile(r"\s+")
_QR_CODE = re.compile(r"^[A-Z0-9-]+$")


def sanitize_text(text: str, max_length: Optional[int] = None, strip_html: bool = True) -> str:
    """
    Strip markup and collapse whitespace.

    Raises:
        ValueError: for non-strings, input longer than ``max_length`` (checked
            before stripping), or angle brackets that survive tag removal
    """
    if not isinstance(text, str):
        raise ValueError("Input must be a string")

    cleaned = text.strip()
    if max_length and len(cleaned) > max_length:
        raise ValueError(f"Input exceeds maximum length of {max_length} characters")

    if strip_html:
        cleaned = _TAG.sub("", cleaned)
    if "<" in cleaned or ">" in cleaned:
        raise ValueError("Input contains invalid HTML-like patterns")

    return _WHITESPACE.sub(" ", cleaned)


def sanitize_qr_code(qr_code: str) -> str:
    """
    Normalise a scanned QR payload to an uppercase code.

    The printed codes encode the full check-in URL
    (``https://.../checkin/SK2025-ABCDEFGH``) but clients may also send the bare
    code; in both cases the last path segment is what gets looked up.
    """
    if not isinstance(qr_code, str):
        raise ValueError("QR code must be a string")

    code = qr_code.strip().rstrip("/").rsplit("/", 1)[-1].upper()

    if not code:
        raise ValueError("QR code cannot be empty")
    if len(code) > MAX_QR_CODE_LENGTH:
        raise ValueError(f"QR code exceeds maximum length of {MAX_QR_CODE_LENGTH} characters")
    if not _QR_CODE.match(code):
        raise ValueError("QR code can only contain letters, numbers, and hyphens")

    return code


def sanitize_reward_name(name: str) -> str:
    cleaned = sanitize_text(name, max_length=MAX_REWARD_NAME_LENGTH)
    if not cleaned:
        raise ValueError("Reward name cannot be empty")
    return cleaned


def sanitize_optional_text(text: Optional[str], max_length: int) -> Optional[str]:
    """Like sanitize_text, but None and blank input both come back as None."""
    if text is None:
        return None
    return sanitize_text(text, max_length=max_length) or None
