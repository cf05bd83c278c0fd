"""Live admin activity over Server-Sent Events."""
import asyncio
import json
import logging
from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.exc import SQLAlchemyError

from app.api.deps import get_admin_company_id, get_db_context
from app.core.cache import global_cache
from app.core.config import settings
from app.engine import InvalidConfigError
from app.services.activity import get_activity_snapshot

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_CONSECUTIVE_DB_ERRORS = 3

STREAM_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",  # nginx must not buffer the stream
}


def format_event(payload: dict, event: Optional[str] = None) -> str:
    prefix = f"event: {event}\n" if event else ""
    return f"{prefix}data: {json.dumps(payload, default=str)}\n\n"


def error_event(message: str) -> str:
    return format_event({"error": message}, event="error")


async def event_generator(request: Request, data_func: Callable[[], dict], interval: float = 5):
    """
    Poll ``data_func`` every ``interval`` seconds and yield each result as an event.

    A database error skips one tick; after MAX_CONSECUTIVE_DB_ERRORS in a row
    the stream ends with an error event. An invalid check-in configuration or
    any other failure ends the stream at once, since retrying cannot help.
    """
    db_errors = 0

    try:
        while not await request.is_disconnected():
            try:
                snapshot = data_func()
            except SQLAlchemyError as e:
                db_errors += 1
                logger.warning(f"SSE snapshot failed ({db_errors}/{MAX_CONSECUTIVE_DB_ERRORS}): {e}")
                if db_errors >= MAX_CONSECUTIVE_DB_ERRORS:
                    yield error_event("Service temporarily unavailable")
                    return
            except InvalidConfigError as e:
                logger.error(f"SSE stopped, invalid check-in configuration: {e}")
                yield error_event("Check-in settings are misconfigured")
                return
            except Exception:
                logger.exception("SSE stopped by unexpected error")
                yield error_event("Internal error")
                return
            else:
                db_errors = 0
                yield format_event(snapshot)

            await asyncio.sleep(interval)
    except asyncio.CancelledError:
        logger.debug("SSE client went away")


@router.get("/sse/admin/activity")
async def sse_admin_activity(request: Request, company_id: int = Depends(get_admin_company_id)):
    """
    Live activity stream for the admin dashboard.

    Requires admin authentication (cookie or bearer token). Each event is a
    ``realtime_stats`` snapshot: today's counters plus the latest
    ``user_checked_in``, ``reward_redeemed`` and ``achievement_unlocked``
    events. Snapshots are cached for a few seconds and shared by every open
    dashboard of the company.
    """
    def snapshot():
        with get_db_context() as db:
            return get_activity_snapshot(db, company_id, cache=global_cache)

    return StreamingResponse(
        event_generator(request, snapshot, interval=settings.SSE_ADMIN_INTERVAL),
        media_type="text/event-stream",
        headers=STREAM_HEADERS,
    )
