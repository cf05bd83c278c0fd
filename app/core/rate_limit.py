"""Per-client request limits (slowapi).

Limits are counted per client IP. Behind the office proxy that is the first
X-Forwarded-For entry; the whole building may therefore share one bucket, which
is why the check-in limit is sized for the morning rush rather than one person.
"""
import os
from slowapi import Limiter
from slowapi.util import get_remote_address

RATE_LIMITS = {
    "check_in": "300/minute",
    "redeem": "60/minute",
    "register": "30/minute",
    "leaderboard": "120/minute",
    "admin_login": "10/minute",  # password guessing
}


def get_client_ip(request) -> str:
    forwarded_for = request.headers.get("X-Forwarded-For", "")
    client = forwarded_for.split(",")[0].strip()
    return client or get_remote_address(request)


# REDIS_URL shares counters between workers; a single dev process counts in memory
limiter = Limiter(
    key_func=get_client_ip,
    default_limits=["100/minute"],
    storage_uri=os.getenv("REDIS_URL", "memory://"),
    strategy="fixed-window",
)
