"""In-memory sliding-window rate limiter keyed by client IP."""

import time
from collections import defaultdict

from fastapi import HTTPException, Request

from trail_directory.config import AUTH_RATE_LIMIT, AUTH_RATE_WINDOW, RATE_LIMIT_ENABLED

# {bucket_name: {ip: [timestamp, ...]}}
_rate_buckets: dict[str, dict[str, list[float]]] = defaultdict(lambda: defaultdict(list))


def check_rate_limit(request: Request, name: str = "default",
                     limit: int = AUTH_RATE_LIMIT, window: int = AUTH_RATE_WINDOW) -> None:
    """Raise 429 if IP exceeds *limit* requests within *window* seconds."""
    if not RATE_LIMIT_ENABLED:
        return
    ip = request.client.host if request.client else "unknown"
    now = time.monotonic()
    buckets = _rate_buckets[name]
    cutoff = now - window
    buckets[ip] = bucket = [t for t in buckets[ip] if t > cutoff]
    if len(bucket) >= limit:
        raise HTTPException(status_code=429, detail="Rate limit exceeded")
    bucket.append(now)


def auth_rate_limit(request: Request) -> None:
    """Dependency guarding the register and login endpoints."""
    check_rate_limit(request, "auth")


def reset() -> None:
    _rate_buckets.clear()
