"""Trail Directory configuration: loaded from environment variables."""

import os
import re
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).resolve().parent.parent / ".env")

REPO_ROOT = Path(__file__).resolve().parent.parent

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd])\s*$")
_DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(value: str) -> timedelta:
    """Parse a token lifetime like '15m', '12h' or '7d'."""
    match = _DURATION_RE.match(value or "")
    if not match:
        raise ValueError(f"Invalid duration: {value!r} (expected e.g. '15m', '12h', '7d')")
    amount, unit = match.groups()
    return timedelta(**{_DURATION_UNITS[unit]: int(amount)})


def _env_bool(name: str, default: str = "true") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


ENVIRONMENT = os.environ.get("ENVIRONMENT", "development")
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Supabase
SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
SUPABASE_SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY", "")

# JWT
JWT_SECRET = os.environ.get("JWT_SECRET", "")
JWT_REFRESH_SECRET = os.environ.get("JWT_REFRESH_SECRET", "") or JWT_SECRET
JWT_ALGORITHM = "HS256"
JWT_EXPIRES_IN = os.environ.get("JWT_EXPIRES_IN", "7d")
JWT_REFRESH_EXPIRES_IN = os.environ.get("JWT_REFRESH_EXPIRES_IN", "30d")
ACCESS_TOKEN_TTL = parse_duration(JWT_EXPIRES_IN)
REFRESH_TOKEN_TTL = parse_duration(JWT_REFRESH_EXPIRES_IN)

# Password hashing cost
BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

# Server
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3001"))
CORS_ORIGIN = [o.strip() for o in os.environ.get("CORS_ORIGIN", "http://localhost:3000").split(",") if o.strip()]

# Auth endpoint rate limiting (sliding window per IP)
RATE_LIMIT_ENABLED = _env_bool("RATE_LIMIT_ENABLED")
AUTH_RATE_LIMIT = int(os.environ.get("AUTH_RATE_LIMIT", "20"))
AUTH_RATE_WINDOW = int(os.environ.get("AUTH_RATE_WINDOW", "900"))

# Scheduler intervals
TOKEN_PURGE_MINUTES = int(os.environ.get("TOKEN_PURGE_MINUTES", "60"))
EDITION_SWEEP_MINUTES = int(os.environ.get("EDITION_SWEEP_MINUTES", "360"))
