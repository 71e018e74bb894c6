"""Auth service: password hashing, JWT issue/verify, refresh token rotation."""

import logging
import uuid
from datetime import datetime, timezone

import bcrypt
import jwt

from trail_directory import config
from trail_directory import supabase_client as db
from trail_directory.constants import ATHLETE, DEFAULT_LANGUAGE, PUBLIC_USER_FIELDS
from trail_directory.errors import (
    BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError,
)

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


# ---------------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    raw = password.encode("utf-8")
    if len(raw) > MAX_PASSWORD_BYTES:
        raise BadRequestError("Password is too long")
    return bcrypt.hashpw(raw, bcrypt.gensalt(rounds=config.BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8")[:MAX_PASSWORD_BYTES],
                              password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

def _secret(kind: str) -> str:
    secret = config.JWT_REFRESH_SECRET if kind == "refresh" else config.JWT_SECRET
    if not secret:
        raise RuntimeError("JWT_SECRET must be set")
    return secret


def _encode(user: dict, kind: str) -> tuple[str, datetime]:
    now = datetime.now(timezone.utc)
    ttl = config.REFRESH_TOKEN_TTL if kind == "refresh" else config.ACCESS_TOKEN_TTL
    expires_at = now + ttl
    payload = {
        "id": user["id"],
        "email": user["email"],
        "role": user["role"],
        "type": kind,
        "jti": uuid.uuid4().hex,
        "iat": now,
        "exp": expires_at,
    }
    return jwt.encode(payload, _secret(kind), algorithm=config.JWT_ALGORITHM), expires_at


def create_access_token(user: dict) -> str:
    token, _ = _encode(user, "access")
    return token


def create_refresh_token(user: dict) -> str:
    """Issue a refresh token and persist it so it can be revoked."""
    token, expires_at = _encode(user, "refresh")
    db.store_refresh_token(token, user["id"], expires_at)
    return token


def decode_token(token: str, kind: str = "access", verify_exp: bool = True) -> dict:
    """Verify signature, expiry and token type. Raises jwt.InvalidTokenError."""
    options = None if verify_exp else {"verify_exp": False}
    payload = jwt.decode(token, _secret(kind), algorithms=[config.JWT_ALGORITHM], options=options)
    if payload.get("type") != kind:
        raise jwt.InvalidTokenError(f"Expected a {kind} token")
    return payload


def issue_tokens(user: dict) -> dict:
    return {
        "access_token": create_access_token(user),
        "refresh_token": create_refresh_token(user),
    }


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------

def public_user(user: dict | None, fields=PUBLIC_USER_FIELDS) -> dict | None:
    """Strip a user row down to exposable fields."""
    if user is None:
        return None
    return {k: user.get(k) for k in fields}


def register(email: str, username: str, password: str, first_name: str = "",
             last_name: str = "", language: str | None = None) -> dict:
    """Create an ATHLETE account and log it in."""
    email = email.strip().lower()
    if db.get_user_by_email(email):
        raise BadRequestError("Email already registered")
    if db.get_user_by_username(username):
        raise BadRequestError("Username already taken")

    user = db.insert("users", {
        "id": str(uuid.uuid4()),
        "email": email,
        "username": username,
        "password_hash": hash_password(password),
        "first_name": first_name,
        "last_name": last_name,
        "role": ATHLETE,
        "language": language or DEFAULT_LANGUAGE,
        "is_active": True,
    })
    logger.info("User registered: %s (%s)", username, user["id"])
    return {"user": public_user(user), **issue_tokens(user)}


def login(email: str, password: str) -> dict:
    user = db.get_user_by_email(email)
    if not user or not verify_password(password, user.get("password_hash", "")):
        raise UnauthorizedError("Invalid credentials")
    if not user.get("is_active", True):
        raise ForbiddenError("Account is inactive")
    logger.info("User logged in: %s", user["id"])
    return {"user": public_user(user), **issue_tokens(user)}


def refresh(refresh_token: str) -> dict:
    """Exchange a refresh token for a new pair; the old one is revoked."""
    # The stored row decides expiry
    try:
        payload = decode_token(refresh_token, "refresh", verify_exp=False)
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid refresh token")

    stored = db.get_refresh_token(refresh_token)
    if not stored:
        raise UnauthorizedError("Invalid refresh token")

    if stored["expires_at"] <= db.now_iso():
        db.delete_refresh_token(refresh_token)
        raise UnauthorizedError("Refresh token expired")

    user = db.get_user(payload["id"])
    if not user:
        raise UnauthorizedError("Invalid refresh token")
    if not user.get("is_active", True):
        raise ForbiddenError("Account is inactive")

    db.delete_refresh_token(refresh_token)
    return issue_tokens(user)


def logout(refresh_token: str) -> None:
    db.delete_refresh_token(refresh_token)


def logout_all(user_id: str) -> int:
    removed = db.delete_user_refresh_tokens(user_id)
    logger.info("Revoked %d refresh tokens for user %s", removed, user_id)
    return removed


def get_profile(user_id: str) -> dict:
    user = db.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    if not user.get("is_active", True):
        raise ForbiddenError("Account is inactive")
    return public_user(user)


def change_password(user: dict, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.get("password_hash", "")):
        raise BadRequestError("Current password is incorrect")
    db.update("users", {"password_hash": hash_password(new_password)}, {"id": user["id"]})
    revoked = db.delete_user_refresh_tokens(user["id"])
    logger.info("Password changed for user %s; %d refresh tokens revoked", user["id"], revoked)
