"""Request guards: bearer token authentication and role checks."""

import logging

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from trail_directory import supabase_client as db
from trail_directory.constants import ADMIN
from trail_directory.errors import ForbiddenError, UnauthorizedError
from trail_directory.services.auth import decode_token

logger = logging.getLogger(__name__)

bearer = HTTPBearer(auto_error=False)


def _user_from_token(token: str) -> dict:
    try:
        payload = decode_token(token, "access")
    except jwt.InvalidTokenError:
        raise UnauthorizedError("Invalid token")
    user = db.get_user(payload.get("id", ""))
    if not user or not user.get("is_active", True):
        raise UnauthorizedError("User not found or inactive")
    return user


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> dict:
    """Resolve the authenticated user from the Authorization header."""
    if credentials is None:
        raise UnauthorizedError("No token provided")
    return _user_from_token(credentials.credentials)


def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer),
) -> dict | None:
    """Like get_current_user but returns None instead of failing."""
    if credentials is None:
        return None
    try:
        return _user_from_token(credentials.credentials)
    except UnauthorizedError:
        return None


def require_roles(*roles: str):
    """Dependency factory allowing only users holding one of *roles*."""

    def checker(user: dict = Depends(get_current_user)) -> dict:
        if user.get("role") not in roles:
            logger.warning("Denied %s (role %s); requires %s", user.get("id"), user.get("role"), roles)
            raise ForbiddenError(
                f"Access denied. Required roles: {', '.join(roles)}. Your role: {user.get('role')}"
            )
        return user

    return checker


def is_admin(user: dict | None) -> bool:
    return bool(user) and user.get("role") == ADMIN


def ensure_owner_or_admin(user: dict, owner_id: str | None, action: str = "modify this resource") -> None:
    """Raise 403 unless *user* created the resource or is an ADMIN."""
    if is_admin(user) or (owner_id and owner_id == user.get("id")):
        return
    logger.warning("Ownership check failed for user %s", user.get("id"))
    raise ForbiddenError(f"You do not have permission to {action}")
