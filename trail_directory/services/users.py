"""User administration and profile updates."""

import logging
from collections import Counter

from trail_directory import supabase_client as db
from trail_directory.constants import CONTENT_STATUSES, ROLES
from trail_directory.errors import BadRequestError, NotFoundError
from trail_directory.security import ensure_owner_or_admin
from trail_directory.services.auth import public_user
from trail_directory.services.edition_ratings import recalculate

logger = logging.getLogger(__name__)

TABLE = "users"


def get_user_or_404(user_id: str) -> dict:
    user = db.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    return user


def list_users(page: int = 1, limit: int = 20, search: str | None = None, role: str | None = None) -> dict:
    match = {"role": role} if role else None
    expr = db.search_expr(search, ("username", "email", "first_name", "last_name")) if search else None
    result = db.paginate(TABLE, page, limit, match=match, search=expr)
    result["results"] = [public_user(u) for u in result["results"]]
    return result


def get_profile(user_id: str, viewer: dict) -> dict:
    ensure_owner_or_admin(viewer, user_id, "view this profile")
    return public_user(get_user_or_404(user_id))


def update_profile(user_id: str, viewer: dict, data: dict) -> dict:
    ensure_owner_or_admin(viewer, user_id, "update this profile")
    user = get_user_or_404(user_id)
    if "username" in data and data["username"] != user.get("username"):
        if db.get_user_by_username(data["username"]):
            raise BadRequestError("Username already taken")
    if not data:
        return public_user(user)
    return public_user(db.update(TABLE, data, {"id": user_id}))


def set_role(user_id: str, role: str, admin: dict) -> dict:
    get_user_or_404(user_id)
    user = db.update(TABLE, {"role": role}, {"id": user_id})
    db.log_action("user_role_changed", "user", user_id, f"Role set to {role} by {admin['id']}")
    logger.info("User %s role -> %s", user_id, role)
    return public_user(user)


def set_active(user_id: str, is_active: bool, admin: dict) -> dict:
    if user_id == admin["id"] and not is_active:
        raise BadRequestError("You cannot deactivate your own account")
    get_user_or_404(user_id)
    user = db.update(TABLE, {"is_active": is_active}, {"id": user_id})
    if not is_active:
        db.delete_user_refresh_tokens(user_id)
    db.log_action("user_activated" if is_active else "user_deactivated", "user", user_id,
                  f"By {admin['id']}")
    return public_user(user)


def delete_user(user_id: str, admin: dict) -> dict:
    if user_id == admin["id"]:
        raise BadRequestError("You cannot delete your own account")
    user = get_user_or_404(user_id)
    db.delete_user_refresh_tokens(user_id)
    for table in ("favorites", "user_competitions", "reviews", "event_managers"):
        db.delete(table, {"user_id": user_id})
    for rating in db.delete("edition_ratings", {"user_id": user_id}):
        recalculate(rating["edition_id"])
    db.delete(TABLE, {"id": user_id})
    db.log_action("user_deleted", "user", user_id, f"{user.get('email')} deleted by {admin['id']}")
    logger.warning("User deleted: %s", user_id)
    return {"deleted": True}


def admin_stats() -> dict:
    """Counts for the admin dashboard."""
    users = Counter(u.get("role") for u in db.select(TABLE, columns="id,role"))
    events = Counter(e.get("status") for e in db.select("events", columns="id,status"))
    return {
        "users": {"total": sum(users.values()), "by_role": {r: users.get(r, 0) for r in ROLES}},
        "events": {"total": sum(events.values()), "by_status": {s: events.get(s, 0) for s in CONTENT_STATUSES}},
        "competitions": db.count("competitions"),
        "editions": db.count("editions"),
        "services": db.count("services"),
        "pending": {
            "events": events.get("DRAFT", 0),
            "organizers": db.count("organizers", {"status": "DRAFT"}),
        },
    }
