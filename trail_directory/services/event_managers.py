"""Event managers: organizers an ADMIN assigns to co-manage someone else's event."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.constants import ADMIN, ORGANIZER
from trail_directory.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from trail_directory.services.events import can_manage, get_event_or_404

logger = logging.getLogger(__name__)

TABLE = "event_managers"

MANAGER_USER_FIELDS = ("id", "email", "username", "first_name", "last_name", "role")
MANAGED_EVENT_FIELDS = ("id", "name", "slug", "status", "city", "country")


def _with_users(rows: list[dict]) -> list[dict]:
    users = {u["id"]: u for u in db.select_in("users", "id", [r["user_id"] for r in rows])}
    return [
        {**r, "user": {k: users[r["user_id"]].get(k) for k in MANAGER_USER_FIELDS}
         if r["user_id"] in users else None}
        for r in rows
    ]


def list_managers(event_id: str, viewer: dict) -> list[dict]:
    event = get_event_or_404(event_id)
    if not can_manage(viewer, event):
        raise ForbiddenError("You do not have permission to view this event's managers")
    rows = db.select(TABLE, match={"event_id": event_id}, order="created_at", order_desc=True)
    return _with_users(rows)


def add_manager(event_id: str, user_id: str, admin: dict) -> dict:
    get_event_or_404(event_id)
    user = db.get_user(user_id)
    if not user:
        raise NotFoundError("User not found")
    if user.get("role") not in (ORGANIZER, ADMIN):
        raise BadRequestError("User must be an ORGANIZER or ADMIN to manage events")
    if db.select_one(TABLE, columns="id", match={"event_id": event_id, "user_id": user_id}):
        raise ConflictError("User is already a manager of this event")

    manager = db.insert(TABLE, {
        "id": str(uuid.uuid4()),
        "event_id": event_id,
        "user_id": user_id,
        "assigned_by_id": admin["id"],
    })
    db.log_action("event_manager_added", "event", event_id, f"{user_id} assigned by {admin['id']}")
    logger.info("User %s added as manager of event %s by %s", user_id, event_id, admin["id"])
    return _with_users([manager])[0]


def remove_manager(event_id: str, user_id: str, admin: dict) -> dict:
    manager = db.select_one(TABLE, match={"event_id": event_id, "user_id": user_id})
    if not manager:
        raise NotFoundError("Manager not found")
    db.delete(TABLE, {"id": manager["id"]})
    db.log_action("event_manager_removed", "event", event_id, f"{user_id} removed by {admin['id']}")
    logger.info("User %s removed as manager of event %s", user_id, event_id)
    return {"deleted": True}


def managed_events(user: dict) -> list[dict]:
    """Events *user* created or was assigned to, each tagged CREATOR or MANAGER."""
    created = db.select("events", match={"user_id": user["id"]}, order="name")
    assigned = db.select(TABLE, columns="event_id", match={"user_id": user["id"]})
    seen = {e["id"] for e in created}
    managed = [e for e in db.select_in("events", "id", [a["event_id"] for a in assigned])
               if e["id"] not in seen]
    return (
        [{**{k: e.get(k) for k in MANAGED_EVENT_FIELDS}, "role": "CREATOR"} for e in created]
        + [{**{k: e.get(k) for k in MANAGED_EVENT_FIELDS}, "role": "MANAGER"}
           for e in sorted(managed, key=lambda e: (e.get("name") or "").lower())]
    )


def available_organizers(event_id: str) -> list[dict]:
    """Active ORGANIZERs who could still be assigned to the event."""
    event = get_event_or_404(event_id)
    taken = {m["user_id"] for m in db.select(TABLE, columns="user_id", match={"event_id": event_id})}
    if event.get("user_id"):
        taken.add(event["user_id"])
    organizers = db.select("users", match={"role": ORGANIZER, "is_active": True},
                           order=[("first_name", False), ("last_name", False)])
    return [
        {k: u.get(k) for k in MANAGER_USER_FIELDS if k != "role"}
        for u in organizers if u["id"] not in taken
    ]
