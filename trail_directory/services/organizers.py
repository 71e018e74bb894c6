"""Organizers service: entities that run events."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.errors import ConflictError, NotFoundError
from trail_directory.security import ensure_owner_or_admin, is_admin
from trail_directory.services.slugs import is_available, slugify, unique_slug

logger = logging.getLogger(__name__)

TABLE = "organizers"


def get_organizer_or_404(organizer_id: str) -> dict:
    organizer = db.select_one(TABLE, match={"id": organizer_id})
    if not organizer:
        raise NotFoundError("Organizer not found")
    return organizer


def _with_events(organizer: dict) -> dict:
    events = db.select("events", match={"organizer_id": organizer["id"], "status": "PUBLISHED"},
                       order="name")
    return {**organizer, "events": events, "event_count": len(events)}


def list_organizers(page: int = 1, limit: int = 20, search: str | None = None,
                    country: str | None = None, status: str = "PUBLISHED") -> dict:
    match = {"status": status}
    filters = []
    if country:
        filters.append(("ilike", "country", db.like_literal(country)))
    expr = db.search_expr(search, ("name", "description")) if search else None
    return db.paginate(TABLE, page, limit, match=match, filters=filters, search=expr,
                       order=[("name", False)])


def get_organizer(organizer_id: str) -> dict:
    return _with_events(get_organizer_or_404(organizer_id))


def get_organizer_by_slug(slug: str) -> dict:
    organizer = db.select_one(TABLE, match={"slug": slug})
    if not organizer:
        raise NotFoundError("Organizer not found")
    return _with_events(organizer)


def check_slug(slug: str) -> dict:
    return {"slug": slug, "available": is_available(TABLE, slug)}


def create_organizer(user: dict, data: dict) -> dict:
    if data.get("slug"):
        slug = slugify(data.pop("slug"))
        if not is_available(TABLE, slug):
            raise ConflictError(f"Slug '{slug}' is already in use")
    else:
        slug = unique_slug(TABLE, data["name"])

    organizer = db.insert(TABLE, {
        **data,
        "id": str(uuid.uuid4()),
        "slug": slug,
        "status": "PUBLISHED" if is_admin(user) else "DRAFT",
        "created_by_id": user["id"],
    })
    logger.info("Organizer created: %s (%s)", organizer["name"], organizer["id"])
    return organizer


def update_organizer(organizer_id: str, user: dict, data: dict) -> dict:
    organizer = get_organizer_or_404(organizer_id)
    ensure_owner_or_admin(user, organizer.get("created_by_id"), "update this organizer")
    if data.get("slug"):
        data["slug"] = slugify(data["slug"])
        if not is_available(TABLE, data["slug"], exclude_id=organizer_id):
            raise ConflictError(f"Slug '{data['slug']}' is already in use")
    if not data:
        return organizer
    return db.update(TABLE, data, {"id": organizer_id})


def set_moderation(organizer_id: str, admin: dict, approve: bool, reason: str = "") -> dict:
    get_organizer_or_404(organizer_id)
    status = "PUBLISHED" if approve else "CANCELLED"
    organizer = db.update(TABLE, {"status": status}, {"id": organizer_id})
    action = "organizer_approved" if approve else "organizer_rejected"
    db.log_action(action, "organizer", organizer_id,
                  f"By {admin['id']}" + (f": {reason}" if reason else ""))
    return organizer


def delete_organizer(organizer_id: str, admin: dict) -> dict:
    organizer = get_organizer_or_404(organizer_id)
    linked = db.count("events", {"organizer_id": organizer_id})
    if linked:
        raise ConflictError(f"Cannot delete organizer with {linked} associated events")
    db.delete(TABLE, {"id": organizer_id})
    db.log_action("organizer_deleted", "organizer", organizer_id,
                  f"{organizer.get('name')} deleted by {admin['id']}")
    logger.warning("Organizer deleted: %s", organizer_id)
    return {"deleted": True}
