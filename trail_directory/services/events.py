"""Events service: directory listing, search, geo lookup, moderation."""

import logging
import uuid
from collections import Counter

from trail_directory import supabase_client as db
from trail_directory.constants import ADMIN, CREATOR_FIELDS
from trail_directory.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from trail_directory.security import is_admin
from trail_directory.services import geo
from trail_directory.services.cascade import delete_event_tree
from trail_directory.services.slugs import is_available, slugify, unique_slug

logger = logging.getLogger(__name__)

TABLE = "events"

SORT_COLUMNS = {
    "name": "name",
    "created_at": "created_at",
    "view_count": "view_count",
    "first_edition_year": "first_edition_year",
}

MIN_SEARCH_LEN = 2
DEFAULT_RADIUS_KM = 50
NEARBY_LIMIT = 20

# Search relevance, highest first
SEARCH_TIERS = (("name",), ("city",), ("country", "description"))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _with_competition_counts(events: list[dict]) -> list[dict]:
    comps = db.select_in("competitions", "event_id", [e["id"] for e in events], columns="id,event_id")
    counts = Counter(c["event_id"] for c in comps)
    return [{**e, "competition_count": counts.get(e["id"], 0)} for e in events]


def _check_coordinates(data: dict) -> None:
    has_lat = data.get("latitude") is not None
    has_lon = data.get("longitude") is not None
    if has_lat != has_lon:
        raise BadRequestError("latitude and longitude must be provided together")


def get_event_or_404(event_id: str) -> dict:
    event = db.select_one(TABLE, match={"id": event_id})
    if not event:
        raise NotFoundError("Event not found")
    return event


def can_manage(user: dict | None, event: dict) -> bool:
    """ADMINs, the event's creator and its assigned managers."""
    if user is None:
        return False
    if is_admin(user) or event.get("user_id") == user.get("id"):
        return True
    if not event.get("id"):
        return False
    return db.select_one("event_managers", columns="id",
                         match={"event_id": event["id"], "user_id": user["id"]}) is not None


def ensure_visible(event: dict, viewer: dict | None) -> dict:
    """Unpublished events only exist for the people who can manage them."""
    if event.get("status") != "PUBLISHED" and not can_manage(viewer, event):
        raise NotFoundError("Event not found")
    return event


def published_event_ids() -> list[str]:
    return [e["id"] for e in db.select(TABLE, columns="id", match={"status": "PUBLISHED"})]


# ---------------------------------------------------------------------------
# Public reads
# ---------------------------------------------------------------------------

def list_events(page: int = 1, limit: int = 20, search: str | None = None,
                country: str | None = None, featured: bool | None = None,
                status: str = "PUBLISHED", typical_month: int | None = None,
                sort_by: str = "created_at", sort_order: str = "desc") -> dict:
    match = {"status": status}
    filters = []
    if country:
        filters.append(("ilike", "country", db.like_literal(country)))
    if featured is not None:
        match["featured"] = featured
    if typical_month is not None:
        match["typical_month"] = typical_month
    expr = db.search_expr(search, ("name", "city", "country")) if search else None
    order = [(SORT_COLUMNS.get(sort_by, "created_at"), sort_order == "desc")]

    result = db.paginate(TABLE, page, limit, match=match, filters=filters,
                         search=expr, order=order)
    result["results"] = _with_competition_counts(result["results"])
    return result


def search_events(q: str, limit: int = 20) -> list[dict]:
    """Published events matching *q*, ranked name > city > country/description."""
    q = (q or "").strip()
    if len(q) < MIN_SEARCH_LEN:
        raise BadRequestError(f"Search query must be at least {MIN_SEARCH_LEN} characters")
    rows, seen = [], set()
    for columns in SEARCH_TIERS:
        expr = db.search_expr(q, columns)
        if not expr:
            return []
        for event in db.select(TABLE, match={"status": "PUBLISHED"}, search=expr,
                               order=[("view_count", True)], limit=limit + len(seen)):
            if event["id"] not in seen:
                seen.add(event["id"])
                rows.append(event)
        if len(rows) >= limit:
            break
    return _with_competition_counts(rows[:limit])


def nearby_events(lat: float, lon: float, radius_km: float = DEFAULT_RADIUS_KM,
                  limit: int = NEARBY_LIMIT) -> list[dict]:
    rows = db.select(TABLE, match={"status": "PUBLISHED"},
                     filters=geo.box_filters(lat, lon, radius_km))
    return geo.within_radius(rows, lat, lon, radius_km, limit)


def featured_events(limit: int = 10) -> list[dict]:
    rows = db.select(TABLE, match={"status": "PUBLISHED", "featured": True},
                     order=[("view_count", True), ("created_at", True)], limit=limit)
    return _with_competition_counts(rows)


def events_by_country(country: str, page: int = 1, limit: int = 20) -> dict:
    result = db.paginate(TABLE, page, limit, match={"status": "PUBLISHED"},
                         filters=[("ilike", "country", db.like_literal(country))],
                         order=[("view_count", True), ("name", False)])
    result["results"] = _with_competition_counts(result["results"])
    return result


def check_slug(slug: str) -> dict:
    return {"slug": slug, "available": is_available(TABLE, slug)}


def _detail(event: dict, viewer: dict | None) -> dict:
    ensure_visible(event, viewer)

    views = (event.get("view_count") or 0) + 1
    db.update(TABLE, {"view_count": views}, {"id": event["id"]})

    creator = db.select_one("users", match={"id": event.get("user_id")}) if event.get("user_id") else None
    organizer = None
    if event.get("organizer_id"):
        organizer = db.select_one("organizers", match={"id": event["organizer_id"]})

    competitions = db.select("competitions", match={"event_id": event["id"], "status": "PUBLISHED"},
                             order=[("base_distance", False)])
    editions = db.select_in("editions", "competition_id", [c["id"] for c in competitions],
                            columns="id,competition_id")
    per_comp = Counter(e["competition_id"] for e in editions)

    return {
        **event,
        "view_count": views,
        "creator": {k: creator.get(k) for k in CREATOR_FIELDS} if creator else None,
        "organizer": organizer,
        "competitions": [{**c, "edition_count": per_comp.get(c["id"], 0)} for c in competitions],
        "competition_count": len(competitions),
    }


def get_event(event_id: str, viewer: dict | None = None) -> dict:
    return _detail(get_event_or_404(event_id), viewer)


def get_event_by_slug(slug: str, viewer: dict | None = None) -> dict:
    event = db.select_one(TABLE, match={"slug": slug})
    if not event:
        raise NotFoundError("Event not found")
    return _detail(event, viewer)


def event_stats(event_id: str, viewer: dict | None = None) -> dict:
    event = ensure_visible(get_event_or_404(event_id), viewer)
    competitions = db.select("competitions", columns="id", match={"event_id": event_id})
    editions = db.select_in("editions", "competition_id", [c["id"] for c in competitions],
                            columns="id,current_participants")
    return {
        "event_id": event_id,
        "total_competitions": len(competitions),
        "total_editions": len(editions),
        "total_participants": sum(e.get("current_participants") or 0 for e in editions),
        "view_count": event.get("view_count") or 0,
        "first_edition_year": event.get("first_edition_year"),
        "featured": bool(event.get("featured")),
        "status": event.get("status"),
    }


# ---------------------------------------------------------------------------
# Organizer / owner writes
# ---------------------------------------------------------------------------

def create_event(user: dict, data: dict) -> dict:
    """Create an event owned by *user*; ADMIN creations are published directly."""
    _check_coordinates(data)
    if data.get("organizer_id") and not db.select_one("organizers", columns="id",
                                                     match={"id": data["organizer_id"]}):
        raise BadRequestError("Organizer not found")

    requested_slug = data.pop("slug", None)
    if requested_slug:
        slug = slugify(requested_slug)
        if not is_available(TABLE, slug):
            raise ConflictError(f"Slug '{slug}' is already in use")
    else:
        slug = unique_slug(TABLE, data["name"])

    if not is_admin(user):
        data.pop("featured", None)

    event = db.insert(TABLE, {
        **data,
        "id": str(uuid.uuid4()),
        "slug": slug,
        "status": "PUBLISHED" if is_admin(user) else "DRAFT",
        "view_count": 0,
        "featured": data.get("featured", False),
        "user_id": user["id"],
    })
    logger.info("Event created: %s (%s) by %s", event["name"], event["id"], user["id"])
    return event


def update_event(event_id: str, user: dict, data: dict) -> dict:
    event = get_event_or_404(event_id)
    if not can_manage(user, event):
        raise ForbiddenError("You do not have permission to update this event")

    if not is_admin(user):
        if "featured" in data:
            raise ForbiddenError("Only admins can feature events")
        if data.get("status") == "PUBLISHED" and event.get("status") != "PUBLISHED":
            raise ForbiddenError("Only admins can publish events")

    merged = {**event, **data}
    _check_coordinates(merged)

    if data.get("slug"):
        data["slug"] = slugify(data["slug"])
        if not is_available(TABLE, data["slug"], exclude_id=event_id):
            raise ConflictError(f"Slug '{data['slug']}' is already in use")

    if not data:
        return event
    updated = db.update(TABLE, data, {"id": event_id})
    logger.info("Event updated: %s by %s", event_id, user["id"])
    return updated


def set_status(event_id: str, user: dict, status: str) -> dict:
    event = get_event_or_404(event_id)
    if not can_manage(user, event):
        raise ForbiddenError("You do not have permission to change this event's status")
    if status == "PUBLISHED" and not is_admin(user):
        raise ForbiddenError("Only admins can publish events")
    updated = db.update(TABLE, {"status": status}, {"id": event_id})
    logger.info("Event %s status -> %s", event_id, status)
    return updated


def my_events(user: dict, page: int = 1, limit: int = 20, status: str | None = None) -> dict:
    """All events for an ADMIN, the caller's own events otherwise."""
    match = {} if user["role"] == ADMIN else {"user_id": user["id"]}
    if status:
        match["status"] = status
    result = db.paginate(TABLE, page, limit, match=match)
    result["results"] = _with_competition_counts(result["results"])
    return result


def user_event_stats(user: dict) -> dict:
    match = None if user["role"] == ADMIN else {"user_id": user["id"]}
    rows = db.select(TABLE, columns="id,status", match=match)
    by_status = Counter(r.get("status") for r in rows)
    total = len(rows)
    published = by_status.get("PUBLISHED", 0)
    return {
        "total_events": total,
        "published": published,
        "draft": by_status.get("DRAFT", 0),
        "rejected": by_status.get("CANCELLED", 0),
        "approval_rate": f"{published / total * 100:.1f}" if total else "0.0",
    }


# ---------------------------------------------------------------------------
# Admin moderation
# ---------------------------------------------------------------------------

def pending_events(page: int = 1, limit: int = 20) -> dict:
    result = db.paginate(TABLE, page, limit, match={"status": "DRAFT"}, order=[("created_at", False)])
    creators = {u["id"]: u for u in db.select_in("users", "id", [e.get("user_id") for e in result["results"]])}
    result["results"] = [
        {**e, "creator": {k: creators[e["user_id"]].get(k) for k in CREATOR_FIELDS}
         if e.get("user_id") in creators else None}
        for e in result["results"]
    ]
    return result


def approve_event(event_id: str, admin: dict) -> dict:
    get_event_or_404(event_id)
    event = db.update(TABLE, {"status": "PUBLISHED"}, {"id": event_id})
    db.log_action("event_approved", "event", event_id, f"Approved by {admin['id']}")
    logger.info("Event approved: %s", event_id)
    return event


def reject_event(event_id: str, admin: dict, reason: str = "") -> dict:
    get_event_or_404(event_id)
    event = db.update(TABLE, {"status": "CANCELLED"}, {"id": event_id})
    db.log_action("event_rejected", "event", event_id,
                  f"Rejected by {admin['id']}" + (f": {reason}" if reason else ""))
    logger.info("Event rejected: %s", event_id)
    return event


def toggle_featured(event_id: str) -> dict:
    event = get_event_or_404(event_id)
    return db.update(TABLE, {"featured": not event.get("featured")}, {"id": event_id})


def delete_event(event_id: str, admin: dict) -> dict:
    event = get_event_or_404(event_id)
    removed = delete_event_tree(event_id)
    db.log_action("event_deleted", "event", event_id,
                  f"{event.get('name')} deleted by {admin['id']} ({removed} competitions)")
    return {"deleted": True, "competitions_deleted": removed}
