"""Competitions service: races within an event."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from trail_directory.services.cascade import delete_competitions
from trail_directory.services.events import can_manage, get_event_or_404, published_event_ids
from trail_directory.services.events import ensure_visible as ensure_event_visible
from trail_directory.services.slugs import is_available, slugify, unique_slug

logger = logging.getLogger(__name__)

TABLE = "competitions"
EVENT_SUMMARY_FIELDS = ("id", "name", "slug", "country", "city", "latitude", "longitude",
                        "typical_month", "logo_url", "status")
RECENT_EDITIONS = 10


def get_competition_or_404(competition_id: str) -> dict:
    competition = db.select_one(TABLE, match={"id": competition_id})
    if not competition:
        raise NotFoundError("Competition not found")
    return competition


def ensure_can_manage(user: dict, competition: dict) -> dict:
    """Return the parent event if *user* owns it or is an ADMIN."""
    event = get_event_or_404(competition["event_id"])
    if not can_manage(user, event):
        raise ForbiddenError("You do not have permission to manage this competition")
    return event


def ensure_visible(competition: dict, viewer: dict | None, not_found: str = "Competition not found") -> dict:
    """Return the parent event; anything short of published on both levels is hidden from outsiders."""
    event = db.select_one("events", match={"id": competition["event_id"]})
    if event and competition.get("status") == "PUBLISHED" and event.get("status") == "PUBLISHED":
        return event
    if event is None or not can_manage(viewer, event):
        raise NotFoundError(not_found)
    return event


def _event_summary(event: dict | None) -> dict | None:
    if not event:
        return None
    return {k: event.get(k) for k in EVENT_SUMMARY_FIELDS}


def rating_summary(competition_id: str) -> dict:
    ratings = [r["rating"] for r in db.select("reviews", columns="rating",
                                              match={"competition_id": competition_id})]
    if not ratings:
        return {"average": None, "count": 0}
    return {"average": round(sum(ratings) / len(ratings), 1), "count": len(ratings)}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_for_event(event_id: str, viewer: dict | None = None) -> list[dict]:
    ensure_event_visible(get_event_or_404(event_id), viewer)
    return db.select(TABLE, match={"event_id": event_id, "status": "PUBLISHED"},
                     order=[("display_order", False), ("base_distance", False)])


def list_competitions(featured: bool | None = None, race_type: str | None = None,
                      event_id: str | None = None, sort_by: str = "name",
                      limit: int = 50) -> list[dict]:
    match = {"status": "PUBLISHED"}
    if featured is not None:
        match["featured"] = featured
    if race_type:
        match["type"] = race_type
    if event_id:
        match["event_id"] = event_id

    order = [("base_distance", False)] if sort_by == "distance" else [("name", False)]
    rows = db.select(TABLE, match=match, filters=[("in", "event_id", published_event_ids())],
                     order=order, limit=limit if sort_by != "typical_month" else None)
    events = {e["id"]: e for e in db.select_in("events", "id", [c["event_id"] for c in rows])}
    rows = [{**c, "event": _event_summary(events.get(c["event_id"]))} for c in rows]

    if sort_by == "typical_month":
        def month_key(c):
            month = (c["event"] or {}).get("typical_month")
            return (month is None, month or 0, (c.get("name") or "").lower())
        rows.sort(key=month_key)
        rows = rows[:limit]
    return rows


def _detail(competition: dict, viewer: dict | None) -> dict:
    event = ensure_visible(competition, viewer)
    editions = db.select("editions", match={"competition_id": competition["id"]},
                         order="year", order_desc=True)
    return {
        **competition,
        "event": _event_summary(event),
        "editions": editions[:RECENT_EDITIONS],
        "edition_count": len(editions),
        "rating": rating_summary(competition["id"]),
    }


def get_competition(competition_id: str, viewer: dict | None = None) -> dict:
    return _detail(get_competition_or_404(competition_id), viewer)


def get_competition_by_slug(slug: str, viewer: dict | None = None) -> dict:
    competition = db.select_one(TABLE, match={"slug": slug})
    if not competition:
        raise NotFoundError("Competition not found")
    return _detail(competition, viewer)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_competition(event_id: str, user: dict, data: dict) -> dict:
    event = get_event_or_404(event_id)
    if not can_manage(user, event):
        raise ForbiddenError("You do not have permission to add competitions to this event")

    slug = unique_slug(TABLE, f"{event['slug']}-{slugify(data['name'])}")
    if data.get("display_order") is None:
        data["display_order"] = db.count(TABLE, {"event_id": event_id})

    competition = db.insert(TABLE, {
        "featured": False,
        "is_active": True,
        **data,
        "id": str(uuid.uuid4()),
        "event_id": event_id,
        "slug": slug,
        "status": "PUBLISHED",
        "user_id": user["id"],
    })
    logger.info("Competition created: %s (%s) in event %s", competition["name"], competition["id"], event_id)
    return competition


def reorder(event_id: str, user: dict, order: list[dict]) -> list[dict]:
    """Apply [{id, display_order}] to competitions of one event."""
    event = get_event_or_404(event_id)
    if not can_manage(user, event):
        raise ForbiddenError("You do not have permission to reorder this event")
    own_ids = {c["id"] for c in db.select(TABLE, columns="id", match={"event_id": event_id})}
    foreign = [item["id"] for item in order if item["id"] not in own_ids]
    if foreign:
        raise BadRequestError(f"Competitions do not belong to this event: {', '.join(foreign)}")
    for item in order:
        db.update(TABLE, {"display_order": item["display_order"]}, {"id": item["id"]})
    return list_for_event(event_id, user)


def update_competition(competition_id: str, user: dict, data: dict) -> dict:
    competition = get_competition_or_404(competition_id)
    ensure_can_manage(user, competition)
    if data.get("slug"):
        data["slug"] = slugify(data["slug"])
        if not is_available(TABLE, data["slug"], exclude_id=competition_id):
            raise ConflictError(f"Slug '{data['slug']}' is already in use")
    if not data:
        return competition
    return db.update(TABLE, data, {"id": competition_id})


def toggle_active(competition_id: str, user: dict) -> dict:
    competition = get_competition_or_404(competition_id)
    ensure_can_manage(user, competition)
    return db.update(TABLE, {"is_active": not competition.get("is_active", True)}, {"id": competition_id})


def delete_competition(competition_id: str, user: dict) -> dict:
    competition = get_competition_or_404(competition_id)
    ensure_can_manage(user, competition)
    delete_competitions([competition_id])
    logger.warning("Competition deleted: %s by %s", competition_id, user["id"])
    return {"deleted": True}

