"""Edition ratings: seven 1-4 criteria per user per edition, averaged onto the edition."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.constants import CREATOR_FIELDS
from trail_directory.errors import ConflictError, ForbiddenError, NotFoundError
from trail_directory.services.editions import ensure_visible, get_edition_or_404
from trail_directory.services.events import published_event_ids

logger = logging.getLogger(__name__)

TABLE = "edition_ratings"

CRITERIA = (
    "rating_info_briefing",
    "rating_race_pack",
    "rating_village",
    "rating_marking",
    "rating_aid",
    "rating_finisher",
    "rating_eco",
)


def get_rating_or_404(rating_id: str) -> dict:
    rating = db.select_one(TABLE, match={"id": rating_id})
    if not rating:
        raise NotFoundError("Rating not found")
    return rating


def rating_average(rating: dict) -> float:
    """Mean of one rating's criteria."""
    return sum(rating[c] for c in CRITERIA) / len(CRITERIA)


def recalculate(edition_id: str) -> dict:
    """Store avg_rating (mean of per-rating averages, 2 decimals) and total_ratings on the edition."""
    ratings = db.select(TABLE, match={"edition_id": edition_id})
    if not ratings:
        values = {"avg_rating": None, "total_ratings": 0}
    else:
        mean = sum(rating_average(r) for r in ratings) / len(ratings)
        values = {"avg_rating": round(mean, 2), "total_ratings": len(ratings)}
    db.update("editions", values, {"id": edition_id})
    return values


def _embed(rows: list[dict]) -> list[dict]:
    """Attach author and edition -> competition -> event summaries."""
    users = {u["id"]: u for u in db.select_in("users", "id", [r["user_id"] for r in rows])}
    editions = {e["id"]: e for e in db.select_in("editions", "id", [r["edition_id"] for r in rows])}
    comps = {c["id"]: c for c in db.select_in("competitions", "id",
                                              [e["competition_id"] for e in editions.values()])}
    events = {e["id"]: e for e in db.select_in("events", "id", [c["event_id"] for c in comps.values()])}

    out = []
    for r in rows:
        user = users.get(r["user_id"])
        edition = editions.get(r["edition_id"]) or {}
        comp = comps.get(edition.get("competition_id")) or {}
        event = events.get(comp.get("event_id")) or {}
        out.append({
            **r,
            "average": round(rating_average(r), 2),
            "user": {k: user.get(k) for k in CREATOR_FIELDS} if user else None,
            "edition": {
                "id": edition.get("id"),
                "year": edition.get("year"),
                "slug": edition.get("slug"),
                "start_date": edition.get("start_date"),
                "competition": {
                    "id": comp.get("id"),
                    "name": comp.get("name"),
                    "slug": comp.get("slug"),
                    "event": {k: event.get(k) for k in ("id", "name", "slug", "country", "city")},
                },
            },
        })
    return out


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_for_edition(edition_id: str, page: int = 1, limit: int = 20, viewer: dict | None = None) -> dict:
    edition = get_edition_or_404(edition_id)
    ensure_visible(edition, viewer)
    result = db.paginate(TABLE, page, limit, match={"edition_id": edition_id},
                         order=[("created_at", True)])
    result["results"] = _embed(result["results"])
    result["summary"] = {"avg_rating": edition.get("avg_rating"), "total_ratings": edition.get("total_ratings") or 0}
    return result


def get_rating(rating_id: str, viewer: dict | None = None) -> dict:
    rating = get_rating_or_404(rating_id)
    ensure_visible(get_edition_or_404(rating["edition_id"]), viewer)
    return _embed([rating])[0]


def recent(limit: int = 10) -> list[dict]:
    """Latest ratings on editions of published competitions under published events."""
    comps = db.select("competitions", columns="id", match={"status": "PUBLISHED"},
                      filters=[("in", "event_id", published_event_ids())])
    editions = db.select_in("editions", "competition_id", [c["id"] for c in comps], columns="id")
    rows = db.select(TABLE, filters=[("in", "edition_id", [e["id"] for e in editions])],
                     order=[("created_at", True)], limit=limit)
    return _embed(rows)


def for_user(user: dict, page: int = 1, limit: int = 20) -> dict:
    result = db.paginate(TABLE, page, limit, match={"user_id": user["id"]}, order=[("created_at", True)])
    result["results"] = _embed(result["results"])
    return result


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_rating(edition_id: str, user: dict, data: dict) -> dict:
    ensure_visible(get_edition_or_404(edition_id), user)
    if db.select_one(TABLE, columns="id", match={"edition_id": edition_id, "user_id": user["id"]}):
        raise ConflictError("You have already rated this edition. Use update instead.")
    rating = db.insert(TABLE, {
        **data,
        "id": str(uuid.uuid4()),
        "edition_id": edition_id,
        "user_id": user["id"],
    })
    summary = recalculate(edition_id)
    logger.info("Rating %s on edition %s; edition average now %s", rating["id"], edition_id, summary["avg_rating"])
    return _embed([rating])[0]


def update_rating(rating_id: str, user: dict, data: dict) -> dict:
    rating = get_rating_or_404(rating_id)
    if rating["user_id"] != user["id"]:
        raise ForbiddenError("You can only update your own ratings")
    if not data:
        return _embed([rating])[0]
    rating = db.update(TABLE, data, {"id": rating_id})
    recalculate(rating["edition_id"])
    return _embed([rating])[0]


def delete_rating(rating_id: str, user: dict) -> dict:
    rating = get_rating_or_404(rating_id)
    if rating["user_id"] != user["id"]:
        raise ForbiddenError("You can only delete your own ratings")
    db.delete(TABLE, {"id": rating_id})
    recalculate(rating["edition_id"])
    return {"deleted": True}
