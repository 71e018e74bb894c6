"""Favorite competitions per user."""

import uuid

from trail_directory import supabase_client as db
from trail_directory.errors import NotFoundError
from trail_directory.services.competitions import get_competition_or_404

TABLE = "favorites"


def _get(user_id: str, competition_id: str) -> dict | None:
    return db.select_one(TABLE, match={"user_id": user_id, "competition_id": competition_id})


def list_favorites(user: dict) -> list[dict]:
    rows = db.select(TABLE, match={"user_id": user["id"]}, order="created_at", order_desc=True)
    comps = {c["id"]: c for c in db.select_in("competitions", "id", [r["competition_id"] for r in rows])}
    events = {e["id"]: e for e in db.select_in("events", "id", [c.get("event_id") for c in comps.values()],
                                               columns="id,name,slug,country,city")}
    out = []
    for row in rows:
        comp = comps.get(row["competition_id"])
        if comp:
            comp = {**comp, "event": events.get(comp.get("event_id"))}
        out.append({**row, "competition": comp})
    return out


def is_favorite(user: dict, competition_id: str) -> dict:
    return {"competition_id": competition_id, "is_favorite": _get(user["id"], competition_id) is not None}


def add(user: dict, competition_id: str) -> dict:
    """Idempotent: returns the existing favorite if already present."""
    get_competition_or_404(competition_id)
    existing = _get(user["id"], competition_id)
    if existing:
        return existing
    return db.insert(TABLE, {
        "id": str(uuid.uuid4()),
        "user_id": user["id"],
        "competition_id": competition_id,
    })


def remove(user: dict, competition_id: str) -> dict:
    existing = _get(user["id"], competition_id)
    if not existing:
        raise NotFoundError("Favorite not found")
    db.delete(TABLE, {"id": existing["id"]})
    return {"deleted": True}


def toggle(user: dict, competition_id: str) -> dict:
    if _get(user["id"], competition_id):
        remove(user, competition_id)
        return {"competition_id": competition_id, "is_favorite": False}
    add(user, competition_id)
    return {"competition_id": competition_id, "is_favorite": True}
