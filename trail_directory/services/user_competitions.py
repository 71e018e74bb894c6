"""Athlete tracking: competitions a user is interested in, registered for, or finished."""

import logging
import re
import uuid
from collections import Counter, defaultdict

from trail_directory import supabase_client as db
from trail_directory.constants import CREATOR_FIELDS, PARTICIPATION_STATUSES
from trail_directory.errors import BadRequestError, ForbiddenError, NotFoundError
from trail_directory.services.competitions import get_competition_or_404

logger = logging.getLogger(__name__)

TABLE = "user_competitions"

FINISH_TIME_RE = re.compile(r"^(\d{1,2}):([0-5]\d):([0-5]\d)$")
RANKING_TYPES = ("competitions", "km", "elevation")


def finish_time_seconds(value: str) -> int:
    """'7:05:30' -> 25530."""
    match = FINISH_TIME_RE.match(value or "")
    if not match:
        raise BadRequestError("finish_time must be HH:MM:SS")
    h, m, s = (int(x) for x in match.groups())
    return h * 3600 + m * 60 + s


def _prepare(data: dict) -> dict:
    """Derive stored columns from submitted result fields."""
    values = dict(data)
    if values.get("finish_time"):
        values["finish_time_seconds"] = finish_time_seconds(values["finish_time"])
    if values.get("status") == "COMPLETED" and not values.get("completed_at"):
        values["completed_at"] = db.now_iso()
    return values


def _with_competitions(rows: list[dict]) -> list[dict]:
    comps = {c["id"]: c for c in db.select_in("competitions", "id", [r["competition_id"] for r in rows])}
    events = {e["id"]: e for e in db.select_in("events", "id", [c.get("event_id") for c in comps.values()],
                                               columns="id,name,slug,country,city,logo_url")}
    out = []
    for row in rows:
        comp = comps.get(row["competition_id"])
        if comp:
            comp = {**comp, "event": events.get(comp.get("event_id"))}
        out.append({**row, "competition": comp})
    return out


def get_mark(user_id: str, competition_id: str) -> dict | None:
    return db.select_one(TABLE, match={"user_id": user_id, "competition_id": competition_id})


def get_mark_or_404(mark_id: str) -> dict:
    mark = db.select_one(TABLE, match={"id": mark_id})
    if not mark:
        raise NotFoundError("Tracked competition not found")
    return mark


# ---------------------------------------------------------------------------
# Marking
# ---------------------------------------------------------------------------

def mark(user: dict, competition_id: str, status: str = "INTERESTED", **fields) -> dict:
    """Create or update the caller's mark on a competition."""
    get_competition_or_404(competition_id)
    values = _prepare({"status": status, **fields})
    existing = get_mark(user["id"], competition_id)
    if existing:
        row = db.update(TABLE, values, {"id": existing["id"]})
    else:
        row = db.insert(TABLE, {
            **values,
            "id": str(uuid.uuid4()),
            "user_id": user["id"],
            "competition_id": competition_id,
            "marked_at": db.now_iso(),
        })
        logger.info("User %s marked competition %s as %s", user["id"], competition_id, status)
    return _with_competitions([row])[0]


def unmark(user: dict, competition_id: str) -> dict:
    existing = get_mark(user["id"], competition_id)
    if not existing:
        raise NotFoundError("Competition not marked")
    db.delete(TABLE, {"id": existing["id"]})
    return {"deleted": True}


def status_for(user: dict, competition_id: str) -> dict:
    row = get_mark(user["id"], competition_id)
    return {"data": row, "is_marked": row is not None}


def update_for_competition(user: dict, competition_id: str, data: dict) -> dict:
    existing = get_mark(user["id"], competition_id)
    if not existing:
        raise NotFoundError("Competition not marked")
    return _with_competitions([db.update(TABLE, _prepare(data), {"id": existing["id"]})])[0]


def update_mark(mark_id: str, user: dict, data: dict) -> dict:
    existing = get_mark_or_404(mark_id)
    if existing["user_id"] != user["id"]:
        raise ForbiddenError("You can only update your own tracked competitions")
    if not data:
        return existing
    return _with_competitions([db.update(TABLE, _prepare(data), {"id": mark_id})])[0]


def delete_mark(mark_id: str, user: dict) -> dict:
    existing = get_mark_or_404(mark_id)
    if existing["user_id"] != user["id"]:
        raise ForbiddenError("You can only delete your own tracked competitions")
    db.delete(TABLE, {"id": mark_id})
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_for_user(user_id: str, status: str | None = None) -> list[dict]:
    match = {"user_id": user_id}
    if status:
        match["status"] = status
    return _with_competitions(db.select(TABLE, match=match, order="marked_at", order_desc=True))


def stats_for_user(user_id: str) -> dict:
    rows = db.select(TABLE, columns="id,status", match={"user_id": user_id})
    counts = Counter(r.get("status") for r in rows)
    return {"total": len(rows), "by_status": {s: counts.get(s, 0) for s in PARTICIPATION_STATUSES}}


def ranking(kind: str, limit: int = 20) -> list[dict]:
    """Users ranked by completed competitions, km or elevation."""
    if kind not in RANKING_TYPES:
        raise BadRequestError(f"Ranking type must be one of: {', '.join(RANKING_TYPES)}")
    completed = db.select(TABLE, columns="user_id,competition_id", match={"status": "COMPLETED"})
    comps = {c["id"]: c for c in db.select_in("competitions", "id", [r["competition_id"] for r in completed],
                                              columns="id,base_distance,base_elevation")}

    totals: dict[str, float] = defaultdict(float)
    for row in completed:
        comp = comps.get(row["competition_id"], {})
        if kind == "competitions":
            totals[row["user_id"]] += 1
        elif kind == "km":
            totals[row["user_id"]] += comp.get("base_distance") or 0
        else:
            totals[row["user_id"]] += comp.get("base_elevation") or 0

    ordered = sorted(totals.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    users = {u["id"]: u for u in db.select_in("users", "id", [uid for uid, _ in ordered])}
    return [
        {
            "position": i,
            "user": {k: users[uid].get(k) for k in CREATOR_FIELDS} if uid in users else {"id": uid},
            "value": int(value) if kind != "km" else round(value, 1),
        }
        for i, (uid, value) in enumerate(ordered, start=1)
    ]
