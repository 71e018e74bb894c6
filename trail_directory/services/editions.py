"""Editions service: yearly instances of a competition, with inherited base values."""

import logging
import uuid
from collections import Counter
from datetime import date

from trail_directory import supabase_client as db
from trail_directory.constants import PARTICIPANT_STATUSES
from trail_directory.errors import ConflictError, NotFoundError
from trail_directory.services.cascade import delete_editions
from trail_directory.services.competitions import ensure_can_manage, get_competition_or_404
from trail_directory.services.competitions import ensure_visible as ensure_competition_visible
from trail_directory.services.slugs import unique_slug

logger = logging.getLogger(__name__)

TABLE = "editions"

# edition column -> competition column it falls back to
INHERITED_FIELDS = {
    "distance": "base_distance",
    "elevation": "base_elevation",
    "max_participants": "base_max_participants",
}


def get_edition_or_404(edition_id: str) -> dict:
    edition = db.select_one(TABLE, match={"id": edition_id})
    if not edition:
        raise NotFoundError("Edition not found")
    return edition


def _year_taken(competition_id: str, year: int, exclude_id: str | None = None) -> bool:
    row = db.select_one(TABLE, columns="id", match={"competition_id": competition_id, "year": year})
    return row is not None and row["id"] != exclude_id


def ensure_visible(edition: dict, viewer: dict | None) -> tuple[dict, dict]:
    """(competition, event) for an edition *viewer* may see."""
    competition = db.select_one("competitions", match={"id": edition["competition_id"]})
    if not competition:
        raise NotFoundError("Edition not found")
    return competition, ensure_competition_visible(competition, viewer, "Edition not found")


def effective(edition: dict, competition: dict, field: str):
    """Edition value for *field*, or the competition's base value when unset."""
    value = edition.get(field)
    return value if value is not None else competition.get(INHERITED_FIELDS[field])


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def list_for_competition(competition_id: str, include_inactive: bool = False,
                         sort_order: str = "desc", viewer: dict | None = None) -> list[dict]:
    ensure_competition_visible(get_competition_or_404(competition_id), viewer)
    match = {"competition_id": competition_id}
    if not include_inactive:
        match["is_active"] = True
    return db.select(TABLE, match=match, order="year", order_desc=sort_order == "desc")


def get_edition_by_slug_or_404(slug: str) -> dict:
    edition = db.select_one(TABLE, match={"slug": slug})
    if not edition:
        raise NotFoundError("Edition not found")
    return edition


def get_edition(edition_id: str, viewer: dict | None = None) -> dict:
    edition = get_edition_or_404(edition_id)
    ensure_visible(edition, viewer)
    return edition


def get_edition_by_slug(slug: str, viewer: dict | None = None) -> dict:
    edition = get_edition_by_slug_or_404(slug)
    ensure_visible(edition, viewer)
    return edition


def get_by_year(competition_id: str, year: int, viewer: dict | None = None) -> dict:
    ensure_competition_visible(get_competition_or_404(competition_id), viewer)
    edition = db.select_one(TABLE, match={"competition_id": competition_id, "year": year})
    if not edition:
        raise NotFoundError(f"No edition for {year}")
    return edition


def with_inheritance(edition: dict, viewer: dict | None = None) -> dict:
    """Edition with distance/elevation/max_participants resolved from the competition."""
    competition, event = ensure_visible(edition, viewer)
    resolved = {field: effective(edition, competition, field) for field in INHERITED_FIELDS}
    return {
        **edition,
        **resolved,
        "inherited": {field: edition.get(field) is None for field in INHERITED_FIELDS},
        "competition": {
            "id": competition["id"],
            "name": competition.get("name"),
            "slug": competition.get("slug"),
            "type": competition.get("type"),
            "base_distance": competition.get("base_distance"),
            "base_elevation": competition.get("base_elevation"),
            "base_max_participants": competition.get("base_max_participants"),
        },
        "event": {
            "id": event.get("id"),
            "name": event.get("name"),
            "slug": event.get("slug"),
            "country": event.get("country"),
            "city": event.get("city"),
        },
    }


def edition_stats(edition_id: str, viewer: dict | None = None) -> dict:
    edition = get_edition_or_404(edition_id)
    competition, _ = ensure_visible(edition, viewer)
    participants = db.select("participants", columns="id,status", match={"edition_id": edition_id})
    by_status = Counter(p.get("status") for p in participants)
    max_participants = effective(edition, competition, "max_participants")
    current = edition.get("current_participants") or 0
    return {
        "edition_id": edition_id,
        "year": edition.get("year"),
        "participants_by_status": {s: by_status.get(s, 0) for s in PARTICIPANT_STATUSES},
        "total_participants": len(participants),
        "current_participants": current,
        "max_participants": max_participants,
        "spots_left": max(max_participants - current, 0) if max_participants is not None else None,
        "status": edition.get("status"),
        "registration_status": edition.get("registration_status"),
    }


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def _new_row(competition: dict, year: int, data: dict) -> dict:
    return {
        "status": "UPCOMING",
        "registration_status": "NOT_OPEN",
        "is_active": True,
        "featured": False,
        **data,
        "id": str(uuid.uuid4()),
        "competition_id": competition["id"],
        "year": year,
        "slug": unique_slug(TABLE, f"{competition['slug']}-{year}"),
        "current_participants": 0,
    }


def create_edition(competition_id: str, user: dict, data: dict) -> dict:
    competition = get_competition_or_404(competition_id)
    ensure_can_manage(user, competition)
    year = data.pop("year")
    if _year_taken(competition_id, year):
        raise ConflictError(f"An edition for {year} already exists")
    edition = db.insert(TABLE, _new_row(competition, year, data))
    logger.info("Edition created: %s %d (%s)", competition.get("name"), year, edition["id"])
    return edition


def bulk_create(competition_id: str, user: dict, years: list[int]) -> dict:
    """Create one edition per year; past years are FINISHED, existing years skipped."""
    competition = get_competition_or_404(competition_id)
    ensure_can_manage(user, competition)
    this_year = date.today().year
    created, skipped = [], []
    for year in sorted(set(years)):
        if _year_taken(competition_id, year):
            skipped.append(year)
            continue
        status = "FINISHED" if year < this_year else "UPCOMING"
        created.append(db.insert(TABLE, _new_row(competition, year, {"status": status})))
    logger.info("Bulk editions for %s: %d created, %d skipped", competition_id, len(created), len(skipped))
    return {"created": created, "skipped": skipped}


def update_edition(edition_id: str, user: dict, data: dict) -> dict:
    edition = get_edition_or_404(edition_id)
    ensure_can_manage(user, get_competition_or_404(edition["competition_id"]))
    year = data.get("year")
    if year is not None and year != edition.get("year") and _year_taken(edition["competition_id"], year, edition_id):
        raise ConflictError(f"An edition for {year} already exists")
    if not data:
        return edition
    return db.update(TABLE, data, {"id": edition_id})


def toggle_active(edition_id: str, user: dict) -> dict:
    edition = get_edition_or_404(edition_id)
    ensure_can_manage(user, get_competition_or_404(edition["competition_id"]))
    return db.update(TABLE, {"is_active": not edition.get("is_active", True)}, {"id": edition_id})


def delete_edition(edition_id: str, user: dict) -> dict:
    edition = get_edition_or_404(edition_id)
    ensure_can_manage(user, get_competition_or_404(edition["competition_id"]))
    delete_editions([edition_id])
    logger.warning("Edition deleted: %s by %s", edition_id, user["id"])
    return {"deleted": True}


def sweep_statuses(today: date | None = None) -> dict:
    """Advance UPCOMING/ONGOING editions whose dates have passed."""
    today_iso = (today or date.today()).isoformat()
    started = finished = 0
    for edition in db.select(TABLE, filters=[("in", "status", ["UPCOMING", "ONGOING"])]):
        start = (edition.get("start_date") or "")[:10]
        end = (edition.get("end_date") or "")[:10] or start
        if not start:
            continue
        if end < today_iso:
            db.update(TABLE, {"status": "FINISHED"}, {"id": edition["id"]})
            finished += 1
        elif start <= today_iso and edition["status"] == "UPCOMING":
            db.update(TABLE, {"status": "ONGOING"}, {"id": edition["id"]})
            started += 1
    return {"started": started, "finished": finished}
