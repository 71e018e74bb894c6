"""Edition podiums (top three per classification) and the race chronicle."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.errors import BadRequestError, NotFoundError
from trail_directory.services.competitions import ensure_can_manage
from trail_directory.services.editions import ensure_visible, get_edition_or_404

logger = logging.getLogger(__name__)

TABLE = "edition_podiums"


def get_podium_or_404(podium_id: str) -> dict:
    podium = db.select_one(TABLE, match={"id": podium_id})
    if not podium:
        raise NotFoundError("Podium not found")
    return podium


def _ensure_can_edit(user: dict, edition: dict) -> None:
    competition = db.select_one("competitions", match={"id": edition["competition_id"]})
    if not competition:
        raise NotFoundError("Competition not found")
    ensure_can_manage(user, competition)


def _check_category(data: dict) -> None:
    if data.get("type") == "CATEGORY" and not data.get("category_name"):
        raise BadRequestError("category_name is required for CATEGORY podiums")


def list_for_edition(edition_id: str, viewer: dict | None = None) -> list[dict]:
    ensure_visible(get_edition_or_404(edition_id), viewer)
    return db.select(TABLE, match={"edition_id": edition_id},
                     order=[("sort_order", False), ("created_at", False)])


def get_podium(podium_id: str, viewer: dict | None = None) -> dict:
    podium = get_podium_or_404(podium_id)
    edition = get_edition_or_404(podium["edition_id"])
    competition, event = ensure_visible(edition, viewer)
    return {
        **podium,
        "edition": {"id": edition["id"], "year": edition.get("year"), "slug": edition.get("slug")},
        "competition": {"id": competition["id"], "name": competition.get("name"), "slug": competition.get("slug")},
        "event": {"id": event["id"], "name": event.get("name"), "slug": event.get("slug")},
    }


def create_podium(edition_id: str, user: dict, data: dict) -> dict:
    edition = get_edition_or_404(edition_id)
    _ensure_can_edit(user, edition)
    _check_category(data)
    if data.get("type") != "CATEGORY":
        data.pop("category_name", None)
    podium = db.insert(TABLE, {
        "sort_order": 0,
        **data,
        "id": str(uuid.uuid4()),
        "edition_id": edition_id,
    })
    logger.info("Podium %s (%s) added to edition %s", podium["id"], podium["type"], edition_id)
    return podium


def update_podium(podium_id: str, user: dict, data: dict) -> dict:
    podium = get_podium_or_404(podium_id)
    _ensure_can_edit(user, get_edition_or_404(podium["edition_id"]))
    _check_category({**podium, **data})
    if not data:
        return podium
    return db.update(TABLE, data, {"id": podium_id})


def delete_podium(podium_id: str, user: dict) -> dict:
    podium = get_podium_or_404(podium_id)
    _ensure_can_edit(user, get_edition_or_404(podium["edition_id"]))
    db.delete(TABLE, {"id": podium_id})
    return {"deleted": True}


# ---------------------------------------------------------------------------
# Chronicle
# ---------------------------------------------------------------------------

def get_chronicle(edition_id: str, viewer: dict | None = None) -> dict:
    edition = get_edition_or_404(edition_id)
    ensure_visible(edition, viewer)
    return {"edition_id": edition_id, "chronicle": edition.get("chronicle")}


def set_chronicle(edition_id: str, user: dict, chronicle: str) -> dict:
    edition = get_edition_or_404(edition_id)
    _ensure_can_edit(user, edition)
    db.update("editions", {"chronicle": chronicle}, {"id": edition_id})
    logger.info("Chronicle updated for edition %s by %s", edition_id, user["id"])
    return {"edition_id": edition_id, "chronicle": chronicle}
