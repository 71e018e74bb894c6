"""Participants: registrations for an edition, with capacity tracking."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from trail_directory.services.competitions import get_competition_or_404
from trail_directory.services.editions import effective, get_edition_or_404
from trail_directory.services.events import can_manage, get_event_or_404

logger = logging.getLogger(__name__)

TABLE = "participants"


def _context(edition_id: str) -> tuple[dict, dict, dict]:
    """(edition, competition, event) for an edition id."""
    edition = get_edition_or_404(edition_id)
    competition = get_competition_or_404(edition["competition_id"])
    event = get_event_or_404(competition["event_id"])
    return edition, competition, event


def get_participant_or_404(participant_id: str) -> dict:
    participant = db.select_one(TABLE, match={"id": participant_id})
    if not participant:
        raise NotFoundError("Participant not found")
    return participant


def list_participants(edition_id: str, user: dict, page: int = 1, limit: int = 50,
                      status: str | None = None, search: str | None = None) -> dict:
    _, _, event = _context(edition_id)
    if not can_manage(user, event):
        raise ForbiddenError("You do not have permission to view these participants")
    match = {"edition_id": edition_id}
    if status:
        match["status"] = status
    expr = db.search_expr(search, ("first_name", "last_name", "email")) if search else None
    return db.paginate(TABLE, page, limit, match=match, search=expr,
                       order=[("last_name", False), ("first_name", False)])


def register(edition_id: str, user: dict, data: dict | None = None) -> dict:
    """Register *user* (or, for managers, the person described in *data*)."""
    data = data or {}
    edition, competition, event = _context(edition_id)

    on_behalf = bool(data.get("email")) and can_manage(user, event)
    if on_behalf:
        if not data.get("first_name") or not data.get("last_name"):
            raise BadRequestError("first_name and last_name are required")
        person = {
            "user_id": data.get("user_id"),
            "first_name": data["first_name"],
            "last_name": data["last_name"],
            "email": data["email"].strip().lower(),
        }
    else:
        person = {
            "user_id": user["id"],
            "first_name": user.get("first_name") or user.get("username"),
            "last_name": user.get("last_name") or "",
            "email": user["email"],
        }

    if edition.get("registration_status") != "OPEN":
        raise BadRequestError("Registration is not open for this edition")

    max_participants = effective(edition, competition, "max_participants")
    current = edition.get("current_participants") or 0
    if max_participants is not None and current >= max_participants:
        raise ConflictError("This edition is full")

    if person["user_id"] and db.select_one(TABLE, columns="id",
                                           match={"edition_id": edition_id, "user_id": person["user_id"]}):
        raise ConflictError("Already registered for this edition")
    if db.select_one(TABLE, columns="id", match={"edition_id": edition_id, "email": person["email"]}):
        raise ConflictError("Already registered for this edition")

    participant = db.insert(TABLE, {
        **person,
        "id": str(uuid.uuid4()),
        "edition_id": edition_id,
        "bib_number": data.get("bib_number"),
        "status": "REGISTERED",
    })

    current += 1
    changes = {"current_participants": current}
    if max_participants is not None and current >= max_participants:
        changes["registration_status"] = "FULL"
    db.update("editions", changes, {"id": edition_id})
    logger.info("Participant %s registered for edition %s (%d/%s)",
                participant["id"], edition_id, current, max_participants)
    return participant


def _ensure_access(participant: dict, user: dict, own_allowed: bool = True) -> None:
    if own_allowed and participant.get("user_id") and participant["user_id"] == user["id"]:
        return
    _, _, event = _context(participant["edition_id"])
    if not can_manage(user, event):
        raise ForbiddenError("You do not have permission to access this participant")


def get_participant(participant_id: str, user: dict) -> dict:
    participant = get_participant_or_404(participant_id)
    _ensure_access(participant, user)
    return participant


def update_participant(participant_id: str, user: dict, data: dict) -> dict:
    participant = get_participant_or_404(participant_id)
    _ensure_access(participant, user, own_allowed=False)
    if not data:
        return participant
    return db.update(TABLE, data, {"id": participant_id})


def remove_participant(participant_id: str, user: dict) -> dict:
    participant = get_participant_or_404(participant_id)
    _ensure_access(participant, user)
    db.delete(TABLE, {"id": participant_id})

    edition = db.select_one("editions", match={"id": participant["edition_id"]})
    if edition:
        changes = {"current_participants": max((edition.get("current_participants") or 0) - 1, 0)}
        if edition.get("registration_status") == "FULL":
            changes["registration_status"] = "OPEN"
        db.update("editions", changes, {"id": edition["id"]})
    logger.info("Participant %s removed from edition %s", participant_id, participant["edition_id"])
    return {"deleted": True}
