"""Cascading deletes for the event -> competition -> edition tree."""

import logging

from trail_directory import supabase_client as db

logger = logging.getLogger(__name__)


def delete_editions(edition_ids: list[str]) -> int:
    """Delete editions with their participants, podiums and ratings."""
    if not edition_ids:
        return 0
    for table in ("participants", "edition_podiums", "edition_ratings"):
        db.delete(table, filters=[("in", "edition_id", edition_ids)])
    return len(db.delete("editions", filters=[("in", "id", edition_ids)]))


def delete_competitions(competition_ids: list[str]) -> int:
    """Delete competitions with their editions and everything users attached to them."""
    if not competition_ids:
        return 0
    editions = db.select_in("editions", "competition_id", competition_ids, columns="id")
    delete_editions([e["id"] for e in editions])
    for table in ("reviews", "favorites", "user_competitions"):
        db.delete(table, filters=[("in", "competition_id", competition_ids)])
    return len(db.delete("competitions", filters=[("in", "id", competition_ids)]))


def delete_event_tree(event_id: str) -> int:
    """Delete an event and all its competitions. Returns competitions removed."""
    competitions = db.select("competitions", columns="id", match={"event_id": event_id})
    removed = delete_competitions([c["id"] for c in competitions])
    db.delete("event_managers", {"event_id": event_id})
    db.delete("events", {"id": event_id})
    logger.warning("Deleted event %s with %d competitions", event_id, removed)
    return removed
