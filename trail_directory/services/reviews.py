"""Competition reviews: one rating per user per competition."""

import logging
import uuid

from trail_directory import supabase_client as db
from trail_directory.constants import CREATOR_FIELDS
from trail_directory.errors import ConflictError, ForbiddenError, NotFoundError
from trail_directory.security import ensure_owner_or_admin
from trail_directory.services.competitions import get_competition_or_404, rating_summary

logger = logging.getLogger(__name__)

TABLE = "reviews"


def get_review_or_404(review_id: str) -> dict:
    review = db.select_one(TABLE, match={"id": review_id})
    if not review:
        raise NotFoundError("Review not found")
    return review


def _with_authors(rows: list[dict]) -> list[dict]:
    users = {u["id"]: u for u in db.select_in("users", "id", [r.get("user_id") for r in rows])}
    return [
        {**r, "user": {k: users[r["user_id"]].get(k) for k in CREATOR_FIELDS}
         if r.get("user_id") in users else None}
        for r in rows
    ]


def list_for_competition(competition_id: str, page: int = 1, limit: int = 20,
                         rating: int | None = None, sort_by: str = "created_at",
                         sort_order: str = "desc") -> dict:
    get_competition_or_404(competition_id)
    match = {"competition_id": competition_id}
    if rating is not None:
        match["rating"] = rating
    column = "rating" if sort_by == "rating" else "created_at"
    result = db.paginate(TABLE, page, limit, match=match, order=[(column, sort_order == "desc")])
    result["results"] = _with_authors(result["results"])
    result["summary"] = rating_summary(competition_id)
    return result


def get_review(review_id: str) -> dict:
    return _with_authors([get_review_or_404(review_id)])[0]


def create_review(user: dict, competition_id: str, rating: int, comment: str | None = None) -> dict:
    get_competition_or_404(competition_id)
    if db.select_one(TABLE, columns="id", match={"competition_id": competition_id, "user_id": user["id"]}):
        raise ConflictError("You have already reviewed this competition")
    review = db.insert(TABLE, {
        "id": str(uuid.uuid4()),
        "competition_id": competition_id,
        "user_id": user["id"],
        "rating": rating,
        "comment": comment,
    })
    logger.info("Review %s on competition %s (rating %d)", review["id"], competition_id, rating)
    return review


def update_review(review_id: str, user: dict, data: dict) -> dict:
    review = get_review_or_404(review_id)
    if review.get("user_id") != user["id"]:
        raise ForbiddenError("You can only edit your own reviews")
    if not data:
        return review
    return db.update(TABLE, data, {"id": review_id})


def delete_review(review_id: str, user: dict) -> dict:
    review = get_review_or_404(review_id)
    ensure_owner_or_admin(user, review.get("user_id"), "delete this review")
    db.delete(TABLE, {"id": review_id})
    return {"deleted": True}
