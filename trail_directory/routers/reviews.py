"""Reviews API."""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from trail_directory.constants import SortOrder
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_current_user
from trail_directory.services import reviews

router = APIRouter(prefix="/api/v2/reviews", tags=["Reviews"])


class ReviewCreate(BaseModel):
    competition_id: UUID
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=1000)


@router.get("/competition/{competition_id}")
async def list_reviews(
    competition_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    rating: Optional[int] = Query(None, ge=1, le=5),
    sort_by: Literal["created_at", "rating"] = "created_at",
    sort_order: SortOrder = "desc",
):
    return reviews.list_for_competition(str(competition_id), page, limit, rating, sort_by, sort_order)


@router.get("/{review_id}")
async def get_review(review_id: UUID):
    return reviews.get_review(str(review_id))


@router.post("", status_code=201)
async def create_review(body: ReviewCreate, user: dict = Depends(get_current_user)):
    return reviews.create_review(user, str(body.competition_id), body.rating, body.comment)


@router.put("/{review_id}")
@router.patch("/{review_id}")
async def update_review(review_id: UUID, body: ReviewUpdate, user: dict = Depends(get_current_user)):
    return reviews.update_review(str(review_id), user, update_fields(body, "rating"))


@router.delete("/{review_id}")
async def delete_review(review_id: UUID, user: dict = Depends(get_current_user)):
    return reviews.delete_review(str(review_id), user)
