"""Edition ratings API."""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_current_user, get_optional_user
from trail_directory.services import edition_ratings
from trail_directory.services.edition_ratings import CRITERIA

router = APIRouter(prefix="/api/v2", tags=["Ratings"])

Criterion = Annotated[int, Field(ge=1, le=4)]


class RatingCreate(BaseModel):
    rating_info_briefing: Criterion
    rating_race_pack: Criterion
    rating_village: Criterion
    rating_marking: Criterion
    rating_aid: Criterion
    rating_finisher: Criterion
    rating_eco: Criterion
    comment: Optional[str] = Field(None, max_length=2000)


class RatingUpdate(BaseModel):
    rating_info_briefing: Optional[Criterion] = None
    rating_race_pack: Optional[Criterion] = None
    rating_village: Optional[Criterion] = None
    rating_marking: Optional[Criterion] = None
    rating_aid: Optional[Criterion] = None
    rating_finisher: Optional[Criterion] = None
    rating_eco: Optional[Criterion] = None
    comment: Optional[str] = Field(None, max_length=2000)


@router.get("/editions/{edition_id}/ratings")
async def list_ratings(
    edition_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    viewer: Optional[dict] = Depends(get_optional_user),
):
    return edition_ratings.list_for_edition(str(edition_id), page, limit, viewer)


@router.post("/editions/{edition_id}/ratings", status_code=201)
async def create_rating(edition_id: UUID, body: RatingCreate, user: dict = Depends(get_current_user)):
    return edition_ratings.create_rating(str(edition_id), user, body.model_dump(mode="json"))


@router.get("/ratings/recent")
async def recent_ratings(limit: int = Query(10, ge=1, le=50)):
    return edition_ratings.recent(limit)


@router.get("/ratings/me")
async def my_ratings(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: dict = Depends(get_current_user),
):
    return edition_ratings.for_user(user, page, limit)


@router.get("/ratings/{rating_id}")
async def get_rating(rating_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return edition_ratings.get_rating(str(rating_id), viewer)


@router.put("/ratings/{rating_id}")
@router.patch("/ratings/{rating_id}")
async def update_rating(rating_id: UUID, body: RatingUpdate, user: dict = Depends(get_current_user)):
    return edition_ratings.update_rating(str(rating_id), user, update_fields(body, *CRITERIA))


@router.delete("/ratings/{rating_id}")
async def delete_rating(rating_id: UUID, user: dict = Depends(get_current_user)):
    return edition_ratings.delete_rating(str(rating_id), user)
