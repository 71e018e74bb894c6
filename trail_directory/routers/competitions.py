"""Competitions API: races within an event."""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field

from trail_directory.constants import ADMIN, ORGANIZER, ContentStatus, RaceType
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_optional_user, require_roles
from trail_directory.services import competitions

router = APIRouter(prefix="/api/v2", tags=["Competitions"])

organizer_or_admin = require_roles(ORGANIZER, ADMIN)


class CompetitionFields(BaseModel):
    description: Optional[str] = Field(None, max_length=10000)
    type: Optional[RaceType] = None
    base_distance: Optional[float] = Field(None, gt=0, le=1000)
    base_elevation: Optional[int] = Field(None, ge=0, le=20000)
    base_max_participants: Optional[int] = Field(None, gt=0)
    itra_points: Optional[int] = Field(None, ge=0, le=6)
    utmb_index: Optional[str] = Field(None, max_length=20)
    logo_url: Optional[str] = Field(None, max_length=500)
    cover_image: Optional[str] = Field(None, max_length=500)
    gallery: Optional[list[str]] = Field(None, validation_alias=AliasChoices("gallery", "images"))
    display_order: Optional[int] = Field(None, ge=0)
    featured: Optional[bool] = None


class CompetitionCreate(CompetitionFields):
    name: str = Field(..., min_length=3, max_length=200)
    type: RaceType = "TRAIL"


class CompetitionUpdate(CompetitionFields):
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    slug: Optional[str] = Field(None, max_length=200)
    status: Optional[ContentStatus] = None
    is_active: Optional[bool] = None


class OrderItem(BaseModel):
    id: UUID
    display_order: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    order: list[OrderItem] = Field(..., min_length=1)


@router.get("/events/{event_id}/competitions")
async def list_for_event(event_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return competitions.list_for_event(str(event_id), viewer)


@router.post("/events/{event_id}/competitions", status_code=201)
async def create_competition(event_id: UUID, body: CompetitionCreate, user: dict = Depends(organizer_or_admin)):
    return competitions.create_competition(str(event_id), user, body.model_dump(mode="json", exclude_none=True))


@router.post("/events/{event_id}/competitions/reorder")
async def reorder_competitions(event_id: UUID, body: ReorderRequest, user: dict = Depends(organizer_or_admin)):
    order = [item.model_dump(mode="json") for item in body.order]
    return competitions.reorder(str(event_id), user, order)


@router.get("/competitions")
async def list_competitions(
    featured: Optional[bool] = None,
    type: Optional[RaceType] = None,
    event_id: Optional[UUID] = None,
    sort_by: Literal["name", "typical_month", "distance"] = "name",
    limit: int = Query(50, ge=1, le=200),
):
    return competitions.list_competitions(featured, type, str(event_id) if event_id else None, sort_by, limit)


@router.get("/competitions/slug/{slug}")
async def get_competition_by_slug(slug: str, viewer: Optional[dict] = Depends(get_optional_user)):
    return competitions.get_competition_by_slug(slug, viewer)


@router.get("/competitions/{competition_id}")
async def get_competition(competition_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return competitions.get_competition(str(competition_id), viewer)


@router.put("/competitions/{competition_id}")
@router.patch("/competitions/{competition_id}")
async def update_competition(competition_id: UUID, body: CompetitionUpdate, user: dict = Depends(organizer_or_admin)):
    data = update_fields(body, "name", "slug", "type", "status", "is_active", "featured", "display_order")
    return competitions.update_competition(str(competition_id), user, data)


@router.patch("/competitions/{competition_id}/toggle")
async def toggle_competition(competition_id: UUID, user: dict = Depends(organizer_or_admin)):
    return competitions.toggle_active(str(competition_id), user)


@router.delete("/competitions/{competition_id}")
async def delete_competition(competition_id: UUID, user: dict = Depends(organizer_or_admin)):
    return competitions.delete_competition(str(competition_id), user)
