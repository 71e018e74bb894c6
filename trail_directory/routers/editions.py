"""Editions API: yearly instances of a competition."""

from datetime import date
from typing import Annotated, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from pydantic import AliasChoices, BaseModel, Field

from trail_directory.constants import ADMIN, ORGANIZER, EditionStatus, RegistrationStatus, SortOrder
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_optional_user, require_roles
from trail_directory.services import editions

router = APIRouter(prefix="/api/v2", tags=["Editions"])

organizer_or_admin = require_roles(ORGANIZER, ADMIN)

EditionYear = Annotated[int, Field(ge=1900, le=2100)]


class EditionFields(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    registration_open_date: Optional[date] = None
    registration_close_date: Optional[date] = None
    registration_url: Optional[str] = Field(None, max_length=500)
    distance: Optional[float] = Field(None, gt=0, le=1000)
    elevation: Optional[int] = Field(None, ge=0, le=20000)
    max_participants: Optional[int] = Field(None, gt=0)
    prices: Optional[dict] = None
    city: Optional[str] = Field(None, max_length=100)
    cover_image: Optional[str] = Field(None, max_length=500)
    gallery: Optional[list[str]] = Field(None, validation_alias=AliasChoices("gallery", "images"))
    status: Optional[EditionStatus] = None
    registration_status: Optional[RegistrationStatus] = None
    featured: Optional[bool] = None
    regulations: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=5000)


class EditionCreate(EditionFields):
    year: EditionYear


class EditionUpdate(EditionFields):
    year: Optional[int] = Field(None, ge=1900, le=2100)
    is_active: Optional[bool] = None


class BulkCreate(BaseModel):
    years: list[EditionYear] = Field(..., min_length=1, max_length=100)


@router.get("/competitions/{competition_id}/editions")
async def list_editions(competition_id: UUID, include_inactive: bool = False, sort_order: SortOrder = "desc",
                        viewer: Optional[dict] = Depends(get_optional_user)):
    return editions.list_for_competition(str(competition_id), include_inactive, sort_order, viewer)


@router.post("/competitions/{competition_id}/editions", status_code=201)
async def create_edition(competition_id: UUID, body: EditionCreate, user: dict = Depends(organizer_or_admin)):
    return editions.create_edition(str(competition_id), user, body.model_dump(mode="json", exclude_none=True))


@router.post("/competitions/{competition_id}/editions/bulk", status_code=201)
async def bulk_create_editions(competition_id: UUID, body: BulkCreate, user: dict = Depends(organizer_or_admin)):
    return editions.bulk_create(str(competition_id), user, body.years)


@router.get("/competitions/{competition_id}/editions/{year}")
async def get_edition_by_year(competition_id: UUID, year: int = Path(..., ge=1900, le=2100),
                              viewer: Optional[dict] = Depends(get_optional_user)):
    return editions.get_by_year(str(competition_id), year, viewer)


@router.get("/editions/slug/{slug}")
async def get_edition_by_slug(slug: str, viewer: Optional[dict] = Depends(get_optional_user)):
    return editions.get_edition_by_slug(slug, viewer)


@router.get("/editions/slug/{slug}/with-inheritance")
async def get_edition_by_slug_with_inheritance(slug: str, viewer: Optional[dict] = Depends(get_optional_user)):
    return editions.with_inheritance(editions.get_edition_by_slug_or_404(slug), viewer)


@router.get("/editions/{edition_id}")
async def get_edition(edition_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return editions.get_edition(str(edition_id), viewer)


@router.get("/editions/{edition_id}/full")
@router.get("/editions/{edition_id}/with-inheritance")
async def get_edition_with_inheritance(edition_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return editions.with_inheritance(editions.get_edition_or_404(str(edition_id)), viewer)


@router.get("/editions/{edition_id}/stats")
async def edition_stats(edition_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return editions.edition_stats(str(edition_id), viewer)


@router.put("/editions/{edition_id}")
@router.patch("/editions/{edition_id}")
async def update_edition(edition_id: UUID, body: EditionUpdate, user: dict = Depends(organizer_or_admin)):
    data = update_fields(body, "year", "status", "registration_status", "is_active", "featured")
    return editions.update_edition(str(edition_id), user, data)


@router.patch("/editions/{edition_id}/toggle")
async def toggle_edition(edition_id: UUID, user: dict = Depends(organizer_or_admin)):
    return editions.toggle_active(str(edition_id), user)


@router.delete("/editions/{edition_id}")
async def delete_edition(edition_id: UUID, user: dict = Depends(organizer_or_admin)):
    return editions.delete_edition(str(edition_id), user)
