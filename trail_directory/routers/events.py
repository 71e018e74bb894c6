"""Events API: public directory reads, organizer writes, admin moderation."""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field

from trail_directory.constants import ADMIN, ORGANIZER, ContentStatus, Language, SortOrder
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_optional_user, is_admin, require_roles
from trail_directory.services import events

router = APIRouter(prefix="/api/v2/events", tags=["Events"])

organizer_or_admin = require_roles(ORGANIZER, ADMIN)
admin_only = require_roles(ADMIN)


class EventFields(BaseModel):
    description: Optional[str] = Field(None, max_length=10000)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    website: Optional[str] = Field(None, max_length=500,
                                   validation_alias=AliasChoices("website", "website_url"))
    email: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    facebook_url: Optional[str] = Field(None, max_length=500)
    instagram_url: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=500)
    cover_image: Optional[str] = Field(None, max_length=500)
    gallery: Optional[list[str]] = Field(None, validation_alias=AliasChoices("gallery", "images"))
    first_edition_year: Optional[int] = Field(None, ge=1900, le=2100)
    typical_month: Optional[int] = Field(None, ge=1, le=12)
    organizer_id: Optional[UUID] = None
    original_language: Optional[Language] = None
    featured: Optional[bool] = None


class EventCreate(EventFields):
    name: str = Field(..., min_length=3, max_length=200)
    country: str = Field(..., min_length=2, max_length=100)
    city: str = Field(..., min_length=2, max_length=100)
    slug: Optional[str] = Field(None, max_length=200)


class EventUpdate(EventFields):
    name: Optional[str] = Field(None, min_length=3, max_length=200)
    country: Optional[str] = Field(None, min_length=2, max_length=100)
    city: Optional[str] = Field(None, min_length=2, max_length=100)
    slug: Optional[str] = Field(None, max_length=200)
    status: Optional[ContentStatus] = None


class StatusUpdate(BaseModel):
    status: ContentStatus


class RejectRequest(BaseModel):
    reason: str = Field("", max_length=1000)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

@router.get("", summary="List events")
async def list_events(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    country: Optional[str] = None,
    featured: Optional[bool] = None,
    status: ContentStatus = "PUBLISHED",
    typical_month: Optional[int] = Query(None, ge=1, le=12),
    sort_by: Literal["name", "created_at", "view_count", "first_edition_year"] = "created_at",
    sort_order: SortOrder = "desc",
    viewer: Optional[dict] = Depends(get_optional_user),
):
    if not is_admin(viewer):
        status = "PUBLISHED"
    return events.list_events(page, limit, search, country, featured, status,
                              typical_month, sort_by, sort_order)


@router.get("/search", summary="Full-text search of published events")
async def search_events(q: str = Query(..., max_length=100), limit: int = Query(20, ge=1, le=100)):
    return events.search_events(q, limit)


@router.get("/nearby", summary="Published events within a radius")
async def nearby_events(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius: float = Query(events.DEFAULT_RADIUS_KM, gt=0, le=500, description="Radius in km"),
):
    return events.nearby_events(lat, lon, radius)


@router.get("/featured")
async def featured_events(limit: int = Query(10, ge=1, le=50)):
    return events.featured_events(limit)


@router.get("/country/{country}")
async def events_by_country(country: str, page: int = Query(1, ge=1), limit: int = Query(20, ge=1, le=100)):
    return events.events_by_country(country, page, limit)


@router.get("/check-slug/{slug}")
async def check_slug(slug: str):
    return events.check_slug(slug)


@router.get("/slug/{slug}")
async def get_event_by_slug(slug: str, viewer: Optional[dict] = Depends(get_optional_user)):
    return events.get_event_by_slug(slug, viewer)


# ---------------------------------------------------------------------------
# Organizer / admin
# ---------------------------------------------------------------------------

@router.get("/my-events")
async def my_events(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    status: Optional[ContentStatus] = None,
    user: dict = Depends(organizer_or_admin),
):
    return events.my_events(user, page, limit, status)


@router.get("/stats")
async def user_event_stats(user: dict = Depends(organizer_or_admin)):
    return events.user_event_stats(user)


@router.get("/pending")
async def pending_events(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: dict = Depends(admin_only),
):
    return events.pending_events(page, limit)


@router.post("", status_code=201)
async def create_event(body: EventCreate, user: dict = Depends(organizer_or_admin)):
    return events.create_event(user, body.model_dump(mode="json", exclude_none=True))


@router.get("/{event_id}")
async def get_event(event_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return events.get_event(str(event_id), viewer)


@router.get("/{event_id}/stats")
async def event_stats(event_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return events.event_stats(str(event_id), viewer)


@router.put("/{event_id}")
@router.patch("/{event_id}")
async def update_event(event_id: UUID, body: EventUpdate, user: dict = Depends(organizer_or_admin)):
    return events.update_event(str(event_id), user,
                               update_fields(body, "name", "slug", "country", "city", "status", "featured"))


@router.patch("/{event_id}/status")
async def set_status(event_id: UUID, body: StatusUpdate, user: dict = Depends(organizer_or_admin)):
    return events.set_status(str(event_id), user, body.status)


@router.post("/{event_id}/approve")
async def approve_event(event_id: UUID, admin: dict = Depends(admin_only)):
    return events.approve_event(str(event_id), admin)


@router.post("/{event_id}/reject")
async def reject_event(event_id: UUID, body: Optional[RejectRequest] = None, admin: dict = Depends(admin_only)):
    return events.reject_event(str(event_id), admin, body.reason if body else "")


@router.patch("/{event_id}/featured")
async def toggle_featured(event_id: UUID, admin: dict = Depends(admin_only)):
    return events.toggle_featured(str(event_id))


@router.delete("/{event_id}")
async def delete_event(event_id: UUID, admin: dict = Depends(admin_only)):
    return events.delete_event(str(event_id), admin)
