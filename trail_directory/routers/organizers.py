"""Organizers API."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from trail_directory.constants import ADMIN, ORGANIZER, ContentStatus
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_optional_user, is_admin, require_roles
from trail_directory.services import organizers

router = APIRouter(prefix="/api/v2/organizers", tags=["Organizers"])

organizer_or_admin = require_roles(ORGANIZER, ADMIN)
admin_only = require_roles(ADMIN)


class OrganizerFields(BaseModel):
    description: Optional[str] = Field(None, max_length=5000)
    country: Optional[str] = Field(None, max_length=100)
    website: Optional[str] = Field(None, max_length=500)
    email: Optional[str] = Field(None, max_length=200)
    instagram_url: Optional[str] = Field(None, max_length=500)
    facebook_url: Optional[str] = Field(None, max_length=500)
    twitter_url: Optional[str] = Field(None, max_length=500)
    youtube_url: Optional[str] = Field(None, max_length=500)
    logo_url: Optional[str] = Field(None, max_length=500)
    slug: Optional[str] = Field(None, max_length=200)


class OrganizerCreate(OrganizerFields):
    name: str = Field(..., min_length=2, max_length=200)


class OrganizerUpdate(OrganizerFields):
    name: Optional[str] = Field(None, min_length=2, max_length=200)


class RejectRequest(BaseModel):
    reason: str = Field("", max_length=1000)


@router.get("")
async def list_organizers(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    country: Optional[str] = None,
    status: ContentStatus = "PUBLISHED",
    viewer: Optional[dict] = Depends(get_optional_user),
):
    if not is_admin(viewer):
        status = "PUBLISHED"
    return organizers.list_organizers(page, limit, search, country, status)


@router.get("/check-slug/{slug}")
async def check_slug(slug: str):
    return organizers.check_slug(slug)


@router.get("/slug/{slug}")
async def get_organizer_by_slug(slug: str):
    return organizers.get_organizer_by_slug(slug)


@router.post("", status_code=201)
async def create_organizer(body: OrganizerCreate, user: dict = Depends(organizer_or_admin)):
    return organizers.create_organizer(user, body.model_dump(exclude_none=True))


@router.get("/{organizer_id}")
async def get_organizer(organizer_id: UUID):
    return organizers.get_organizer(str(organizer_id))


@router.put("/{organizer_id}")
@router.patch("/{organizer_id}")
async def update_organizer(organizer_id: UUID, body: OrganizerUpdate, user: dict = Depends(organizer_or_admin)):
    return organizers.update_organizer(str(organizer_id), user, update_fields(body, "name", "slug"))


@router.post("/{organizer_id}/approve")
async def approve_organizer(organizer_id: UUID, admin: dict = Depends(admin_only)):
    return organizers.set_moderation(str(organizer_id), admin, approve=True)


@router.post("/{organizer_id}/reject")
async def reject_organizer(organizer_id: UUID, body: Optional[RejectRequest] = None, admin: dict = Depends(admin_only)):
    return organizers.set_moderation(str(organizer_id), admin, approve=False, reason=body.reason if body else "")


@router.delete("/{organizer_id}")
async def delete_organizer(organizer_id: UUID, admin: dict = Depends(admin_only)):
    return organizers.delete_organizer(str(organizer_id), admin)
