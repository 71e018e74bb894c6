"""Services directory API: lodging, shops and other runner services."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import AliasChoices, BaseModel, Field

from trail_directory.constants import ADMIN, ORGANIZER, ContentStatus
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_current_user, get_optional_user, is_admin, require_roles
from trail_directory.services import directory

router = APIRouter(prefix="/api/v2/services", tags=["Services"])

organizer_or_admin = require_roles(ORGANIZER, ADMIN)


class ServiceFields(BaseModel):
    description: Optional[str] = Field(None, max_length=10000)
    category_id: Optional[UUID] = None
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    website: Optional[str] = Field(None, max_length=500)
    email: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=50)
    logo_url: Optional[str] = Field(None, max_length=500)
    cover_image: Optional[str] = Field(None, max_length=500)
    gallery: Optional[list[str]] = Field(None, validation_alias=AliasChoices("gallery", "images"))
    slug: Optional[str] = Field(None, max_length=200)


class ServiceCreate(ServiceFields):
    name: str = Field(..., min_length=2, max_length=200)
    category_id: UUID


class ServiceUpdate(ServiceFields):
    name: Optional[str] = Field(None, min_length=2, max_length=200)
    status: Optional[ContentStatus] = None


@router.get("")
async def list_services(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    country: Optional[str] = None,
    city: Optional[str] = None,
    category_id: Optional[UUID] = None,
    featured: Optional[bool] = None,
    status: ContentStatus = "PUBLISHED",
    viewer: Optional[dict] = Depends(get_optional_user),
):
    if not is_admin(viewer):
        status = "PUBLISHED"
    return directory.list_services(page, limit, search, country, city,
                                   str(category_id) if category_id else None, featured, status)


@router.get("/nearby")
async def nearby_services(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    radius: float = Query(50, gt=0, le=500, description="Radius in km"),
):
    return directory.nearby_services(lat, lon, radius)


@router.get("/my-services")
async def my_services(user: dict = Depends(get_current_user)):
    return directory.my_services(user)


@router.get("/slug/{slug}")
async def get_service_by_slug(slug: str, viewer: Optional[dict] = Depends(get_optional_user)):
    return directory.get_service_by_slug(slug, viewer)


@router.post("", status_code=201)
async def create_service(body: ServiceCreate, user: dict = Depends(organizer_or_admin)):
    return directory.create_service(user, body.model_dump(mode="json", exclude_none=True))


@router.get("/{service_id}")
async def get_service(service_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return directory.get_service(str(service_id), viewer)


@router.put("/{service_id}")
@router.patch("/{service_id}")
async def update_service(service_id: UUID, body: ServiceUpdate, user: dict = Depends(get_current_user)):
    return directory.update_service(str(service_id), user, update_fields(body, "name", "slug", "status"))


@router.patch("/{service_id}/featured")
async def toggle_featured(service_id: UUID, admin: dict = Depends(require_roles(ADMIN))):
    return directory.toggle_featured(str(service_id))


@router.delete("/{service_id}")
async def delete_service(service_id: UUID, user: dict = Depends(get_current_user)):
    return directory.delete_service(str(service_id), user)
