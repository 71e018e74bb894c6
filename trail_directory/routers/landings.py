"""Landing pages API."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from trail_directory.constants import ADMIN, Language
from trail_directory.routers.payloads import update_fields
from trail_directory.security import require_roles
from trail_directory.services import landings

router = APIRouter(prefix="/api/v2/landings", tags=["Landings"])

admin_only = require_roles(ADMIN)


class LandingFields(BaseModel):
    slug: Optional[str] = Field(None, max_length=200)
    language: Optional[Language] = None
    cover_image: Optional[str] = Field(None, max_length=500)
    gallery: Optional[list[str]] = None
    meta_title: Optional[str] = Field(None, max_length=200)
    meta_description: Optional[str] = Field(None, max_length=500)


class LandingCreate(LandingFields):
    title: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=1)


class LandingUpdate(LandingFields):
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    content: Optional[str] = Field(None, min_length=1)


class TranslationBody(BaseModel):
    title: str = Field(..., min_length=3, max_length=200)
    content: str = Field(..., min_length=1)
    meta_title: Optional[str] = Field(None, max_length=200)
    meta_description: Optional[str] = Field(None, max_length=500)


@router.get("")
async def list_landings(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    language: Optional[Language] = None,
    admin: dict = Depends(admin_only),
):
    return landings.list_landings(page, limit, search, language)


@router.get("/slug/{slug}")
async def get_landing_by_slug(slug: str, language: Optional[Language] = None):
    return landings.get_by_slug(slug, language)


@router.get("/{landing_id}")
async def get_landing(landing_id: UUID, admin: dict = Depends(admin_only)):
    return landings.get_landing(str(landing_id))


@router.post("", status_code=201)
async def create_landing(body: LandingCreate, admin: dict = Depends(admin_only)):
    return landings.create_landing(admin, body.model_dump(exclude_none=True))


@router.put("/{landing_id}")
async def update_landing(landing_id: UUID, body: LandingUpdate, admin: dict = Depends(admin_only)):
    data = update_fields(body, "title", "content", "slug", "language")
    return landings.update_landing(str(landing_id), data)


@router.put("/{landing_id}/translations/{language}")
async def upsert_translation(landing_id: UUID, language: Language, body: TranslationBody,
                             admin: dict = Depends(admin_only)):
    return landings.upsert_translation(str(landing_id), language, body.model_dump(exclude_none=True))


@router.delete("/{landing_id}")
async def delete_landing(landing_id: UUID, admin: dict = Depends(admin_only)):
    return landings.delete_landing(str(landing_id))
