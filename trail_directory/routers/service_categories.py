"""Service categories API."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from trail_directory.constants import ADMIN
from trail_directory.routers.payloads import update_fields
from trail_directory.security import require_roles
from trail_directory.services import service_categories

router = APIRouter(prefix="/api/v2/service-categories", tags=["Services"])

admin_only = require_roles(ADMIN)


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)


@router.get("")
async def list_categories():
    return service_categories.list_categories()


@router.get("/with-count")
async def list_categories_with_count():
    return service_categories.list_with_counts()


@router.get("/slug/{slug}")
async def get_category_by_slug(slug: str):
    return service_categories.get_category_by_slug(slug)


@router.get("/{category_id}")
async def get_category(category_id: UUID):
    return service_categories.get_category_or_404(str(category_id))


@router.post("", status_code=201)
async def create_category(body: CategoryCreate, admin: dict = Depends(admin_only)):
    return service_categories.create_category(body.model_dump(exclude_none=True))


@router.put("/{category_id}")
async def update_category(category_id: UUID, body: CategoryUpdate, admin: dict = Depends(admin_only)):
    return service_categories.update_category(str(category_id), update_fields(body, "name", "slug"))


@router.delete("/{category_id}")
async def delete_category(category_id: UUID, admin: dict = Depends(admin_only)):
    return service_categories.delete_category(str(category_id))
