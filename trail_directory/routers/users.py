"""User administration and profile endpoints, plus admin dashboards."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from trail_directory import supabase_client as db
from trail_directory.constants import ADMIN, Language, Role
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_current_user, require_roles
from trail_directory.services import users

router = APIRouter(prefix="/api/v2", tags=["Users"])


class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_.-]+$")
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    bio: Optional[str] = Field(None, max_length=1000)
    avatar: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    country: Optional[str] = Field(None, max_length=100)
    city: Optional[str] = Field(None, max_length=100)
    language: Optional[Language] = None


class RoleUpdate(BaseModel):
    role: Role


class ActiveUpdate(BaseModel):
    is_active: bool


@router.get("/users")
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[Role] = None,
    admin: dict = Depends(require_roles(ADMIN)),
):
    return users.list_users(page, limit, search, role)


@router.get("/users/{user_id}")
async def get_user(user_id: UUID, viewer: dict = Depends(get_current_user)):
    return users.get_profile(str(user_id), viewer)


@router.patch("/users/{user_id}")
async def update_user(user_id: UUID, body: ProfileUpdate, viewer: dict = Depends(get_current_user)):
    return users.update_profile(str(user_id), viewer, update_fields(body, "username", "language"))


@router.patch("/users/{user_id}/role")
async def set_role(user_id: UUID, body: RoleUpdate, admin: dict = Depends(require_roles(ADMIN))):
    return users.set_role(str(user_id), body.role, admin)


@router.patch("/users/{user_id}/active")
async def set_active(user_id: UUID, body: ActiveUpdate, admin: dict = Depends(require_roles(ADMIN))):
    return users.set_active(str(user_id), body.is_active, admin)


@router.delete("/users/{user_id}")
async def delete_user(user_id: UUID, admin: dict = Depends(require_roles(ADMIN))):
    return users.delete_user(str(user_id), admin)


@router.get("/admin/stats", tags=["Admin"])
async def admin_stats(admin: dict = Depends(require_roles(ADMIN))):
    return users.admin_stats()


@router.get("/admin/audit-log", tags=["Admin"])
async def audit_log(limit: int = Query(50, ge=1, le=500), admin: dict = Depends(require_roles(ADMIN))):
    return db.get_audit_log(limit)
