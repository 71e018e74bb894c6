"""Event managers API."""

from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from trail_directory.constants import ADMIN, ORGANIZER
from trail_directory.security import require_roles
from trail_directory.services import event_managers

router = APIRouter(prefix="/api/v2/events", tags=["Event managers"])

organizer_or_admin = require_roles(ORGANIZER, ADMIN)
admin_only = require_roles(ADMIN)


class ManagerAssign(BaseModel):
    user_id: UUID


@router.get("/managed")
async def managed_events(user: dict = Depends(organizer_or_admin)):
    return event_managers.managed_events(user)


@router.get("/{event_id}/managers")
async def list_managers(event_id: UUID, user: dict = Depends(organizer_or_admin)):
    return event_managers.list_managers(str(event_id), user)


@router.get("/{event_id}/managers/available")
async def available_organizers(event_id: UUID, admin: dict = Depends(admin_only)):
    return event_managers.available_organizers(str(event_id))


@router.post("/{event_id}/managers", status_code=201)
async def add_manager(event_id: UUID, body: ManagerAssign, admin: dict = Depends(admin_only)):
    return event_managers.add_manager(str(event_id), str(body.user_id), admin)


@router.delete("/{event_id}/managers/{user_id}")
async def remove_manager(event_id: UUID, user_id: UUID, admin: dict = Depends(admin_only)):
    return event_managers.remove_manager(str(event_id), str(user_id), admin)
