"""Edition podiums and chronicle API."""

from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from trail_directory.constants import ADMIN, ORGANIZER
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_optional_user, require_roles
from trail_directory.services import edition_podiums

router = APIRouter(prefix="/api/v2", tags=["Podiums"])

organizer_or_admin = require_roles(ORGANIZER, ADMIN)

PodiumType = Literal["GENERAL", "MALE", "FEMALE", "CATEGORY"]
# h:mm:ss up to 999 hours
RACE_TIME = r"^\d{1,3}:[0-5]\d:[0-5]\d$"


class PodiumFields(BaseModel):
    category_name: Optional[str] = Field(None, min_length=2, max_length=100)
    first_time: Optional[str] = Field(None, pattern=RACE_TIME)
    second_place: Optional[str] = Field(None, min_length=2, max_length=200)
    second_time: Optional[str] = Field(None, pattern=RACE_TIME)
    third_place: Optional[str] = Field(None, min_length=2, max_length=200)
    third_time: Optional[str] = Field(None, pattern=RACE_TIME)
    sort_order: Optional[int] = Field(None, ge=0)


class PodiumCreate(PodiumFields):
    type: PodiumType
    first_place: str = Field(..., min_length=2, max_length=200)


class PodiumUpdate(PodiumFields):
    type: Optional[PodiumType] = None
    first_place: Optional[str] = Field(None, min_length=2, max_length=200)


class ChronicleBody(BaseModel):
    chronicle: str = Field(..., min_length=10, max_length=50000)


@router.get("/editions/{edition_id}/podiums")
async def list_podiums(edition_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return edition_podiums.list_for_edition(str(edition_id), viewer)


@router.post("/editions/{edition_id}/podiums", status_code=201)
async def create_podium(edition_id: UUID, body: PodiumCreate, user: dict = Depends(organizer_or_admin)):
    return edition_podiums.create_podium(str(edition_id), user, body.model_dump(mode="json", exclude_none=True))


@router.get("/editions/{edition_id}/chronicle")
async def get_chronicle(edition_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return edition_podiums.get_chronicle(str(edition_id), viewer)


@router.put("/editions/{edition_id}/chronicle")
async def set_chronicle(edition_id: UUID, body: ChronicleBody, user: dict = Depends(organizer_or_admin)):
    return edition_podiums.set_chronicle(str(edition_id), user, body.chronicle)


@router.get("/podiums/{podium_id}")
async def get_podium(podium_id: UUID, viewer: Optional[dict] = Depends(get_optional_user)):
    return edition_podiums.get_podium(str(podium_id), viewer)


@router.put("/podiums/{podium_id}")
@router.patch("/podiums/{podium_id}")
async def update_podium(podium_id: UUID, body: PodiumUpdate, user: dict = Depends(organizer_or_admin)):
    data = update_fields(body, "type", "first_place", "sort_order")
    return edition_podiums.update_podium(str(podium_id), user, data)


@router.delete("/podiums/{podium_id}")
async def delete_podium(podium_id: UUID, user: dict = Depends(organizer_or_admin)):
    return edition_podiums.delete_podium(str(podium_id), user)
