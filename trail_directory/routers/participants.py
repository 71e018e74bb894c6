"""Participants API: edition registrations."""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, EmailStr, Field

from trail_directory.constants import ADMIN, ORGANIZER, ParticipantStatus
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_current_user, require_roles
from trail_directory.services import participants

router = APIRouter(prefix="/api/v2", tags=["Participants"])


class RegistrationRequest(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    last_name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    user_id: Optional[UUID] = None
    bib_number: Optional[str] = Field(None, max_length=20)


class ParticipantUpdate(BaseModel):
    bib_number: Optional[str] = Field(None, max_length=20)
    status: Optional[ParticipantStatus] = None


@router.get("/editions/{edition_id}/participants")
async def list_participants(
    edition_id: UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=200),
    status: Optional[ParticipantStatus] = None,
    search: Optional[str] = Query(None, max_length=100),
    user: dict = Depends(require_roles(ORGANIZER, ADMIN)),
):
    return participants.list_participants(str(edition_id), user, page, limit, status, search)


@router.post("/editions/{edition_id}/participants", status_code=201)
async def register(edition_id: UUID, body: Optional[RegistrationRequest] = None,
                   user: dict = Depends(get_current_user)):
    data = body.model_dump(mode="json", exclude_none=True) if body else {}
    return participants.register(str(edition_id), user, data)


@router.get("/participants/{participant_id}")
async def get_participant(participant_id: UUID, user: dict = Depends(get_current_user)):
    return participants.get_participant(str(participant_id), user)


@router.patch("/participants/{participant_id}")
async def update_participant(participant_id: UUID, body: ParticipantUpdate, user: dict = Depends(get_current_user)):
    return participants.update_participant(str(participant_id), user, update_fields(body, "status"))


@router.delete("/participants/{participant_id}")
async def remove_participant(participant_id: UUID, user: dict = Depends(get_current_user)):
    return participants.remove_participant(str(participant_id), user)
