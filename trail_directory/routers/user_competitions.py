"""Athlete tracking API: /user-competitions and the /me/competitions shortcuts.

Both routers are mounted under /api/v1 and /api/v2.
"""

from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from trail_directory.constants import ParticipationStatus
from trail_directory.routers.payloads import update_fields
from trail_directory.security import get_current_user
from trail_directory.services import user_competitions as tracking

router = APIRouter(prefix="/user-competitions", tags=["Athlete tracking"])
me_router = APIRouter(prefix="/me/competitions", tags=["Athlete tracking"])

FINISH_TIME_PATTERN = r"^\d{1,2}:[0-5]\d:[0-5]\d$"


class ResultFields(BaseModel):
    finish_time: Optional[str] = Field(None, pattern=FINISH_TIME_PATTERN, description="HH:MM:SS")
    position: Optional[int] = Field(None, gt=0)
    category_position: Optional[int] = Field(None, gt=0)
    notes: Optional[str] = Field(None, max_length=2000)
    personal_rating: Optional[int] = Field(None, ge=1, le=5)
    completed_at: Optional[datetime] = None


class MarkRequest(ResultFields):
    competition_id: UUID
    status: ParticipationStatus = "INTERESTED"


class MarkBody(ResultFields):
    status: ParticipationStatus = "INTERESTED"


class MarkUpdate(ResultFields):
    status: Optional[ParticipationStatus] = None


def _fields(body: BaseModel) -> dict:
    return body.model_dump(mode="json", exclude_none=True, exclude={"competition_id", "status"})


# ---------------------------------------------------------------------------
# /user-competitions
# ---------------------------------------------------------------------------

@router.post("", status_code=201)
async def mark_competition(body: MarkRequest, user: dict = Depends(get_current_user)):
    return tracking.mark(user, str(body.competition_id), body.status, **_fields(body))


@router.get("")
async def list_my_competitions(status: Optional[ParticipationStatus] = None,
                               user: dict = Depends(get_current_user)):
    return tracking.list_for_user(user["id"], status)


@router.get("/stats")
async def my_stats(user: dict = Depends(get_current_user)):
    return tracking.stats_for_user(user["id"])


@router.get("/competition/{competition_id}")
async def my_mark_for_competition(competition_id: UUID, user: dict = Depends(get_current_user)):
    return tracking.get_mark(user["id"], str(competition_id))


@router.get("/users/{user_id}")
async def user_competitions(user_id: UUID, status: Optional[ParticipationStatus] = None,
                            user: dict = Depends(get_current_user)):
    return tracking.list_for_user(str(user_id), status)


@router.get("/users/{user_id}/stats")
async def user_stats(user_id: UUID, user: dict = Depends(get_current_user)):
    return tracking.stats_for_user(str(user_id))


@router.get("/ranking/{kind}")
async def ranking(kind: Literal["competitions", "km", "elevation"], limit: int = Query(20, ge=1, le=100),
                  user: dict = Depends(get_current_user)):
    return tracking.ranking(kind, limit)


@router.put("/{mark_id}")
async def update_mark(mark_id: UUID, body: MarkUpdate, user: dict = Depends(get_current_user)):
    return tracking.update_mark(str(mark_id), user, update_fields(body, "status"))


@router.delete("/{mark_id}")
async def delete_mark(mark_id: UUID, user: dict = Depends(get_current_user)):
    return tracking.delete_mark(str(mark_id), user)


# ---------------------------------------------------------------------------
# /me/competitions
# ---------------------------------------------------------------------------

@me_router.get("/stats")
async def me_stats(user: dict = Depends(get_current_user)):
    return tracking.stats_for_user(user["id"])


@me_router.get("")
async def me_list(status: Optional[ParticipationStatus] = None, user: dict = Depends(get_current_user)):
    return tracking.list_for_user(user["id"], status)


@me_router.post("/{competition_id}/mark", status_code=201)
async def me_mark(competition_id: UUID, body: Optional[MarkBody] = None, user: dict = Depends(get_current_user)):
    body = body or MarkBody()
    return tracking.mark(user, str(competition_id), body.status, **_fields(body))


@me_router.delete("/{competition_id}/unmark")
async def me_unmark(competition_id: UUID, user: dict = Depends(get_current_user)):
    return tracking.unmark(user, str(competition_id))


@me_router.put("/{competition_id}/status")
async def me_update_status(competition_id: UUID, body: MarkUpdate, user: dict = Depends(get_current_user)):
    return tracking.update_for_competition(user, str(competition_id),
                                           update_fields(body, "status"))


@me_router.get("/{competition_id}/status")
async def me_status(competition_id: UUID, user: dict = Depends(get_current_user)):
    return tracking.status_for(user, str(competition_id))
