"""Favorites API: a user's saved competitions."""

from uuid import UUID

from fastapi import APIRouter, Depends

from trail_directory.security import get_current_user
from trail_directory.services import favorites

router = APIRouter(prefix="/api/v2/favorites", tags=["Favorites"])


@router.get("")
async def list_favorites(user: dict = Depends(get_current_user)):
    return favorites.list_favorites(user)


@router.get("/{competition_id}/check")
async def check_favorite(competition_id: UUID, user: dict = Depends(get_current_user)):
    return favorites.is_favorite(user, str(competition_id))


@router.post("/{competition_id}", status_code=201)
async def add_favorite(competition_id: UUID, user: dict = Depends(get_current_user)):
    return favorites.add(user, str(competition_id))


@router.delete("/{competition_id}")
async def remove_favorite(competition_id: UUID, user: dict = Depends(get_current_user)):
    return favorites.remove(user, str(competition_id))


@router.post("/{competition_id}/toggle")
async def toggle_favorite(competition_id: UUID, user: dict = Depends(get_current_user)):
    return favorites.toggle(user, str(competition_id))
