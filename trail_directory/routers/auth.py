"""Auth endpoints: register, login, token refresh and revocation."""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, EmailStr, Field

from trail_directory.constants import Language
from trail_directory.rate_limit import auth_rate_limit
from trail_directory.security import get_current_user
from trail_directory.services import auth

router = APIRouter(prefix="/api/v2/auth", tags=["Auth"])


class RegisterRequest(BaseModel):
    email: EmailStr
    username: str = Field(..., min_length=3, max_length=30, pattern=r"^[A-Za-z0-9_.-]+$")
    password: str = Field(..., min_length=8, max_length=72)
    first_name: str = Field("", max_length=100)
    last_name: str = Field("", max_length=100)
    language: Optional[Language] = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshRequest(BaseModel):
    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=72)


@router.post("/register", status_code=201, dependencies=[Depends(auth_rate_limit)])
async def register(body: RegisterRequest):
    return auth.register(body.email, body.username, body.password,
                         body.first_name, body.last_name, body.language)


@router.post("/login", dependencies=[Depends(auth_rate_limit)])
async def login(body: LoginRequest):
    return auth.login(body.email, body.password)


@router.post("/refresh")
async def refresh(body: RefreshRequest):
    return auth.refresh(body.refresh_token)


@router.post("/logout")
async def logout(body: RefreshRequest):
    auth.logout(body.refresh_token)
    return {"message": "Logged out"}


@router.post("/logout-all")
async def logout_all(user: dict = Depends(get_current_user)):
    return {"message": "Logged out from all devices", "tokens_deleted": auth.logout_all(user["id"])}


@router.get("/me")
async def me(user: dict = Depends(get_current_user)):
    return auth.get_profile(user["id"])


@router.get("/profile")
async def profile(user: dict = Depends(get_current_user)):
    return auth.get_profile(user["id"])


@router.post("/change-password")
async def change_password(body: ChangePasswordRequest, user: dict = Depends(get_current_user)):
    auth.change_password(user, body.current_password, body.new_password)
    return {"message": "Password updated"}
