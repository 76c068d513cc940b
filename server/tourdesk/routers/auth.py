"""Authentication router for registration, login and the caller's profile."""

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import AppSettings, CurrentUser, DatabaseSession
from ..core.responses import envelope
from ..schemas.auth import (
    AuthResult,
    ChangePasswordRequest,
    LoginRequest,
    RegisterRequest,
    UpdateProfileRequest,
)
from ..schemas.user import UserOut
from ..services.auth_service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post("/register", status_code=201, summary="Register")
async def register(request: RegisterRequest, db: DatabaseSession, settings: AppSettings) -> JSONResponse:
    """
    Create a client account.

    Returns the new user and a bearer token.
    """
    user, token = await AuthService(db, settings).register(request)
    result = AuthResult(user=UserOut.model_validate(user), token=token)
    return envelope(result, message="Registration successful", status_code=201)


@router.post("/login", summary="Login")
async def login(request: LoginRequest, db: DatabaseSession, settings: AppSettings) -> JSONResponse:
    user, token = await AuthService(db, settings).login(request)
    result = AuthResult(user=UserOut.model_validate(user), token=token)
    return envelope(result, message="Login successful")


@router.get("/me", summary="Current user")
async def me(user: CurrentUser) -> JSONResponse:
    return envelope({"user": UserOut.model_validate(user)})


@router.put("/password", summary="Change password")
async def change_password(
    request: ChangePasswordRequest,
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    await AuthService(db, settings).change_password(user, request)
    return envelope(message="Password changed successfully")


@router.put("/profile", summary="Update profile")
async def update_profile(
    request: UpdateProfileRequest,
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    updated = await AuthService(db, settings).update_profile(user, request)
    return envelope({"user": UserOut.model_validate(updated)}, message="Profile updated successfully")
