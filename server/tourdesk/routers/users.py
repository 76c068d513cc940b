"""User administration router."""

from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminUser, AppSettings, DatabaseSession, PageQuery
from ..core.responses import envelope, page_envelope
from ..schemas.booking import BookingFilters
from ..schemas.user import CreateUserRequest, UpdateUserRequest, UserDetail, UserFilters, UserOut
from ..services.booking_service import BookingService
from ..services.user_service import UserService
from .bookings import _convert_booking_to_schema

router = APIRouter(prefix="/api/v1/users", tags=["users"])


@router.get("", summary="List users")
async def list_users(
    filters: Annotated[UserFilters, Query()],
    page: PageQuery,
    admin: AdminUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    result = await UserService(db, settings).list_users(filters, page)
    return page_envelope(result, [UserOut.model_validate(user) for user in result.items])


@router.get("/{user_id}", summary="Get user")
async def get_user(user_id: int, admin: AdminUser, db: DatabaseSession, settings: AppSettings) -> JSONResponse:
    """User profile with the number of bookings and reviews they own."""
    service = UserService(db, settings)
    user = await service.get_user_or_raise(user_id)
    counts = await service.get_user_counts(user_id)
    detail = UserDetail(**UserOut.model_validate(user).model_dump(), **counts)
    return envelope({"user": detail})


@router.get("/{user_id}/bookings", summary="List a user's bookings")
async def list_user_bookings(
    user_id: int,
    page: PageQuery,
    admin: AdminUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    await UserService(db, settings).get_user_or_raise(user_id)
    result = await BookingService(db, settings).list_bookings(admin, BookingFilters(), page, owner_id=user_id)
    return page_envelope(result, [_convert_booking_to_schema(b) for b in result.items])


@router.post("", status_code=201, summary="Create user")
async def create_user(
    request: CreateUserRequest,
    admin: AdminUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    user = await UserService(db, settings).create_user(request)
    return envelope({"user": UserOut.model_validate(user)}, message="User created successfully", status_code=201)


@router.put("/{user_id}", summary="Update user")
async def update_user(
    user_id: int,
    request: UpdateUserRequest,
    admin: AdminUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    user = await UserService(db, settings).update_user(user_id, request)
    return envelope({"user": UserOut.model_validate(user)}, message="User updated successfully")


@router.delete("/{user_id}", summary="Delete user")
async def delete_user(user_id: int, admin: AdminUser, db: DatabaseSession, settings: AppSettings) -> JSONResponse:
    await UserService(db, settings).delete_user(user_id, admin)
    return envelope(message="User deleted successfully")
