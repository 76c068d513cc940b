"""User administration service."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.exceptions import ConflictError, NotFoundError, ValidationError
from ..core.query import FilterRule, PageResult, apply_patch, build_conditions, paginate
from ..core.security import hash_password_async
from ..models.booking import Booking
from ..models.review import Review
from ..models.user import User
from ..schemas.common import PageParams
from ..schemas.user import CreateUserRequest, UpdateUserRequest, UserFilters

logger = logging.getLogger(__name__)

USER_FILTERS = {
    "search": FilterRule.search(User.name, User.email),
    "role": FilterRule.eq(User.role),
}


class UserService:
    """Service for administrator user management."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def list_users(self, filters: UserFilters, page: PageParams) -> PageResult:
        stmt = (
            select(User)
            .where(*build_conditions(filters, USER_FILTERS))
            .order_by(User.created_at.desc(), User.id.desc())
        )
        return await paginate(self.db, stmt, page.page, page.limit)

    async def get_user_or_raise(self, user_id: int) -> User:
        user = await self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("user", user_id)
        return user

    async def get_user_counts(self, user_id: int) -> dict[str, int]:
        """Number of bookings and reviews owned by the user."""
        bookings = await self.db.scalar(
            select(func.count(Booking.id)).where(Booking.user_id == user_id)
        )
        reviews = await self.db.scalar(
            select(func.count(Review.id)).where(Review.user_id == user_id)
        )
        return {"bookings_count": bookings or 0, "reviews_count": reviews or 0}

    async def _ensure_email_free(self, email: str, message: str, exclude_id: int | None = None) -> None:
        stmt = select(User.id).where(func.lower(User.email) == email.lower())
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        if await self.db.scalar(stmt):
            raise ConflictError(message)

    async def create_user(self, request: CreateUserRequest) -> User:
        await self._ensure_email_free(request.email, "Email already registered")

        user = User(
            name=request.name,
            email=request.email,
            password_hash=await hash_password_async(request.password, self.settings.bcrypt_rounds),
            phone=request.phone,
            role=request.role,
        )
        self.db.add(user)
        await self.db.commit()

        logger.info("User created by admin", extra={"user_id": user.id, "role": user.role})
        return user

    async def update_user(self, user_id: int, request: UpdateUserRequest) -> User:
        user = await self.get_user_or_raise(user_id)
        if request.email:
            await self._ensure_email_free(request.email, "Email already in use", exclude_id=user.id)

        changes = apply_patch(user, request)
        await self.db.commit()

        logger.info("User updated by admin", extra={"user_id": user.id, "fields": sorted(changes)})
        return user

    async def delete_user(self, user_id: int, acting_user: User) -> None:
        """
        Raises:
            ValidationError: When an administrator tries to delete their own account
        """
        if user_id == acting_user.id:
            raise ValidationError("Cannot delete your own account")

        user = await self.get_user_or_raise(user_id)
        await self.db.delete(user)
        await self.db.commit()

        logger.info("User deleted", extra={"user_id": user_id, "deleted_by": acting_user.id})
