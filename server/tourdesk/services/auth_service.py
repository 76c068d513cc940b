"""Authentication service: registration, login and self-service profile."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import Settings
from ..core.exceptions import AuthenticationError, ConflictError
from ..core.query import apply_patch
from ..core.security import create_access_token, hash_password_async, verify_password_async
from ..models.user import User, UserRole
from ..schemas.auth import ChangePasswordRequest, LoginRequest, RegisterRequest, UpdateProfileRequest

logger = logging.getLogger(__name__)


class AuthService:
    """Service for account authentication operations."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def get_user_by_email(self, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == email.lower())
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    def issue_token(self, user: User) -> str:
        return create_access_token(user.id, user.role, self.settings)

    async def register(self, request: RegisterRequest) -> tuple[User, str]:
        """
        Register a client account and issue its first token.

        Raises:
            ConflictError: If the email is already registered
        """
        if await self.get_user_by_email(request.email):
            logger.warning("Registration rejected - email taken", extra={"email": request.email})
            raise ConflictError("Email already registered")

        user = User(
            name=request.name,
            email=request.email,
            password_hash=await hash_password_async(request.password, self.settings.bcrypt_rounds),
            phone=request.phone,
            role=UserRole.CLIENT,
        )
        self.db.add(user)
        await self.db.commit()

        logger.info("User registered", extra={"user_id": user.id})
        return user, self.issue_token(user)

    async def login(self, request: LoginRequest) -> tuple[User, str]:
        """
        Raises:
            AuthenticationError: On unknown email or wrong password (same message)
        """
        user = await self.get_user_by_email(request.email)
        if user is None or not await verify_password_async(request.password, user.password_hash):
            logger.warning("Login failed", extra={"email": request.email})
            raise AuthenticationError("Invalid email or password")

        logger.info("User logged in", extra={"user_id": user.id})
        return user, self.issue_token(user)

    async def change_password(self, user: User, request: ChangePasswordRequest) -> None:
        if not await verify_password_async(request.current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        user.password_hash = await hash_password_async(request.new_password, self.settings.bcrypt_rounds)
        await self.db.commit()
        logger.info("Password changed", extra={"user_id": user.id})

    async def update_profile(self, user: User, request: UpdateProfileRequest) -> User:
        """
        Raises:
            ConflictError: If the new email belongs to another account
            ValidationError: If the body sets no fields
        """
        if request.email and request.email != user.email:
            existing = await self.get_user_by_email(request.email)
            if existing and existing.id != user.id:
                raise ConflictError("Email already in use")

        apply_patch(user, request)
        await self.db.commit()
        logger.info("Profile updated", extra={"user_id": user.id})
        return user
