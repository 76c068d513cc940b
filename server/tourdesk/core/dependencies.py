"""FastAPI dependencies for settings, authentication and authorization guards."""

from typing import Annotated, Any, Callable, Optional, Type

from fastapi import Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.user import User, UserRole
from ..schemas.common import PageParams
from .config import Settings
from .database import get_db
from .exceptions import AuthenticationError, AuthorizationError, NotFoundError
from .security import decode_access_token


def get_settings(request: Request) -> Settings:
    """Settings object the app was created with."""
    return request.app.state.settings


def _extract_bearer(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Invalid token.")
    return token.strip()


async def _load_user(token: str, db: AsyncSession, settings: Settings) -> User:
    payload = decode_access_token(token, settings)
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise AuthenticationError("Invalid token.") from e

    # Re-fetched on every request so role changes and deletions apply immediately
    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found. Token may be invalid.")
    return user


async def get_current_user(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """
    Authentication dependency that resolves the Bearer token to a user row.

    Raises:
        AuthenticationError: If the token is missing, invalid, expired or orphaned
    """
    token = _extract_bearer(authorization)
    if token is None:
        raise AuthenticationError("Access denied. No token provided.")
    return await _load_user(token, db, settings)


async def get_optional_user(
    authorization: Annotated[Optional[str], Header(alias="Authorization")] = None,
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> Optional[User]:
    """Like ``get_current_user`` but anonymous callers (and bad tokens) yield None."""
    try:
        token = _extract_bearer(authorization)
        if token is None:
            return None
        return await _load_user(token, db, settings)
    except AuthenticationError:
        return None


def require_roles(*roles: UserRole) -> Callable:
    """
    Build a guard that admits only users holding one of ``roles``.

    Returns:
        Dependency returning the current user
    """
    admin_only = roles == (UserRole.ADMIN,)

    async def guard(user: User = Depends(get_current_user)) -> User:
        if not any(user.role == role for role in roles):
            raise AuthorizationError("Admin access required." if admin_only else "Access denied")
        return user

    return guard


def owned_by_caller(
    model: Type[Any],
    resource_type: str,
    path_param: str = "id",
    owner_attr: str = "user_id",
) -> Callable:
    """
    Build a guard that loads ``model`` by the path parameter and admits its owner or an admin.

    Raises:
        NotFoundError: If no row has that id
        AuthorizationError: If the caller is neither owner nor admin
    """

    async def guard(
        request: Request,
        user: User = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> Any:
        raw_id = request.path_params.get(path_param)
        try:
            entity_id = int(raw_id)
        except (TypeError, ValueError) as e:
            raise NotFoundError(resource_type, raw_id) from e

        entity = await db.get(model, entity_id)
        if entity is None:
            raise NotFoundError(resource_type, entity_id)
        if not user.is_admin and getattr(entity, owner_attr) != user.id:
            raise AuthorizationError("Access denied")
        return entity

    return guard


def get_page_params(
    page: int = Query(1, ge=1, description="1-based page number"),
    limit: int = Query(10, ge=1, le=100, description="Page size"),
) -> PageParams:
    return PageParams(page=page, limit=limit)


CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_settings)]
PageQuery = Annotated[PageParams, Depends(get_page_params)]
