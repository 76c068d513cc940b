"""User-related Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from ..models.user import UserRole
from .common import StrongPassword


class UserOut(BaseModel):
    """User response schema; never carries the password hash."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    role: UserRole
    created_at: datetime


class UserDetail(UserOut):
    bookings_count: int = 0
    reviews_count: int = 0


class UserFilters(BaseModel):
    search: Optional[str] = Field(None, max_length=100, description="Substring of name or email")
    role: Optional[UserRole] = None


class CreateUserRequest(BaseModel):
    """Administrator-created account; may set the role."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: StrongPassword
    phone: Optional[str] = Field(None, max_length=20)
    role: UserRole = UserRole.CLIENT

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=20)
    role: Optional[UserRole] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v
