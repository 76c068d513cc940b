"""Authentication request and response schemas."""

from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from .common import StrongPassword
from .user import UserOut

_PHONE_PATTERN = r"^[+0-9][0-9 ()-]{5,19}$"


class RegisterRequest(BaseModel):
    """Self-service registration; role is always client."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: StrongPassword
    phone: Optional[str] = Field(None, pattern=_PHONE_PATTERN)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: StrongPassword


class UpdateProfileRequest(BaseModel):
    """Partial update of the caller's own profile."""

    name: Optional[str] = Field(None, min_length=2, max_length=100)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=_PHONE_PATTERN)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: Optional[str]) -> Optional[str]:
        return v.lower() if v else v


class AuthResult(BaseModel):
    """User plus freshly issued token."""

    user: UserOut
    token: str
