"""Review-related Pydantic schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class CreateReviewRequest(BaseModel):
    tour_id: int = Field(..., ge=1)
    rating: int = Field(..., ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)


class UpdateReviewRequest(BaseModel):
    """Owners may change rating and comment; administrators may also publish."""

    rating: Optional[int] = Field(None, ge=1, le=5)
    comment: Optional[str] = Field(None, max_length=2000)
    is_published: Optional[bool] = None

    @model_validator(mode="after")
    def reject_null_required(self) -> "UpdateReviewRequest":
        for name in ("rating", "is_published"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class ReviewFilters(BaseModel):
    tour_id: Optional[int] = Field(None, ge=1)
    rating: Optional[int] = Field(None, ge=1, le=5)
    is_published: Optional[bool] = Field(None, description="Administrators only")


class ReviewOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    tour_id: int
    rating: int
    comment: Optional[str] = None
    is_verified: bool
    is_published: bool
    created_at: datetime
    updated_at: datetime

    user_name: Optional[str] = None
    tour_name: Optional[str] = None
