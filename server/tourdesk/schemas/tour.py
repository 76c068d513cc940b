"""Tour-related Pydantic schemas."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .common import Money


class TourSort(str, Enum):
    """Sort keys accepted by the tour listing."""
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    DURATION_ASC = "duration_asc"
    DURATION_DESC = "duration_desc"
    RATING = "rating"
    POPULAR = "popular"
    NEWEST = "newest"


class TourFilters(BaseModel):
    """Optional filters for the public tour listing; absent ones are ignored."""

    city_id: Optional[int] = Field(None, ge=1)
    category_id: Optional[int] = Field(None, ge=1)
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    duration: Optional[int] = Field(None, ge=1, le=30)
    search: Optional[str] = Field(None, max_length=100)
    sort: TourSort = TourSort.NEWEST


class CreateTourRequest(BaseModel):
    """Request schema for creating a tour."""

    name: str = Field(..., min_length=3, max_length=255, description="Tour name")
    city_id: int = Field(..., ge=1)
    category_id: int = Field(..., ge=1)
    description: Optional[str] = Field(None, max_length=5000)
    duration_days: int = Field(..., ge=1, le=30)
    price_standard: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    price_premium: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    max_guests: int = Field(10, ge=1, le=50)
    is_active: bool = True
    images: List[str] = Field(default_factory=list)


class UpdateTourRequest(BaseModel):
    """Partial tour update; only fields present in the body are applied."""

    name: Optional[str] = Field(None, min_length=3, max_length=255)
    city_id: Optional[int] = Field(None, ge=1)
    category_id: Optional[int] = Field(None, ge=1)
    description: Optional[str] = Field(None, max_length=5000)
    duration_days: Optional[int] = Field(None, ge=1, le=30)
    price_standard: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    price_premium: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)
    max_guests: Optional[int] = Field(None, ge=1, le=50)
    is_active: Optional[bool] = None
    images: Optional[List[str]] = None

    @model_validator(mode="after")
    def reject_null_required(self) -> "UpdateTourRequest":
        # Only price_premium and description may be cleared
        for name in ("name", "city_id", "category_id", "duration_days", "price_standard",
                     "max_guests", "is_active", "images"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class TourOut(BaseModel):
    """Tour row as stored."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    city_id: int
    category_id: int
    description: Optional[str] = None
    duration_days: int
    price_standard: Money
    price_premium: Optional[Money] = None
    max_guests: int
    is_active: bool
    images: List[str] = []
    created_at: datetime
    updated_at: datetime


class TourSummary(TourOut):
    """Listing row with catalog names and aggregates."""

    city_name: Optional[str] = None
    category_name: Optional[str] = None
    category_icon: Optional[str] = None
    avg_rating: Optional[float] = None
    review_count: int = 0
    booking_count: int = 0


class TourReview(BaseModel):
    id: int
    rating: int
    comment: Optional[str] = None
    is_verified: bool
    user_name: str
    created_at: datetime


class TourDetail(TourSummary):
    city_description: Optional[str] = None
    recent_reviews: List[TourReview] = []
