"""City and category schemas."""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .common import Money


class CityOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: datetime


class CitySummary(CityOut):
    """City listing row with its active tour count and cheapest tour."""

    tour_count: int = 0
    min_price: Optional[Money] = None


class CreateCityRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[str] = Field(None, max_length=500)


class UpdateCityRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    image_url: Optional[str] = Field(None, max_length=500)


class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    icon: Optional[str] = None
    created_at: datetime


class CategorySummary(CategoryOut):
    tour_count: int = 0


class CreateCategoryRequest(BaseModel):
    name: str = Field(..., min_length=2, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)


class UpdateCategoryRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=2, max_length=100)
    icon: Optional[str] = Field(None, max_length=50)


class CatalogTour(BaseModel):
    """Compact tour row embedded in city and category detail."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    duration_days: int
    price_standard: Money
    price_premium: Optional[Money] = None
    images: List[str] = []


class CityDetail(CityOut):
    tours: List[CatalogTour] = []


class CategoryDetail(CategoryOut):
    tours: List[CatalogTour] = []
