"""Booking-related Pydantic schemas."""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..models.booking import BookingStatus, BookingTier
from .common import Money
from .payment import PaymentOut


class CreateBookingRequest(BaseModel):
    """Request schema for creating a booking."""

    tour_id: int = Field(..., ge=1, description="Tour to book")
    start_date: date = Field(..., description="First day of the tour")
    guests: int = Field(..., ge=1, le=20, description="Number of guests")
    tier: BookingTier = Field(BookingTier.STANDARD, description="Pricing tier")
    special_requests: Optional[str] = Field(None, max_length=1000)


class UpdateBookingRequest(BaseModel):
    """Partial booking update; status changes are reserved to administrators."""

    status: Optional[BookingStatus] = None
    guests: Optional[int] = Field(None, ge=1, le=20)
    special_requests: Optional[str] = Field(None, max_length=1000)

    @model_validator(mode="after")
    def reject_null_required(self) -> "UpdateBookingRequest":
        for name in ("status", "guests"):
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{name} cannot be null")
        return self


class BookingFilters(BaseModel):
    """Listing filters; the date pair bounds the booking start date."""

    status: Optional[BookingStatus] = None
    tour_id: Optional[int] = Field(None, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class BookingOut(BaseModel):
    """Booking joined with the tour, city and customer it belongs to."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    tour_id: int
    start_date: date
    end_date: date
    guests: int
    tier: BookingTier
    total_price: Money
    status: BookingStatus
    payment_id: Optional[int] = None
    special_requests: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    tour_name: Optional[str] = None
    duration_days: Optional[int] = None
    city_name: Optional[str] = None
    user_name: Optional[str] = None
    user_email: Optional[str] = None
    payment: Optional[PaymentOut] = None


class BookingOverview(BaseModel):
    total_bookings: int = 0
    pending: int = 0
    confirmed: int = 0
    completed: int = 0
    cancelled: int = 0
    total_revenue: Money = 0
    confirmed_revenue: Money = 0
    average_guests: float = 0.0


class MonthlyRevenue(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    bookings: int
    revenue: Money


class TopTour(BaseModel):
    tour_id: int
    name: str
    bookings: int
    revenue: Money


class BookingStats(BaseModel):
    overview: BookingOverview
    monthly_revenue: List[MonthlyRevenue]
    top_tours: List[TopTour]


class ExportFilters(BaseModel):
    """Export filters; the date pair bounds the booking creation date."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[BookingStatus] = None
