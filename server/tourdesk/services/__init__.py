"""Service layer package."""

from .auth_service import AuthService
from .booking_service import BookingService
from .category_service import CategoryService
from .city_service import CityService
from .export_service import ExportService
from .payment_service import PaymentService
from .review_service import ReviewService
from .tour_service import TourService
from .user_service import UserService

__all__ = [
    "AuthService",
    "BookingService",
    "CategoryService",
    "CityService",
    "ExportService",
    "PaymentService",
    "ReviewService",
    "TourService",
    "UserService",
]
