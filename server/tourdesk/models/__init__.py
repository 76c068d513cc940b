"""Models module exporting all database models."""

from .booking import Booking, BookingStatus, BookingTier
from .category import Category
from .city import City
from .payment import Payment, PaymentMethod, PaymentStatus
from .review import Review
from .tour import Tour
from .user import User, UserRole

__all__ = [
    # Catalog entities
    "City",
    "Category",
    "Tour",

    # Accounts
    "User",
    "UserRole",

    # Booking entities
    "Booking",
    "BookingStatus",
    "BookingTier",
    "Payment",
    "PaymentMethod",
    "PaymentStatus",

    # Feedback
    "Review",
]
