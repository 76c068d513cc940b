"""Booking model definition."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ..core.database import Base
from ._mixins import TimestampMixin

if TYPE_CHECKING:
    from .payment import Payment
    from .tour import Tour
    from .user import User


class BookingTier(str, Enum):
    """Pricing tier selecting which tour price applies."""
    STANDARD = "standard"
    PREMIUM = "premium"


class BookingStatus(str, Enum):
    """Booking status enumeration."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


# Statuses a customer can no longer modify
CLOSED_STATUSES = (BookingStatus.COMPLETED, BookingStatus.CANCELLED)

# Statuses counted as revenue
REVENUE_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.COMPLETED)


class Booking(TimestampMixin, Base):
    """Reservation of a tour for a number of guests starting on a date."""

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    tour_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("tours.id", ondelete="RESTRICT"),
        nullable=False,
        index=True
    )
    # payments.booking_id points back here, so this side is added after both tables exist
    payment_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey(
            "payments.id",
            ondelete="SET NULL",
            use_alter=True,
            name="fk_bookings_payment_id"
        ),
        nullable=True,
        unique=True
    )

    # Booking details
    start_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    guests: Mapped[int] = mapped_column(Integer, nullable=False)
    tier: Mapped[BookingTier] = mapped_column(
        String(20),
        nullable=False,
        default=BookingTier.STANDARD
    )
    total_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        String(20),
        nullable=False,
        default=BookingStatus.PENDING,
        index=True
    )
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Cancellation details
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(String(255), nullable=True)

    __table_args__ = (
        CheckConstraint("guests > 0", name="ck_booking_guests_positive"),
        CheckConstraint("end_date >= start_date", name="ck_booking_dates_ordered"),
        CheckConstraint("total_price >= 0", name="ck_booking_total_price_non_negative"),
    )

    # Relationships
    user: Mapped["User"] = relationship("User")
    tour: Mapped["Tour"] = relationship("Tour")
    payment: Mapped["Payment | None"] = relationship("Payment", foreign_keys=[payment_id])

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, tour_id={self.tour_id}, guests={self.guests}, "
            f"tier={self.tier}, status={self.status})>"
        )
