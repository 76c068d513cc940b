"""Booking price and date rules shared by booking creation and guest-count updates."""

from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..core.exceptions import ValidationError
from ..models.booking import BookingTier

CENTS = Decimal("0.01")


def resolve_price_per_person(
    tier: BookingTier | str,
    price_standard: Decimal,
    price_premium: Optional[Decimal],
) -> Decimal:
    """Premium price for premium bookings when the tour has one, else the standard price."""
    if tier == BookingTier.PREMIUM and price_premium is not None:
        return Decimal(price_premium)
    return Decimal(price_standard)


def compute_total_price(price_per_person: Decimal, guests: int) -> Decimal:
    return (Decimal(price_per_person) * guests).quantize(CENTS, rounding=ROUND_HALF_UP)


def compute_end_date(start_date: date, duration_days: int) -> date:
    return start_date + timedelta(days=duration_days)


def ensure_guest_limit(guests: int, max_guests: int) -> None:
    """
    Raises:
        ValidationError: If ``guests`` exceeds the tour's limit
    """
    if guests > max_guests:
        raise ValidationError(f"Maximum {max_guests} guests allowed for this tour")


def quote_total(tour, tier: BookingTier | str, guests: int) -> Decimal:
    """Check the guest limit and price ``guests`` people on ``tour`` at ``tier``."""
    ensure_guest_limit(guests, tour.max_guests)
    price = resolve_price_per_person(tier, tour.price_standard, tour.price_premium)
    return compute_total_price(price, guests)
