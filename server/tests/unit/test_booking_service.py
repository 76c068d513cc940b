"""Unit tests for booking service."""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from tourdesk.core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from tourdesk.models import Booking, BookingStatus, BookingTier, Payment, PaymentMethod, PaymentStatus
from tourdesk.schemas.booking import BookingFilters, CreateBookingRequest, UpdateBookingRequest
from tourdesk.schemas.common import PageParams
from tourdesk.services.booking_service import ADMIN_CANCELLATION, CUSTOMER_CANCELLATION, BookingService


@pytest.mark.asyncio
async def test_create_booking_prices_and_dates(test_session, test_settings, client_user, tour):
    """The worked example: 2 guests at 1000 standard for 3 days."""
    service = BookingService(test_session, test_settings)

    booking = await service.create_booking(
        client_user,
        CreateBookingRequest(tour_id=tour.id, start_date=date(2025, 6, 1), guests=2),
    )

    assert booking.status == BookingStatus.PENDING
    assert booking.total_price == Decimal("2000.00")
    assert booking.end_date == date(2025, 6, 4)
    assert booking.tour.name == tour.name
    assert booking.tour.city.name == "Merzouga"
    assert booking.payment_id is None


@pytest.mark.asyncio
async def test_create_booking_premium_tier(test_session, test_settings, client_user, tour):
    service = BookingService(test_session, test_settings)

    booking = await service.create_booking(
        client_user,
        CreateBookingRequest(tour_id=tour.id, start_date=date(2025, 6, 1), guests=3, tier=BookingTier.PREMIUM),
    )

    assert booking.total_price == Decimal("4500.00")


@pytest.mark.asyncio
async def test_create_booking_premium_without_premium_price(test_session, test_settings, client_user, make_tour):
    tour = await make_tour(price_premium=None)
    service = BookingService(test_session, test_settings)

    booking = await service.create_booking(
        client_user,
        CreateBookingRequest(tour_id=tour.id, start_date=date(2025, 6, 1), guests=2, tier=BookingTier.PREMIUM),
    )

    assert booking.total_price == Decimal("2000.00")


@pytest.mark.asyncio
async def test_create_booking_rejects_inactive_tour(test_session, test_settings, client_user, make_tour):
    tour = await make_tour(is_active=False)
    service = BookingService(test_session, test_settings)

    with pytest.raises(ValidationError) as exc_info:
        await service.create_booking(
            client_user,
            CreateBookingRequest(tour_id=tour.id, start_date=date(2025, 6, 1), guests=2),
        )

    assert exc_info.value.message == "Tour not found or not available"


@pytest.mark.asyncio
async def test_create_booking_rejects_missing_tour(test_session, test_settings, client_user):
    service = BookingService(test_session, test_settings)

    with pytest.raises(ValidationError):
        await service.create_booking(
            client_user,
            CreateBookingRequest(tour_id=999, start_date=date(2025, 6, 1), guests=2),
        )


@pytest.mark.asyncio
async def test_create_booking_rejects_too_many_guests(test_session, test_settings, client_user, make_tour):
    tour = await make_tour(max_guests=4)
    service = BookingService(test_session, test_settings)

    with pytest.raises(ValidationError) as exc_info:
        await service.create_booking(
            client_user,
            CreateBookingRequest(tour_id=tour.id, start_date=date(2025, 6, 1), guests=5),
        )

    assert "Maximum 4 guests" in exc_info.value.message


@pytest.mark.asyncio
async def test_past_start_date_rejected_when_enabled(test_session, test_settings, client_user, tour):
    settings = test_settings.model_copy(update={"booking_reject_past_dates": True})
    service = BookingService(test_session, settings)

    with pytest.raises(ValidationError):
        await service.create_booking(
            client_user,
            CreateBookingRequest(tour_id=tour.id, start_date=date.today() - timedelta(days=1), guests=1),
        )


@pytest.mark.asyncio
async def test_update_guests_recomputes_total(test_session, test_settings, client_user, tour, make_booking):
    booking = await make_booking(client_user, tour)
    service = BookingService(test_session, test_settings)

    updated = await service.update_booking(booking, client_user, UpdateBookingRequest(guests=4))

    assert updated.guests == 4
    assert updated.total_price == Decimal("4000.00")


@pytest.mark.asyncio
async def test_update_guests_rechecks_tour_limit(test_session, test_settings, client_user, make_tour, make_booking):
    tour = await make_tour(max_guests=3)
    booking = await make_booking(client_user, tour)
    service = BookingService(test_session, test_settings)

    with pytest.raises(ValidationError):
        await service.update_booking(booking, client_user, UpdateBookingRequest(guests=5))


@pytest.mark.asyncio
async def test_client_cannot_change_status(test_session, test_settings, client_user, tour, make_booking):
    booking = await make_booking(client_user, tour)
    service = BookingService(test_session, test_settings)

    with pytest.raises(AuthorizationError):
        await service.update_booking(
            booking, client_user, UpdateBookingRequest(status=BookingStatus.CONFIRMED)
        )


@pytest.mark.asyncio
async def test_client_cannot_modify_closed_booking(test_session, test_settings, client_user, tour, make_booking):
    booking = await make_booking(client_user, tour, status=BookingStatus.COMPLETED)
    service = BookingService(test_session, test_settings)

    with pytest.raises(InvalidStateError):
        await service.update_booking(booking, client_user, UpdateBookingRequest(special_requests="Late check-in"))


@pytest.mark.asyncio
async def test_empty_update_rejected(test_session, test_settings, client_user, tour, make_booking):
    booking = await make_booking(client_user, tour)
    service = BookingService(test_session, test_settings)

    with pytest.raises(ValidationError) as exc_info:
        await service.update_booking(booking, client_user, UpdateBookingRequest())

    assert exc_info.value.message == "No fields to update"


@pytest.mark.asyncio
async def test_admin_cancel_records_reason(test_session, test_settings, admin_user, client_user, tour, make_booking):
    booking = await make_booking(client_user, tour, status=BookingStatus.CONFIRMED)
    service = BookingService(test_session, test_settings)

    updated = await service.update_booking(
        booking, admin_user, UpdateBookingRequest(status=BookingStatus.CANCELLED)
    )

    assert updated.status == BookingStatus.CANCELLED
    assert updated.cancelled_at is not None
    assert updated.cancellation_reason == ADMIN_CANCELLATION


@pytest.mark.asyncio
async def test_owner_cancels_pending_booking(test_session, test_settings, client_user, tour, make_booking):
    booking = await make_booking(client_user, tour)
    service = BookingService(test_session, test_settings)

    outcome = await service.cancel_or_delete(booking, client_user)

    assert outcome == "cancelled"
    await test_session.refresh(booking)
    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancellation_reason == CUSTOMER_CANCELLATION


@pytest.mark.asyncio
async def test_owner_cannot_cancel_confirmed_booking(test_session, test_settings, client_user, tour, make_booking):
    booking = await make_booking(client_user, tour, status=BookingStatus.CONFIRMED)
    service = BookingService(test_session, test_settings)

    with pytest.raises(InvalidStateError):
        await service.cancel_or_delete(booking, client_user)


@pytest.mark.asyncio
async def test_admin_deletes_booking_and_payment(
    test_session, test_settings, admin_user, client_user, tour, make_booking
):
    booking = await make_booking(client_user, tour, status=BookingStatus.CONFIRMED)
    payment = Payment(
        booking_id=booking.id,
        amount=booking.total_price,
        currency="MAD",
        method=PaymentMethod.CASH,
        status=PaymentStatus.COMPLETED,
    )
    test_session.add(payment)
    await test_session.commit()
    booking_id, payment_id = booking.id, payment.id
    service = BookingService(test_session, test_settings)

    outcome = await service.cancel_or_delete(booking, admin_user)

    assert outcome == "deleted"
    test_session.expunge_all()
    assert await test_session.get(Booking, booking_id) is None
    assert await test_session.get(Payment, payment_id) is None


@pytest.mark.asyncio
async def test_get_booking_detail_not_found(test_session, test_settings):
    service = BookingService(test_session, test_settings)

    with pytest.raises(NotFoundError):
        await service.get_booking_detail(12345)


@pytest.mark.asyncio
async def test_list_bookings_scoped_to_client(
    test_session, test_settings, client_user, other_user, admin_user, tour, make_booking
):
    await make_booking(client_user, tour)
    await make_booking(client_user, tour, status=BookingStatus.CONFIRMED)
    await make_booking(other_user, tour)
    service = BookingService(test_session, test_settings)

    own = await service.list_bookings(client_user, BookingFilters(), PageParams())
    everyone = await service.list_bookings(admin_user, BookingFilters(), PageParams())
    confirmed = await service.list_bookings(
        admin_user, BookingFilters(status=BookingStatus.CONFIRMED), PageParams()
    )

    assert own.total == 2
    assert {b.user_id for b in own.items} == {client_user.id}
    assert everyone.total == 3
    assert confirmed.total == 1


@pytest.mark.asyncio
async def test_list_bookings_filters_start_date_range(
    test_session, test_settings, admin_user, client_user, tour, make_booking
):
    await make_booking(client_user, tour, start_date=date(2025, 5, 1), end_date=date(2025, 5, 4))
    await make_booking(client_user, tour, start_date=date(2025, 6, 1), end_date=date(2025, 6, 4))
    await make_booking(client_user, tour, start_date=date(2025, 7, 1), end_date=date(2025, 7, 4))
    service = BookingService(test_session, test_settings)

    result = await service.list_bookings(
        admin_user,
        BookingFilters(start_date=date(2025, 5, 15), end_date=date(2025, 6, 30)),
        PageParams(),
    )

    assert [b.start_date for b in result.items] == [date(2025, 6, 1)]


@pytest.mark.asyncio
async def test_stats_overview_and_top_tours(
    test_session, test_settings, client_user, tour, make_tour, make_booking
):
    other_tour = await make_tour(name="Atlas Mountains Trek")
    await make_booking(client_user, tour, status=BookingStatus.CONFIRMED, total_price=Decimal("2000.00"))
    await make_booking(client_user, tour, status=BookingStatus.COMPLETED, total_price=Decimal("1000.00"))
    await make_booking(client_user, other_tour, status=BookingStatus.CONFIRMED, total_price=Decimal("500.00"))
    await make_booking(client_user, tour, status=BookingStatus.PENDING, total_price=Decimal("300.00"))
    await make_booking(client_user, tour, status=BookingStatus.CANCELLED, total_price=Decimal("700.00"))
    service = BookingService(test_session, test_settings)

    stats = await service.get_stats()

    overview = stats["overview"]
    assert overview["total_bookings"] == 5
    assert overview["confirmed"] == 2
    assert overview["completed"] == 1
    assert overview["pending"] == 1
    assert overview["cancelled"] == 1
    assert overview["confirmed_revenue"] == Decimal("3500.00")
    assert overview["total_revenue"] == Decimal("4500.00")

    assert stats["top_tours"][0]["tour_id"] == tour.id
    assert stats["top_tours"][0]["bookings"] == 2
    assert stats["top_tours"][0]["revenue"] == Decimal("3000.00")

    months = stats["monthly_revenue"]
    assert len(months) == 6
    assert months[0]["month"] == date.today().strftime("%Y-%m")
    assert months[0]["bookings"] == 3
    assert months[0]["revenue"] == Decimal("3500.00")


@pytest.mark.asyncio
async def test_expire_pending_cancels_only_stale_unpaid(
    test_session, test_settings, client_user, tour, make_booking
):
    now = datetime(2025, 6, 2, 12, 0, 0)
    stale = await make_booking(client_user, tour, created_at=now - timedelta(hours=30))
    fresh = await make_booking(client_user, tour, created_at=now - timedelta(hours=2))
    confirmed = await make_booking(
        client_user, tour, status=BookingStatus.CONFIRMED, created_at=now - timedelta(hours=30)
    )
    service = BookingService(test_session, test_settings)

    expired = await service.expire_pending(now=now)

    assert expired == 1
    for booking in (stale, fresh, confirmed):
        await test_session.refresh(booking)
    assert stale.status == BookingStatus.CANCELLED
    assert "24 hours" in stale.cancellation_reason
    assert fresh.status == BookingStatus.PENDING
    assert confirmed.status == BookingStatus.CONFIRMED
