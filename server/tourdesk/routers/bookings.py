"""Booking router for the booking lifecycle, payments and statistics."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminUser, AppSettings, CurrentUser, DatabaseSession, PageQuery, owned_by_caller
from ..core.exceptions import ApiError, InternalServerError
from ..core.responses import envelope, page_envelope
from ..models.booking import Booking
from ..schemas.booking import (
    BookingFilters,
    BookingOut,
    BookingStats,
    CreateBookingRequest,
    UpdateBookingRequest,
)
from ..schemas.payment import PaymentOut, PaymentRequest
from ..services.booking_service import BookingService
from ..services.payment_service import PaymentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/bookings", tags=["bookings"])

OWNED_BOOKING = Depends(owned_by_caller(Booking, "booking"))


def _convert_booking_to_schema(booking: Booking) -> BookingOut:
    """Convert a booking with loaded relations to its schema."""
    tour = booking.tour
    return BookingOut(
        id=booking.id,
        user_id=booking.user_id,
        tour_id=booking.tour_id,
        start_date=booking.start_date,
        end_date=booking.end_date,
        guests=booking.guests,
        tier=booking.tier,
        total_price=booking.total_price,
        status=booking.status,
        payment_id=booking.payment_id,
        special_requests=booking.special_requests,
        cancelled_at=booking.cancelled_at,
        cancellation_reason=booking.cancellation_reason,
        created_at=booking.created_at,
        updated_at=booking.updated_at,
        tour_name=tour.name if tour else None,
        duration_days=tour.duration_days if tour else None,
        city_name=tour.city.name if tour and tour.city else None,
        user_name=booking.user.name if booking.user else None,
        user_email=booking.user.email if booking.user else None,
        payment=PaymentOut.model_validate(booking.payment) if booking.payment else None,
    )


@router.get("", summary="List bookings")
async def list_bookings(
    filters: Annotated[BookingFilters, Query()],
    page: PageQuery,
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    """
    Paginated bookings, newest first.

    Clients only see their own bookings; administrators see all of them.
    """
    result = await BookingService(db, settings).list_bookings(user, filters, page)
    return page_envelope(result, [_convert_booking_to_schema(b) for b in result.items])


@router.get("/stats", summary="Booking statistics")
async def booking_stats(admin: AdminUser, db: DatabaseSession, settings: AppSettings) -> JSONResponse:
    stats = await BookingService(db, settings).get_stats()
    return envelope(BookingStats.model_validate(stats))


@router.get("/{id}", summary="Get booking")
async def get_booking(
    db: DatabaseSession,
    settings: AppSettings,
    booking: Booking = OWNED_BOOKING,
) -> JSONResponse:
    detail = await BookingService(db, settings).get_booking_detail(booking.id)
    return envelope({"booking": _convert_booking_to_schema(detail)})


@router.post("", status_code=201, summary="Create booking")
async def create_booking(
    request: CreateBookingRequest,
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    """
    Create a pending booking for the caller.

    The end date and total price are derived from the tour.
    """
    try:
        booking = await BookingService(db, settings).create_booking(user, request)
        return envelope(
            {"booking": _convert_booking_to_schema(booking)},
            message="Booking created successfully",
            status_code=201,
        )

    except ApiError:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking creation",
            extra={"tour_id": request.tour_id, "user_id": user.id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.put("/{id}", summary="Update booking")
async def update_booking(
    request: UpdateBookingRequest,
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
    booking: Booking = OWNED_BOOKING,
) -> JSONResponse:
    try:
        updated = await BookingService(db, settings).update_booking(booking, user, request)
        return envelope(
            {"booking": _convert_booking_to_schema(updated)},
            message="Booking updated successfully",
        )

    except ApiError:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in booking update",
            extra={"booking_id": booking.id, "user_id": user.id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e


@router.delete("/{id}", summary="Cancel or delete booking")
async def cancel_booking(
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
    booking: Booking = OWNED_BOOKING,
) -> JSONResponse:
    """
    Cancel a pending booking (owner) or delete any booking (administrator).
    """
    outcome = await BookingService(db, settings).cancel_or_delete(booking, user)
    message = "Booking deleted successfully" if outcome == "deleted" else "Booking cancelled successfully"
    return envelope(message=message)


@router.post("/{id}/payment", status_code=201, summary="Record payment")
async def record_payment(
    request: PaymentRequest,
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
    booking: Booking = OWNED_BOOKING,
) -> JSONResponse:
    """
    Attach a completed payment to the booking and confirm it.

    A booking accepts exactly one payment.
    """
    booking_id, user_id = booking.id, user.id

    try:
        payment = await PaymentService(db, settings).record_payment(booking, request)
        detail = await BookingService(db, settings).get_booking_detail(payment.booking_id)

        return envelope(
            {
                "payment": PaymentOut.model_validate(payment),
                "booking": _convert_booking_to_schema(detail),
            },
            message="Payment processed successfully",
            status_code=201,
        )

    except ApiError:
        raise

    except Exception as e:
        logger.error(
            "Unexpected error in payment recording",
            extra={"booking_id": booking_id, "user_id": user_id, "error": str(e)},
            exc_info=True
        )
        raise InternalServerError() from e
