"""Booking service for the booking lifecycle and statistics."""

import logging
from collections import OrderedDict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional

from sqlalchemy import Select, case, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import Settings
from ..core.exceptions import AuthorizationError, InvalidStateError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..core.query import FilterRule, PageResult, apply_patch, build_conditions, paginate
from ..models._mixins import utcnow
from ..models.booking import CLOSED_STATUSES, REVENUE_STATUSES, Booking, BookingStatus
from ..models.payment import Payment
from ..models.tour import Tour
from ..models.user import User
from ..schemas.booking import BookingFilters, CreateBookingRequest, UpdateBookingRequest
from ..schemas.common import PageParams
from .pricing import compute_end_date, quote_total

logger = logging.getLogger(__name__)

BOOKING_FILTERS = {
    "status": FilterRule.eq(Booking.status),
    "tour_id": FilterRule.eq(Booking.tour_id),
    "start_date": FilterRule.gte(Booking.start_date),
    "end_date": FilterRule.lte(Booking.start_date),
}

CUSTOMER_CANCELLATION = "Cancelled by customer"
ADMIN_CANCELLATION = "Cancelled by administrator"
EXPIRY_CANCELLATION = "Automatically cancelled - payment not received within {hours} hours"


def booking_detail_select() -> Select:
    """Bookings with tour, city, category, customer and payment eagerly loaded."""
    return select(Booking).options(
        selectinload(Booking.tour).selectinload(Tour.city),
        selectinload(Booking.tour).selectinload(Tour.category),
        selectinload(Booking.user),
        selectinload(Booking.payment),
    )


def _to_decimal(value) -> Decimal:
    return Decimal(str(value)) if value is not None else Decimal("0")


def _month_key(value: datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def _months_back(today: date, count: int) -> list[str]:
    """``count`` month keys ending with the month of ``today``, newest first."""
    keys = []
    year, month = today.year, today.month
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return keys


class BookingService:
    """Service for booking-related operations."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def get_booking_detail(self, booking_id: int) -> Booking:
        """
        Get a booking with its relations loaded.

        Raises:
            NotFoundError: If booking not found
        """
        stmt = (
            booking_detail_select()
            .where(Booking.id == booking_id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(stmt)
        booking = result.scalar_one_or_none()
        if booking is None:
            logger.warning("Booking not found", extra={"booking_id": booking_id})
            raise NotFoundError("booking", booking_id)
        return booking

    async def list_bookings(
        self,
        user: User,
        filters: BookingFilters,
        page: PageParams,
        owner_id: Optional[int] = None,
    ) -> PageResult:
        """
        Paginated bookings, newest first.

        Non-admin callers only ever see their own rows; administrators may
        narrow to one customer with ``owner_id``.
        """
        conditions = build_conditions(filters, BOOKING_FILTERS)
        if not user.is_admin:
            conditions.append(Booking.user_id == user.id)
        elif owner_id is not None:
            conditions.append(Booking.user_id == owner_id)

        stmt = (
            booking_detail_select()
            .where(*conditions)
            .order_by(Booking.created_at.desc(), Booking.id.desc())
        )
        return await paginate(self.db, stmt, page.page, page.limit)

    async def create_booking(self, user: User, request: CreateBookingRequest) -> Booking:
        """
        Create a pending booking priced from the tour's tier prices.

        Raises:
            ValidationError: If the tour is missing or inactive, the guest
                count exceeds the tour limit, or the start date is in the past
                (when past dates are rejected)
        """
        tour = await self.db.get(Tour, request.tour_id)
        if tour is None or not tour.is_active:
            logger.warning(
                "Booking rejected - tour unavailable",
                extra={"tour_id": request.tour_id, "user_id": user.id}
            )
            raise ValidationError("Tour not found or not available")

        if self.settings.booking_reject_past_dates and request.start_date < date.today():
            raise ValidationError("Start date cannot be in the past")

        total_price = quote_total(tour, request.tier, request.guests)

        booking = Booking(
            user_id=user.id,
            tour_id=tour.id,
            start_date=request.start_date,
            end_date=compute_end_date(request.start_date, tour.duration_days),
            guests=request.guests,
            tier=request.tier,
            total_price=total_price,
            status=BookingStatus.PENDING,
            special_requests=request.special_requests,
        )
        self.db.add(booking)
        await self.db.commit()

        metrics_collector.record_booking_created(request.tier.value)
        logger.info(
            "Booking created successfully",
            extra={
                "booking_id": booking.id,
                "tour_id": tour.id,
                "user_id": user.id,
                "guests": booking.guests,
                "tier": request.tier.value,
                "total_price": str(total_price),
            }
        )
        return await self.get_booking_detail(booking.id)

    async def update_booking(self, booking: Booking, user: User, request: UpdateBookingRequest) -> Booking:
        """
        Apply a partial update from the owner or an administrator.

        Raises:
            AuthorizationError: If a non-admin tries to change the status
            InvalidStateError: If a non-admin modifies a completed or cancelled booking
            ValidationError: If nothing is set or the new guest count exceeds the tour limit
        """
        fields = request.model_fields_set

        if "status" in fields and not user.is_admin:
            raise AuthorizationError("Only admin can change booking status")

        if not user.is_admin and booking.status in CLOSED_STATUSES:
            logger.warning(
                "Booking update rejected - booking closed",
                extra={"booking_id": booking.id, "status": booking.status}
            )
            raise InvalidStateError("Cannot modify completed or cancelled bookings")

        previous_status = booking.status
        changes = apply_patch(booking, request)

        if "guests" in changes:
            tour = await self.db.get(Tour, booking.tour_id)
            booking.total_price = quote_total(tour, booking.tier, booking.guests)

        if changes.get("status") == BookingStatus.CANCELLED and previous_status != BookingStatus.CANCELLED:
            booking.cancelled_at = utcnow()
            booking.cancellation_reason = ADMIN_CANCELLATION
            metrics_collector.record_booking_cancelled("admin")

        await self.db.commit()

        logger.info(
            "Booking updated",
            extra={
                "booking_id": booking.id,
                "fields": sorted(changes),
                "updated_by": user.id,
            }
        )
        return await self.get_booking_detail(booking.id)

    async def cancel_or_delete(self, booking: Booking, user: User) -> str:
        """
        Soft-cancel for owners, hard delete for administrators.

        Returns:
            ``"cancelled"`` or ``"deleted"``

        Raises:
            InvalidStateError: If a non-admin cancels a booking that is not pending
        """
        booking_id = booking.id

        if user.is_admin:
            await self.db.execute(delete(Payment).where(Payment.booking_id == booking_id))
            await self.db.execute(delete(Booking).where(Booking.id == booking_id))
            await self.db.commit()

            metrics_collector.record_booking_deleted()
            logger.info("Booking deleted", extra={"booking_id": booking_id, "deleted_by": user.id})
            return "deleted"

        if booking.status != BookingStatus.PENDING:
            logger.warning(
                "Booking cancellation rejected",
                extra={"booking_id": booking_id, "status": booking.status}
            )
            raise InvalidStateError(
                "Can only cancel pending bookings. Contact support for confirmed bookings."
            )

        booking.status = BookingStatus.CANCELLED
        booking.cancelled_at = utcnow()
        booking.cancellation_reason = CUSTOMER_CANCELLATION
        await self.db.commit()

        metrics_collector.record_booking_cancelled("customer")
        logger.info("Booking cancelled", extra={"booking_id": booking_id, "user_id": user.id})
        return "cancelled"

    async def get_stats(self, months: int = 6, top: int = 5) -> dict:
        """Overview counts and revenue, monthly revenue and best-selling tours."""
        revenue_case = case(
            (Booking.status.in_(REVENUE_STATUSES), Booking.total_price),
            else_=0,
        )
        status_counts = [
            func.sum(case((Booking.status == status, 1), else_=0)).label(status.value)
            for status in BookingStatus
        ]
        overview_row = (await self.db.execute(
            select(
                func.count(Booking.id).label("total_bookings"),
                *status_counts,
                func.coalesce(func.sum(Booking.total_price), 0).label("total_revenue"),
                func.coalesce(func.sum(revenue_case), 0).label("confirmed_revenue"),
                func.avg(Booking.guests).label("average_guests"),
            )
        )).one()

        overview = {
            "total_bookings": overview_row.total_bookings or 0,
            "total_revenue": _to_decimal(overview_row.total_revenue),
            "confirmed_revenue": _to_decimal(overview_row.confirmed_revenue),
            "average_guests": round(float(overview_row.average_guests or 0), 1),
        }
        for status in BookingStatus:
            overview[status.value] = getattr(overview_row, status.value) or 0

        # Months are bucketed in Python, not SQL
        today = date.today()
        month_keys = _months_back(today, months)
        oldest_year, oldest_month = (int(part) for part in month_keys[-1].split("-"))
        since = datetime(oldest_year, oldest_month, 1)

        monthly: "OrderedDict[str, dict]" = OrderedDict(
            (key, {"month": key, "bookings": 0, "revenue": Decimal("0")}) for key in month_keys
        )
        rows = await self.db.execute(
            select(Booking.created_at, Booking.total_price).where(
                Booking.status.in_(REVENUE_STATUSES),
                Booking.created_at >= since,
            )
        )
        for created_at, total_price in rows.all():
            bucket = monthly.get(_month_key(created_at))
            if bucket is not None:
                bucket["bookings"] += 1
                bucket["revenue"] += _to_decimal(total_price)

        booking_count = func.count(Booking.id).label("bookings")
        top_rows = await self.db.execute(
            select(
                Tour.id,
                Tour.name,
                booking_count,
                func.coalesce(func.sum(Booking.total_price), 0).label("revenue"),
            )
            .join(Booking, Booking.tour_id == Tour.id)
            .where(Booking.status.in_(REVENUE_STATUSES))
            .group_by(Tour.id, Tour.name)
            .order_by(booking_count.desc(), Tour.id.asc())
            .limit(top)
        )

        return {
            "overview": overview,
            "monthly_revenue": list(monthly.values()),
            "top_tours": [
                {"tour_id": row.id, "name": row.name, "bookings": row.bookings, "revenue": _to_decimal(row.revenue)}
                for row in top_rows.all()
            ],
        }

    async def expire_pending(self, now: Optional[datetime] = None) -> int:
        """
        Cancel unpaid pending bookings older than the configured TTL.

        Returns:
            Number of bookings cancelled
        """
        now = now or utcnow()
        hours = self.settings.pending_booking_ttl_hours
        cutoff = now - timedelta(hours=hours)

        result = await self.db.execute(
            update(Booking)
            .where(
                Booking.status == BookingStatus.PENDING,
                Booking.payment_id.is_(None),
                Booking.created_at < cutoff,
            )
            .values(
                status=BookingStatus.CANCELLED,
                cancelled_at=now,
                cancellation_reason=EXPIRY_CANCELLATION.format(hours=hours),
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await self.db.commit()

        expired = result.rowcount or 0
        if expired:
            metrics_collector.record_pending_expired(expired)
            logger.info(
                "Expired unpaid pending bookings",
                extra={"expired_count": expired, "cutoff": cutoff.isoformat()}
            )
        return expired
