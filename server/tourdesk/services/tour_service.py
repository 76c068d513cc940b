"""Tour service for catalog queries and administration."""

import logging
from typing import Any, Optional

from sqlalchemy import Select, delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidStateError, NotFoundError, ValidationError
from ..core.query import FilterRule, PageResult, apply_patch, build_conditions, paginate
from ..models.booking import Booking, BookingStatus
from ..models.category import Category
from ..models.city import City
from ..models.payment import Payment
from ..models.review import Review
from ..models.tour import Tour
from ..models.user import User
from ..schemas.common import PageParams
from ..schemas.tour import CreateTourRequest, TourFilters, TourSort, UpdateTourRequest

logger = logging.getLogger(__name__)

TOUR_FILTERS = {
    "city_id": FilterRule.eq(Tour.city_id),
    "category_id": FilterRule.eq(Tour.category_id),
    "min_price": FilterRule.gte(Tour.price_standard),
    "max_price": FilterRule.lte(Tour.price_standard),
    "duration": FilterRule.eq(Tour.duration_days),
    "search": FilterRule.search(Tour.name, Tour.description),
}


def _published_reviews():
    return (Review.tour_id == Tour.id) & Review.is_published.is_(True)


avg_rating_col = (
    select(func.avg(Review.rating))
    .where(_published_reviews())
    .correlate(Tour)
    .scalar_subquery()
    .label("avg_rating")
)
review_count_col = (
    select(func.count(Review.id))
    .where(_published_reviews())
    .correlate(Tour)
    .scalar_subquery()
    .label("review_count")
)
booking_count_col = (
    select(func.count(Booking.id))
    .where(Booking.tour_id == Tour.id, Booking.status != BookingStatus.CANCELLED)
    .correlate(Tour)
    .scalar_subquery()
    .label("booking_count")
)

SORT_ORDER = {
    TourSort.PRICE_ASC: (Tour.price_standard.asc(),),
    TourSort.PRICE_DESC: (Tour.price_standard.desc(),),
    TourSort.DURATION_ASC: (Tour.duration_days.asc(),),
    TourSort.DURATION_DESC: (Tour.duration_days.desc(),),
    TourSort.RATING: (avg_rating_col.desc().nulls_last(),),
    TourSort.POPULAR: (booking_count_col.desc(),),
    TourSort.NEWEST: (Tour.created_at.desc(),),
}


def tour_summary_select() -> Select:
    """Tours with catalog names and rating/booking aggregates."""
    return (
        select(
            Tour,
            City.name.label("city_name"),
            City.description.label("city_description"),
            Category.name.label("category_name"),
            Category.icon.label("category_icon"),
            avg_rating_col,
            review_count_col,
            booking_count_col,
        )
        .join(City, Tour.city_id == City.id)
        .join(Category, Tour.category_id == Category.id)
    )


def row_to_summary(row: Any) -> dict[str, Any]:
    """Flatten a ``tour_summary_select`` row into schema-ready fields."""
    tour: Tour = row[0]
    avg = row.avg_rating
    return {
        "id": tour.id,
        "name": tour.name,
        "city_id": tour.city_id,
        "category_id": tour.category_id,
        "description": tour.description,
        "duration_days": tour.duration_days,
        "price_standard": tour.price_standard,
        "price_premium": tour.price_premium,
        "max_guests": tour.max_guests,
        "is_active": tour.is_active,
        "images": tour.images or [],
        "created_at": tour.created_at,
        "updated_at": tour.updated_at,
        "city_name": row.city_name,
        "city_description": row.city_description,
        "category_name": row.category_name,
        "category_icon": row.category_icon,
        "avg_rating": round(float(avg), 1) if avg is not None else 0.0,
        "review_count": row.review_count or 0,
        "booking_count": row.booking_count or 0,
    }


class TourService:
    """Service for tour-related operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_tours(self, filters: TourFilters, page: PageParams) -> PageResult:
        """
        Active tours matching ``filters``, sorted by ``filters.sort``.

        Returns:
            PageResult whose items are ``tour_summary_select`` rows
        """
        stmt = (
            tour_summary_select()
            .where(Tour.is_active.is_(True), *build_conditions(filters, TOUR_FILTERS))
            .order_by(*SORT_ORDER[filters.sort], Tour.id.desc())
        )
        return await paginate(self.db, stmt, page.page, page.limit, scalars=False)

    async def list_featured(self, limit: int = 6) -> list[Any]:
        stmt = (
            tour_summary_select()
            .where(Tour.is_active.is_(True))
            .order_by(booking_count_col.desc(), avg_rating_col.desc().nulls_last(), Tour.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return list(result.all())

    async def get_tour_summary(self, tour_id: int) -> Any:
        """
        Raises:
            NotFoundError: If no tour has ``tour_id``
        """
        result = await self.db.execute(tour_summary_select().where(Tour.id == tour_id))
        row = result.first()
        if row is None:
            logger.warning("Tour not found", extra={"tour_id": tour_id})
            raise NotFoundError("tour", tour_id)
        return row

    async def get_recent_reviews(self, tour_id: int, limit: int = 5) -> list[dict[str, Any]]:
        stmt = (
            select(Review, User.name.label("user_name"))
            .join(User, Review.user_id == User.id)
            .where(Review.tour_id == tour_id, Review.is_published.is_(True))
            .order_by(Review.created_at.desc(), Review.id.desc())
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [
            {
                "id": review.id,
                "rating": review.rating,
                "comment": review.comment,
                "is_verified": review.is_verified,
                "user_name": user_name,
                "created_at": review.created_at,
            }
            for review, user_name in result.all()
        ]

    async def get_tour_by_id(self, tour_id: int) -> Optional[Tour]:
        return await self.db.get(Tour, tour_id)

    async def get_tour_by_id_or_raise(self, tour_id: int) -> Tour:
        tour = await self.get_tour_by_id(tour_id)
        if tour is None:
            logger.warning("Tour not found", extra={"tour_id": tour_id})
            raise NotFoundError("tour", tour_id)
        return tour

    async def _validate_references(self, city_id: Optional[int], category_id: Optional[int]) -> None:
        if city_id is not None and await self.db.get(City, city_id) is None:
            raise ValidationError("Invalid city ID")
        if category_id is not None and await self.db.get(Category, category_id) is None:
            raise ValidationError("Invalid category ID")

    async def create_tour(self, request: CreateTourRequest) -> Tour:
        """
        Create a new tour.

        Raises:
            ValidationError: If the city or category does not exist
        """
        await self._validate_references(request.city_id, request.category_id)

        tour = Tour(**request.model_dump())
        self.db.add(tour)
        await self.db.commit()

        logger.info(
            "Tour created successfully",
            extra={"tour_id": tour.id, "name": tour.name, "city_id": tour.city_id}
        )
        return tour

    async def update_tour(self, tour_id: int, request: UpdateTourRequest) -> Tour:
        tour = await self.get_tour_by_id_or_raise(tour_id)
        await self._validate_references(request.city_id, request.category_id)

        changes = apply_patch(tour, request)
        await self.db.commit()

        logger.info("Tour updated", extra={"tour_id": tour.id, "fields": sorted(changes)})
        return tour

    async def delete_tour(self, tour_id: int) -> None:
        """
        Delete a tour along with its cancelled bookings.

        Raises:
            InvalidStateError: While non-cancelled bookings reference the tour
        """
        tour = await self.get_tour_by_id_or_raise(tour_id)

        active = await self.db.scalar(
            select(func.count(Booking.id)).where(
                Booking.tour_id == tour_id,
                Booking.status != BookingStatus.CANCELLED,
            )
        )
        if active:
            logger.warning(
                "Tour deletion blocked by bookings",
                extra={"tour_id": tour_id, "active_bookings": active}
            )
            raise InvalidStateError(
                f"Cannot delete tour with {active} active booking(s). Deactivate it instead."
            )

        cancelled_ids = select(Booking.id).where(Booking.tour_id == tour_id)
        await self.db.execute(delete(Payment).where(Payment.booking_id.in_(cancelled_ids)))
        await self.db.execute(delete(Booking).where(Booking.tour_id == tour_id))
        await self.db.execute(delete(Review).where(Review.tour_id == tour_id))
        await self.db.delete(tour)
        await self.db.commit()

        logger.info("Tour deleted", extra={"tour_id": tour_id})
