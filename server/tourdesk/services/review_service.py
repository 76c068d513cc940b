"""Review service: one review per user and tour."""

import logging

from sqlalchemy import Select, exists, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..core.config import Settings
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..core.observability import metrics_collector
from ..core.query import FilterRule, PageResult, apply_patch, build_conditions, paginate
from ..models.booking import Booking, BookingStatus
from ..models.review import Review
from ..models.tour import Tour
from ..models.user import User
from ..schemas.common import PageParams
from ..schemas.review import CreateReviewRequest, ReviewFilters, UpdateReviewRequest

logger = logging.getLogger(__name__)

REVIEW_FILTERS = {
    "tour_id": FilterRule.eq(Review.tour_id),
    "rating": FilterRule.eq(Review.rating),
    "is_published": FilterRule.eq(Review.is_published),
}


def review_detail_select() -> Select:
    return select(Review).options(selectinload(Review.user), selectinload(Review.tour))


class ReviewService:
    """Service for review-related operations."""

    def __init__(self, db: AsyncSession, settings: Settings):
        self.db = db
        self.settings = settings

    async def list_reviews(self, user: User | None, filters: ReviewFilters, page: PageParams) -> PageResult:
        """Published reviews for everyone; administrators may filter on ``is_published``."""
        is_admin = user is not None and user.is_admin
        if not is_admin:
            filters = filters.model_copy(update={"is_published": True})

        stmt = (
            review_detail_select()
            .where(*build_conditions(filters, REVIEW_FILTERS))
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        return await paginate(self.db, stmt, page.page, page.limit)

    async def list_tour_reviews(self, tour_id: int, page: PageParams) -> PageResult:
        if await self.db.get(Tour, tour_id) is None:
            raise NotFoundError("tour", tour_id)
        return await self.list_reviews(None, ReviewFilters(tour_id=tour_id), page)

    async def list_user_reviews(self, user: User) -> list[Review]:
        stmt = (
            review_detail_select()
            .where(Review.user_id == user.id)
            .order_by(Review.created_at.desc(), Review.id.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def get_review_detail(self, review_id: int, user: User | None = None) -> Review:
        """
        Raises:
            NotFoundError: If missing, or unpublished and the caller may not see it
        """
        stmt = (
            review_detail_select()
            .where(Review.id == review_id)
            .execution_options(populate_existing=True)
        )
        review = (await self.db.execute(stmt)).scalar_one_or_none()
        if review is None:
            raise NotFoundError("review", review_id)

        can_see_hidden = user is not None and (user.is_admin or user.id == review.user_id)
        if not review.is_published and not can_see_hidden:
            raise NotFoundError("review", review_id)
        return review

    async def has_completed_booking(self, user_id: int, tour_id: int) -> bool:
        stmt = select(
            exists().where(
                Booking.user_id == user_id,
                Booking.tour_id == tour_id,
                Booking.status == BookingStatus.COMPLETED,
            )
        )
        return bool(await self.db.scalar(stmt))

    async def create_review(self, user: User, request: CreateReviewRequest) -> Review:
        """
        Create the caller's review of a tour.

        ``is_verified`` reflects a completed booking of the tour; unverified
        reviews are published unless auto-publishing them is switched off.

        Raises:
            ValidationError: If the tour does not exist, or a completed
                booking is required and missing
            ConflictError: If the caller already reviewed the tour
        """
        if await self.db.get(Tour, request.tour_id) is None:
            raise ValidationError("Tour not found")

        existing = await self.db.scalar(
            select(Review.id).where(Review.user_id == user.id, Review.tour_id == request.tour_id)
        )
        if existing:
            logger.warning(
                "Duplicate review rejected",
                extra={"user_id": user.id, "tour_id": request.tour_id, "review_id": existing}
            )
            raise ConflictError("You have already reviewed this tour")

        verified = await self.has_completed_booking(user.id, request.tour_id)
        if self.settings.review_requires_completed_booking and not verified:
            raise ValidationError("You can only review tours you have completed")

        review = Review(
            user_id=user.id,
            tour_id=request.tour_id,
            rating=request.rating,
            comment=request.comment,
            is_verified=verified,
            is_published=verified or self.settings.review_auto_publish_unverified,
        )
        self.db.add(review)
        try:
            await self.db.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent review of the same tour
            await self.db.rollback()
            raise ConflictError("You have already reviewed this tour") from e

        metrics_collector.record_review_created(verified)
        logger.info(
            "Review created",
            extra={"review_id": review.id, "tour_id": review.tour_id, "verified": verified}
        )
        return await self.get_review_detail(review.id, user)

    async def update_review(self, review: Review, user: User, request: UpdateReviewRequest) -> Review:
        """
        Raises:
            AuthorizationError: If a non-admin changes ``is_published``
        """
        if "is_published" in request.model_fields_set and not user.is_admin:
            raise AuthorizationError("Only admin can change review visibility")

        changes = apply_patch(review, request)
        await self.db.commit()

        logger.info("Review updated", extra={"review_id": review.id, "fields": sorted(changes)})
        return await self.get_review_detail(review.id, user)

    async def delete_review(self, review: Review, user: User) -> None:
        review_id = review.id
        await self.db.delete(review)
        await self.db.commit()
        logger.info("Review deleted", extra={"review_id": review_id, "deleted_by": user.id})
