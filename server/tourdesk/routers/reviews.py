"""Review router."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import AppSettings, CurrentUser, DatabaseSession, OptionalUser, PageQuery, owned_by_caller
from ..core.responses import envelope, page_envelope
from ..models.review import Review
from ..schemas.review import CreateReviewRequest, ReviewFilters, ReviewOut, UpdateReviewRequest
from ..services.review_service import ReviewService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/reviews", tags=["reviews"])

OWNED_REVIEW = Depends(owned_by_caller(Review, "review"))


def _convert_review_to_schema(review: Review) -> ReviewOut:
    """Convert review model (with user and tour loaded) to schema."""
    return ReviewOut(
        id=review.id,
        user_id=review.user_id,
        tour_id=review.tour_id,
        rating=review.rating,
        comment=review.comment,
        is_verified=review.is_verified,
        is_published=review.is_published,
        created_at=review.created_at,
        updated_at=review.updated_at,
        user_name=review.user.name if review.user else None,
        tour_name=review.tour.name if review.tour else None,
    )


@router.get("", summary="List reviews")
async def list_reviews(
    filters: Annotated[ReviewFilters, Query()],
    page: PageQuery,
    user: OptionalUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    """
    Paginated reviews, newest first.

    Only administrators see (or may filter on) unpublished reviews.
    """
    result = await ReviewService(db, settings).list_reviews(user, filters, page)
    return page_envelope(result, [_convert_review_to_schema(r) for r in result.items])


@router.get("/my", summary="List my reviews")
async def my_reviews(user: CurrentUser, db: DatabaseSession, settings: AppSettings) -> JSONResponse:
    reviews = await ReviewService(db, settings).list_user_reviews(user)
    return envelope({"reviews": [_convert_review_to_schema(r) for r in reviews]})


@router.get("/{review_id}", summary="Get review")
async def get_review(
    review_id: int,
    user: OptionalUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    review = await ReviewService(db, settings).get_review_detail(review_id, user)
    return envelope({"review": _convert_review_to_schema(review)})


@router.post("", status_code=201, summary="Create review")
async def create_review(
    request: CreateReviewRequest,
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    """
    Review a tour once per customer.

    Reviews backed by a completed booking are marked verified.
    """
    review = await ReviewService(db, settings).create_review(user, request)
    return envelope(
        {"review": _convert_review_to_schema(review)},
        message="Review submitted successfully",
        status_code=201,
    )


@router.put("/{id}", summary="Update review")
async def update_review(
    request: UpdateReviewRequest,
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
    review: Review = OWNED_REVIEW,
) -> JSONResponse:
    updated = await ReviewService(db, settings).update_review(review, user, request)
    return envelope({"review": _convert_review_to_schema(updated)}, message="Review updated successfully")


@router.delete("/{id}", summary="Delete review")
async def delete_review(
    user: CurrentUser,
    db: DatabaseSession,
    settings: AppSettings,
    review: Review = OWNED_REVIEW,
) -> JSONResponse:
    await ReviewService(db, settings).delete_review(review, user)
    return envelope(message="Review deleted successfully")
