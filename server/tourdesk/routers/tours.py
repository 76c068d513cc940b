"""Tour router for the public catalog and tour administration."""

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminUser, AppSettings, DatabaseSession, PageQuery
from ..core.responses import envelope, page_envelope
from ..models.tour import Tour
from ..schemas.tour import CreateTourRequest, TourDetail, TourFilters, TourOut, TourSummary, UpdateTourRequest
from ..services.review_service import ReviewService
from ..services.tour_service import TourService, row_to_summary
from .reviews import _convert_review_to_schema

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tours", tags=["tours"])


def _convert_tour_to_schema(tour: Tour) -> TourOut:
    """Convert tour model to schema."""
    return TourOut(
        id=tour.id,
        name=tour.name,
        city_id=tour.city_id,
        category_id=tour.category_id,
        description=tour.description,
        duration_days=tour.duration_days,
        price_standard=tour.price_standard,
        price_premium=tour.price_premium,
        max_guests=tour.max_guests,
        is_active=tour.is_active,
        images=tour.images or [],
        created_at=tour.created_at,
        updated_at=tour.updated_at,
    )


def _convert_row_to_summary(row: Any) -> TourSummary:
    return TourSummary.model_validate(row_to_summary(row))


@router.get("", summary="List tours")
async def list_tours(
    filters: Annotated[TourFilters, Query()],
    page: PageQuery,
    db: DatabaseSession,
) -> JSONResponse:
    """
    Active tours with rating and booking aggregates.

    Supports filtering by city, category, price range, duration and a
    free-text search, plus sorting by price, duration, rating, popularity
    or recency.
    """
    result = await TourService(db).list_tours(filters, page)
    return page_envelope(result, [_convert_row_to_summary(row) for row in result.items])


@router.get("/featured", summary="Featured tours")
async def featured_tours(
    db: DatabaseSession,
    limit: int = Query(6, ge=1, le=20),
) -> JSONResponse:
    rows = await TourService(db).list_featured(limit)
    return envelope({"tours": [_convert_row_to_summary(row) for row in rows]})


@router.get("/{tour_id}", summary="Get tour")
async def get_tour(tour_id: int, db: DatabaseSession) -> JSONResponse:
    service = TourService(db)
    row = await service.get_tour_summary(tour_id)
    detail = TourDetail(
        **row_to_summary(row),
        recent_reviews=await service.get_recent_reviews(tour_id),
    )
    return envelope({"tour": detail})


@router.get("/{tour_id}/reviews", summary="List tour reviews")
async def list_tour_reviews(
    tour_id: int,
    page: PageQuery,
    db: DatabaseSession,
    settings: AppSettings,
) -> JSONResponse:
    result = await ReviewService(db, settings).list_tour_reviews(tour_id, page)
    return page_envelope(result, [_convert_review_to_schema(r) for r in result.items])


@router.post("", status_code=201, summary="Create tour")
async def create_tour(request: CreateTourRequest, admin: AdminUser, db: DatabaseSession) -> JSONResponse:
    tour = await TourService(db).create_tour(request)
    return envelope(
        {"tour": _convert_tour_to_schema(tour)},
        message="Tour created successfully",
        status_code=201,
    )


@router.put("/{tour_id}", summary="Update tour")
async def update_tour(
    tour_id: int,
    request: UpdateTourRequest,
    admin: AdminUser,
    db: DatabaseSession,
) -> JSONResponse:
    tour = await TourService(db).update_tour(tour_id, request)
    return envelope({"tour": _convert_tour_to_schema(tour)}, message="Tour updated successfully")


@router.delete("/{tour_id}", summary="Delete tour")
async def delete_tour(tour_id: int, admin: AdminUser, db: DatabaseSession) -> JSONResponse:
    """
    Delete a tour.

    Refused while any non-cancelled booking references it.
    """
    await TourService(db).delete_tour(tour_id)
    logger.info("Tour removed by administrator", extra={"tour_id": tour_id, "admin_id": admin.id})
    return envelope(message="Tour deleted successfully")
