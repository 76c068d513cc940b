"""Category router."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminUser, DatabaseSession
from ..core.responses import envelope
from ..models.category import Category
from ..schemas.catalog import (
    CatalogTour,
    CategoryDetail,
    CategoryOut,
    CategorySummary,
    CreateCategoryRequest,
    UpdateCategoryRequest,
)
from ..services.category_service import CategoryService

router = APIRouter(prefix="/api/v1/categories", tags=["categories"])


def _convert_category_to_schema(category: Category) -> CategoryOut:
    return CategoryOut(
        id=category.id,
        name=category.name,
        icon=category.icon,
        created_at=category.created_at,
    )


@router.get("", summary="List categories")
async def list_categories(db: DatabaseSession) -> JSONResponse:
    rows = await CategoryService(db).list_categories()
    categories = [
        CategorySummary(**_convert_category_to_schema(category).model_dump(), tour_count=tour_count or 0)
        for category, tour_count in rows
    ]
    return envelope({"categories": categories})


@router.get("/{category_id}", summary="Get category")
async def get_category(category_id: int, db: DatabaseSession) -> JSONResponse:
    service = CategoryService(db)
    category = await service.get_category_or_raise(category_id)
    tours = await service.list_category_tours(category_id)
    detail = CategoryDetail(
        **_convert_category_to_schema(category).model_dump(),
        tours=[CatalogTour.model_validate(tour) for tour in tours],
    )
    return envelope({"category": detail})


@router.post("", status_code=201, summary="Create category")
async def create_category(request: CreateCategoryRequest, admin: AdminUser, db: DatabaseSession) -> JSONResponse:
    category = await CategoryService(db).create_category(request)
    return envelope(
        {"category": _convert_category_to_schema(category)},
        message="Category created successfully",
        status_code=201,
    )


@router.put("/{category_id}", summary="Update category")
async def update_category(
    category_id: int,
    request: UpdateCategoryRequest,
    admin: AdminUser,
    db: DatabaseSession,
) -> JSONResponse:
    category = await CategoryService(db).update_category(category_id, request)
    return envelope({"category": _convert_category_to_schema(category)}, message="Category updated successfully")


@router.delete("/{category_id}", summary="Delete category")
async def delete_category(category_id: int, admin: AdminUser, db: DatabaseSession) -> JSONResponse:
    await CategoryService(db).delete_category(category_id)
    return envelope(message="Category deleted successfully")
