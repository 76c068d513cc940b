"""Category catalog service."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidStateError, NotFoundError
from ..core.query import apply_patch
from ..models.category import Category
from ..models.tour import Tour
from ..schemas.catalog import CreateCategoryRequest, UpdateCategoryRequest

logger = logging.getLogger(__name__)


class CategoryService:
    """Service for category operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self) -> list[tuple[Category, int]]:
        tour_count = func.count(Tour.id).label("tour_count")
        stmt = (
            select(Category, tour_count)
            .outerjoin(Tour, (Tour.category_id == Category.id) & Tour.is_active.is_(True))
            .group_by(Category.id)
            .order_by(tour_count.desc(), Category.name.asc())
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def get_category_or_raise(self, category_id: int) -> Category:
        category = await self.db.get(Category, category_id)
        if category is None:
            raise NotFoundError("category", category_id)
        return category

    async def list_category_tours(self, category_id: int) -> list[Tour]:
        stmt = (
            select(Tour)
            .where(Tour.category_id == category_id, Tour.is_active.is_(True))
            .order_by(Tour.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_category(self, request: CreateCategoryRequest) -> Category:
        category = Category(**request.model_dump())
        self.db.add(category)
        await self.db.commit()

        logger.info("Category created", extra={"category_id": category.id, "name": category.name})
        return category

    async def update_category(self, category_id: int, request: UpdateCategoryRequest) -> Category:
        category = await self.get_category_or_raise(category_id)
        apply_patch(category, request)
        await self.db.commit()
        return category

    async def delete_category(self, category_id: int) -> None:
        """
        Raises:
            InvalidStateError: While any tour references the category
        """
        category = await self.get_category_or_raise(category_id)
        tours = await self.db.scalar(
            select(func.count(Tour.id)).where(Tour.category_id == category_id)
        )
        if tours:
            raise InvalidStateError(f"Cannot delete category with {tours} associated tour(s)")

        await self.db.delete(category)
        await self.db.commit()
        logger.info("Category deleted", extra={"category_id": category_id})
