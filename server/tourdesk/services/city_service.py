"""City catalog service."""

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.exceptions import InvalidStateError, NotFoundError
from ..core.query import apply_patch
from ..models.city import City
from ..models.tour import Tour
from ..schemas.catalog import CreateCityRequest, UpdateCityRequest

logger = logging.getLogger(__name__)


class CityService:
    """Service for city operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_cities(self) -> list[tuple[City, int, object]]:
        """Cities with their active tour count and cheapest standard price."""
        tour_count = func.count(Tour.id).label("tour_count")
        stmt = (
            select(City, tour_count, func.min(Tour.price_standard).label("min_price"))
            .outerjoin(Tour, (Tour.city_id == City.id) & Tour.is_active.is_(True))
            .group_by(City.id)
            .order_by(tour_count.desc(), City.name.asc())
        )
        result = await self.db.execute(stmt)
        return [tuple(row) for row in result.all()]

    async def get_city_or_raise(self, city_id: int) -> City:
        city = await self.db.get(City, city_id)
        if city is None:
            logger.warning("City not found", extra={"city_id": city_id})
            raise NotFoundError("city", city_id)
        return city

    async def list_city_tours(self, city_id: int) -> list[Tour]:
        stmt = (
            select(Tour)
            .where(Tour.city_id == city_id, Tour.is_active.is_(True))
            .order_by(Tour.created_at.desc())
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create_city(self, request: CreateCityRequest) -> City:
        city = City(**request.model_dump())
        self.db.add(city)
        await self.db.commit()

        logger.info("City created", extra={"city_id": city.id, "name": city.name})
        return city

    async def update_city(self, city_id: int, request: UpdateCityRequest) -> City:
        city = await self.get_city_or_raise(city_id)
        apply_patch(city, request)
        await self.db.commit()

        logger.info("City updated", extra={"city_id": city.id})
        return city

    async def delete_city(self, city_id: int) -> None:
        """
        Raises:
            InvalidStateError: While any tour references the city
        """
        city = await self.get_city_or_raise(city_id)
        tours = await self.db.scalar(select(func.count(Tour.id)).where(Tour.city_id == city_id))
        if tours:
            raise InvalidStateError(f"Cannot delete city with {tours} associated tour(s)")

        await self.db.delete(city)
        await self.db.commit()
        logger.info("City deleted", extra={"city_id": city_id})
