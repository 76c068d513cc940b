"""City router."""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..core.dependencies import AdminUser, DatabaseSession
from ..core.responses import envelope
from ..models.city import City
from ..schemas.catalog import CatalogTour, CityDetail, CityOut, CitySummary, CreateCityRequest, UpdateCityRequest
from ..services.city_service import CityService

router = APIRouter(prefix="/api/v1/cities", tags=["cities"])


def _convert_city_to_schema(city: City) -> CityOut:
    return CityOut(
        id=city.id,
        name=city.name,
        description=city.description,
        image_url=city.image_url,
        created_at=city.created_at,
    )


@router.get("", summary="List cities")
async def list_cities(db: DatabaseSession) -> JSONResponse:
    """Cities with their number of active tours and lowest standard price."""
    rows = await CityService(db).list_cities()
    cities = [
        CitySummary(
            **_convert_city_to_schema(city).model_dump(),
            tour_count=tour_count or 0,
            min_price=min_price,
        )
        for city, tour_count, min_price in rows
    ]
    return envelope({"cities": cities})


@router.get("/{city_id}", summary="Get city")
async def get_city(city_id: int, db: DatabaseSession) -> JSONResponse:
    service = CityService(db)
    city = await service.get_city_or_raise(city_id)
    tours = await service.list_city_tours(city_id)
    detail = CityDetail(
        **_convert_city_to_schema(city).model_dump(),
        tours=[CatalogTour.model_validate(tour) for tour in tours],
    )
    return envelope({"city": detail})


@router.post("", status_code=201, summary="Create city")
async def create_city(request: CreateCityRequest, admin: AdminUser, db: DatabaseSession) -> JSONResponse:
    city = await CityService(db).create_city(request)
    return envelope({"city": _convert_city_to_schema(city)}, message="City created successfully", status_code=201)


@router.put("/{city_id}", summary="Update city")
async def update_city(
    city_id: int,
    request: UpdateCityRequest,
    admin: AdminUser,
    db: DatabaseSession,
) -> JSONResponse:
    city = await CityService(db).update_city(city_id, request)
    return envelope({"city": _convert_city_to_schema(city)}, message="City updated successfully")


@router.delete("/{city_id}", summary="Delete city")
async def delete_city(city_id: int, admin: AdminUser, db: DatabaseSession) -> JSONResponse:
    await CityService(db).delete_city(city_id)
    return envelope(message="City deleted successfully")
