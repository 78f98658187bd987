"""City endpoint - destinations offered by the plan wizard."""

from typing import Annotated

from fastapi import APIRouter, Depends

from backend.vibetravel.api.dependencies import get_city_repository
from backend.vibetravel.db.repositories import CityRepository, StoreError
from backend.vibetravel.errors import PersistenceError
from backend.vibetravel.models.common import City

router = APIRouter(prefix="/cities", tags=["cities"])


@router.get("", response_model=list[City])
async def list_cities(
    cities: Annotated[CityRepository, Depends(get_city_repository)],
) -> list[City]:
    """List all destination cities ordered by name."""
    try:
        return await cities.list_cities()
    except StoreError as e:
        raise PersistenceError("Failed to fetch cities") from e
