"""Dev seeding helper: destination cities and the stub-auth user."""

import asyncio
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from backend.vibetravel.db.engine import get_async_engine
from backend.vibetravel.db.models import City

logger = logging.getLogger(__name__)

# Fixed ID matching stub auth in backend/vibetravel/api/auth.py
DEV_USER_ID = uuid.UUID("00000000-0000-0000-0000-000000000002")

SEED_CITIES = (
    "Paris",
    "London",
    "Rome",
    "Barcelona",
    "Amsterdam",
    "Berlin",
    "Vienna",
    "Prague",
    "Lisbon",
    "Warsaw",
)


def city_id_for(name: str) -> uuid.UUID:
    """Stable id for a seeded city, identical across databases."""
    return uuid.uuid5(uuid.NAMESPACE_URL, f"vibetravel:city:{name.lower()}")


async def seed_cities(engine: AsyncEngine | None = None) -> int:
    """Seed destination cities.

    This function is idempotent - safe to run multiple times.

    Returns:
        Number of cities inserted by this call
    """
    inserted = 0

    async with AsyncSession(engine or get_async_engine()) as session:
        result = await session.execute(select(City.name))
        existing = set(result.scalars())

        for name in SEED_CITIES:
            if name in existing:
                continue
            session.add(City(id=city_id_for(name), name=name))
            inserted += 1

        await session.commit()

    logger.info(f"Seeded {inserted} cities ({len(SEED_CITIES) - inserted} already present)")
    return inserted


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(seed_cities())
