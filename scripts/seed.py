#!/usr/bin/env python3
"""Migrate the database and load a sample catalog plus an administrator."""

import asyncio
import logging
import os
import sys
from decimal import Decimal
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from alembic import command  # noqa: E402
from alembic.config import Config  # noqa: E402
from sqlalchemy import func, select  # noqa: E402

from tourdesk.core.config import Settings  # noqa: E402
from tourdesk.core.database import Database  # noqa: E402
from tourdesk.core.security import hash_password  # noqa: E402
from tourdesk.models import Category, City, Tour, User, UserRole  # noqa: E402

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CITIES = [
    ("Marrakech", "The Red City, with souks, palaces and the Jemaa el-Fnaa square"),
    ("Fes", "Medieval medina and the oldest university in the world"),
    ("Chefchaouen", "The Blue Pearl of the Rif mountains"),
    ("Merzouga", "Gateway to the Erg Chebbi dunes"),
]

CATEGORIES = [
    ("Desert", "sun"),
    ("Cultural", "landmark"),
    ("Mountain", "mountain"),
]

# (name, city, category, days, standard, premium, max_guests)
TOURS = [
    ("Sahara Desert Adventure", "Merzouga", "Desert", 3, "1000.00", "1500.00", 12),
    ("Imperial Fes Walking Tour", "Fes", "Cultural", 1, "350.00", None, 15),
    ("Atlas Mountains Trek", "Marrakech", "Mountain", 4, "2200.00", "3100.00", 8),
    ("Blue City Discovery", "Chefchaouen", "Cultural", 2, "800.00", "1150.00", 10),
]


def run_migrations(settings: Settings) -> None:
    """Apply every Alembic revision."""
    alembic_cfg = Config(str(server_dir / "db" / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(server_dir / "db" / "alembic"))
    alembic_cfg.set_main_option("sqlalchemy.url", settings.database_url)

    logger.info("Running database migrations...")
    command.upgrade(alembic_cfg, "head")
    logger.info("Database migrations completed")


async def create_sample_data(database: Database, settings: Settings) -> None:
    """Create the sample catalog and an admin account once."""
    async with database.session_factory() as db:
        try:
            if await db.scalar(select(func.count(Tour.id))):
                logger.info("Sample data already exists, skipping...")
                return

            cities = {name: City(name=name, description=description) for name, description in CITIES}
            categories = {name: Category(name=name, icon=icon) for name, icon in CATEGORIES}
            db.add_all([*cities.values(), *categories.values()])
            await db.flush()

            for name, city, category, days, standard, premium, max_guests in TOURS:
                db.add(Tour(
                    name=name,
                    city_id=cities[city].id,
                    category_id=categories[category].id,
                    duration_days=days,
                    price_standard=Decimal(standard),
                    price_premium=Decimal(premium) if premium else None,
                    max_guests=max_guests,
                    images=[],
                ))

            admin_email = os.environ.get("SEED_ADMIN_EMAIL", "admin@tourdesk.example.com")
            admin_password = os.environ.get("SEED_ADMIN_PASSWORD", "admin12345")
            db.add(User(
                name="Administrator",
                email=admin_email,
                password_hash=hash_password(admin_password, settings.bcrypt_rounds),
                role=UserRole.ADMIN,
            ))

            await db.commit()
            logger.info(f"Sample data created; admin login is {admin_email}")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


async def main() -> None:
    settings = Settings()
    database = Database(settings)

    logger.info("Starting tourdesk setup...")
    try:
        # Alembic's env.py runs its own event loop
        await asyncio.to_thread(run_migrations, settings)
        await create_sample_data(database, settings)
    finally:
        await database.dispose()

    logger.info("Setup completed successfully!")
    logger.info("Start the API server with: cd server && uvicorn tourdesk.main:app --reload")


if __name__ == "__main__":
    asyncio.run(main())
