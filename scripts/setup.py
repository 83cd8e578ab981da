#!/usr/bin/env python3
"""Setup script for the stay booking engine."""

import asyncio
import logging
import sys
from decimal import Decimal
from pathlib import Path

# Add the server directory to the Python path
server_dir = Path(__file__).parent.parent / "server"
sys.path.insert(0, str(server_dir))

from sqlalchemy import func, select

from stay_engine.core.database import async_session_factory, init_db
from stay_engine.models import LocalPackage, PackageSetting, Property

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def setup_database():
    """Create the schema."""
    logger.info("Setting up database...")

    try:
        await init_db()
        logger.info("Database setup completed successfully!")
    except Exception as e:
        logger.error(f"Database setup failed: {e}")
        raise


async def create_sample_data():
    """Create a demo property with a few packages."""
    logger.info("Creating sample data...")

    async with async_session_factory() as db:
        try:
            existing = await db.execute(select(func.count()).select_from(Property))
            if existing.scalar_one() > 0:
                logger.info("Sample data already exists, skipping...")
                return

            prop = Property(name="Seaside Cottage", base_rate=Decimal("120.00"))
            db.add(prop)
            await db.flush()

            db.add_all([
                LocalPackage(
                    property_id=prop.id,
                    name="Standard Stay",
                    description="Self check-in, linen included",
                    category="standard",
                    multiplier=1.0,
                    base_rate=Decimal("100.00"),
                    min_nights=2,
                    max_nights=5,
                    features=["Wi-Fi", "Linen"],
                ),
                LocalPackage(
                    property_id=prop.id,
                    name="Hosted Weekend",
                    description="Welcome dinner and daily breakfast",
                    category="hosted",
                    multiplier=1.5,
                    min_nights=2,
                    max_nights=3,
                    features=["Breakfast", "Welcome dinner"],
                ),
                LocalPackage(
                    property_id=prop.id,
                    name="Extra Cleaning",
                    category="addon",
                    base_rate=Decimal("45.00"),
                    min_nights=1,
                    max_nights=1,
                ),
            ])

            # External weekly product, opted in for this property
            db.add(PackageSetting(
                property_id=prop.id,
                package_ref="ext_weekly",
                custom_name="Week by the Sea",
                enabled=True,
            ))

            await db.commit()
            logger.info(f"Sample data created successfully! Property ID: {prop.id}")

        except Exception as e:
            await db.rollback()
            logger.error(f"Failed to create sample data: {e}")
            raise


async def main():
    """Main setup function."""
    logger.info("Starting stay booking engine setup...")

    await setup_database()
    await create_sample_data()

    logger.info("Setup completed successfully!")
    logger.info("You can now start the API server with: cd server && uvicorn stay_engine.main:app --reload")


if __name__ == "__main__":
    asyncio.run(main())
