"""
Database initialization script - indexes for the conversation orchestrator

Run once per environment (the service also does this on startup):
    python scripts/init_db.py
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.config import settings
from app.core.logging import setup_logging, get_logger
from app.db.indexes import create_indexes
from app.db.mongo import close_mongo_connection, connect_to_mongo, get_database

setup_logging()
logger = get_logger("scripts.init_db")


async def main():
    logger.info(f"🔌 Connecting to MongoDB: {settings.MONGODB_DB_NAME}")
    await connect_to_mongo()

    try:
        await create_indexes()

        db = get_database()
        for name in (
            settings.CUSTOMERS_COLLECTION,
            settings.PLANS_COLLECTION,
            settings.CONVERSATIONS_COLLECTION,
            settings.OUTBOUND_COLLECTION,
        ):
            indexes = await db[name].index_information()
            logger.info(f"📋 {name}: {', '.join(sorted(indexes))}")

        logger.info("🎉 Database initialization complete!")
    finally:
        await close_mongo_connection()


if __name__ == "__main__":
    asyncio.run(main())
