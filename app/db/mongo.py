"""
app/db/mongo.py

Purpose: MongoDB connection setup

- Initializes one process-wide Motor client with connection pooling
- Collections: customers, devotional_plans, conversations, outbound_messages
- Health checks and retry logic
- Proper connection lifecycle management
"""

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo.errors import ConnectionFailure, ServerSelectionTimeoutError
from typing import Optional
import asyncio
from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger(__name__)

# Global MongoDB client
_client: Optional[AsyncIOMotorClient] = None
_database: Optional[AsyncIOMotorDatabase] = None


async def connect_to_mongo():
    """
    Establishes connection to MongoDB with retry logic.
    Called during application startup.
    """
    global _client, _database

    if _client is not None:
        logger.warning("MongoDB client already initialized")
        return

    max_retries = settings.MONGODB_CONNECT_RETRIES
    retry_delay = 2

    for attempt in range(1, max_retries + 1):
        try:
            logger.info(
                f"Attempting to connect to MongoDB (attempt {attempt}/{max_retries})"
            )

            mongodb_url = settings.MONGODB_URL.replace("%%", "%25")

            _client = AsyncIOMotorClient(
                mongodb_url,
                maxPoolSize=settings.MONGODB_MAX_POOL_SIZE,
                minPoolSize=5,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                retryWrites=True,
                retryReads=True,
                tz_aware=True,
            )

            _database = _client[settings.MONGODB_DB_NAME]

            # Verify connection
            await _client.admin.command("ping")

            logger.info(
                f"✅ Successfully connected to MongoDB: {settings.MONGODB_DB_NAME}"
            )
            return

        except (ConnectionFailure, ServerSelectionTimeoutError) as e:
            logger.error(
                f"Failed to connect to MongoDB (attempt {attempt}/{max_retries}): {e}"
            )
            _client = None
            _database = None

            if attempt < max_retries:
                logger.info(f"Retrying in {retry_delay} seconds...")
                await asyncio.sleep(retry_delay)
                retry_delay *= 2  # Exponential backoff
            else:
                logger.critical("Failed to connect to MongoDB after all retries")
                raise ConnectionError("Could not establish MongoDB connection") from e


async def close_mongo_connection():
    """
    Closes the MongoDB connection.
    Called during application shutdown.
    """
    global _client, _database

    if _client:
        logger.info("Closing MongoDB connection")
        _client.close()
        _client = None
        _database = None
        logger.info("MongoDB connection closed")


async def check_database_health() -> bool:
    """
    Checks if the database connection is healthy.

    Returns:
        True if connection is healthy, False otherwise
    """
    try:
        if _client is None:
            logger.error("MongoDB client not initialized")
            return False

        await _client.admin.command("ping")
        return True

    except Exception as e:
        logger.error(f"Database health check failed: {str(e)}")
        return False


def get_database() -> AsyncIOMotorDatabase:
    """
    Returns the MongoDB database instance.

    Raises:
        RuntimeError: If database is not initialized
    """
    if _database is None:
        raise RuntimeError(
            "Database not initialized. Call connect_to_mongo() during startup."
        )
    return _database


def get_customers_collection():
    """
    Returns the customers collection.

    Documents are keyed (and partitioned) by ``id``:
    - id, phone, status, activePlanId
    - profile: {firstName, lastName}
    - onboardingStep, onboardingStepUpdatedAt
    - messagingState: next*ScheduledFor timestamps, conversationState, ...
    """
    return get_database()[settings.CUSTOMERS_COLLECTION]


def get_plans_collection():
    """
    Returns the devotional plans collection, keyed by (id, customerId).
    """
    return get_database()[settings.PLANS_COLLECTION]


def get_conversations_collection():
    """
    Returns the per-customer conversation state collection (id = conv-{customerId}).
    """
    return get_database()[settings.CONVERSATIONS_COLLECTION]


def get_outbound_collection():
    """
    Returns the outbox of message commands consumed by the sender.
    """
    return get_database()[settings.OUTBOUND_COLLECTION]
