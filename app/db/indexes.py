"""
app/db/indexes.py

Purpose: Database index management

- Unique keys standing in for the document store's id / partition key
- Indexes backing the three scheduler due-queries
"""

from app.db.mongo import (
    get_customers_collection,
    get_plans_collection,
    get_conversations_collection,
    get_outbound_collection
)
from app.core.logging import get_logger

logger = get_logger(__name__)


async def create_indexes():
    """
    Creates all necessary database indexes.
    This function is idempotent - safe to run multiple times.
    """
    try:
        customers = get_customers_collection()
        plans = get_plans_collection()
        conversations = get_conversations_collection()
        outbound = get_outbound_collection()

        logger.info("Creating database indexes...")

        # ==============================================
        # CUSTOMERS COLLECTION INDEXES
        # ==============================================

        await customers.create_index("id", unique=True, name="customer_id_unique")
        logger.debug("Created unique index on customers.id")

        # Customers due for a plan day message
        await customers.create_index(
            [("status", 1), ("messagingState.nextPlanMessageScheduledFor", 1)],
            name="plan_message_due_idx"
        )
        logger.debug("Created index on customers.status + nextPlanMessageScheduledFor")

        # Customers due for a recurring devotional or check-in
        await customers.create_index(
            [("messagingState.conversationState", 1), ("messagingState.nextDevotionalScheduledFor", 1)],
            name="devotional_due_idx"
        )
        await customers.create_index(
            [("messagingState.conversationState", 1), ("messagingState.nextCheckInScheduledFor", 1)],
            name="check_in_due_idx"
        )
        logger.debug("Created recurring schedule indexes on customers")

        # ==============================================
        # DEVOTIONAL PLANS COLLECTION INDEXES
        # ==============================================

        await plans.create_index(
            [("customerId", 1), ("id", 1)],
            unique=True,
            name="plan_key_unique"
        )
        logger.debug("Created unique index on devotional_plans.customerId + id")

        await plans.create_index("status", name="plan_status_idx")
        logger.debug("Created index on devotional_plans.status")

        # ==============================================
        # CONVERSATIONS / OUTBOX INDEXES
        # ==============================================

        await conversations.create_index("customerId", unique=True, name="conversation_customer_unique")
        logger.debug("Created unique index on conversations.customerId")

        await outbound.create_index("messageId", unique=True, name="message_id_unique")
        await outbound.create_index([("status", 1), ("queuedAt", 1)], name="outbox_status_idx")
        logger.debug("Created outbox indexes")

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Error creating indexes: {str(e)}", exc_info=True)
        raise
