"""
app/flow/handlers/recurring.py

Handles: recurring devotionals and season check-ins

- Daily devotional due: queue a request the sender fills with generated content
- Season check-in due: queue the pre-authored check-in question
- Both checks run for every candidate; timestamps are left to the sender
"""

from datetime import datetime
from typing import List, Optional

from app.core.config import settings
from app.core.logging import get_logger, LogContext
from app.flow.outcomes import BatchResult
from app.models.customer import Customer
from app.schemas.commands import ScheduledMessageRequest
from app.services.message_queue import MessageQueue
from app.services.storage import Storage
from utils.constants import (
    MESSAGE_TYPE_DAILY_DEVOTIONAL,
    MESSAGE_TYPE_SEASON_CHECK_IN,
    SEASON_CHECK_IN_MESSAGE,
)
from utils.time_utils import is_due, utc_now

logger = get_logger(__name__)


def build_devotional_request(customer: Customer) -> ScheduledMessageRequest:
    state = customer.messaging_state
    return ScheduledMessageRequest(
        customer_id=customer.id,
        phone_number=customer.phone,
        message_type=MESSAGE_TYPE_DAILY_DEVOTIONAL,
        message=None,
        themes=list(state.extracted_themes),
        life_season=state.current_life_season,
    )


def build_check_in_request(customer: Customer) -> ScheduledMessageRequest:
    return ScheduledMessageRequest(
        customer_id=customer.id,
        phone_number=customer.phone,
        message_type=MESSAGE_TYPE_SEASON_CHECK_IN,
        message=SEASON_CHECK_IN_MESSAGE,
    )


async def evaluate_customer_schedule(
    queue: MessageQueue,
    customer: Customer,
    now: datetime,
) -> List[ScheduledMessageRequest]:
    """
    Queues every recurring message due for ``customer``.

    The devotional and the check-in are independent: a failure building or
    queueing one is logged and the other is still attempted.
    """
    queued = []
    state = customer.messaging_state
    if state is None:
        return queued

    if not customer.phone:
        logger.warning(f"Customer {customer.id} has no phone on record; sender must resolve the destination")

    due = []
    if is_due(state.next_devotional_scheduled_for, now):
        due.append((MESSAGE_TYPE_DAILY_DEVOTIONAL, build_devotional_request))
    if is_due(state.next_check_in_scheduled_for, now):
        due.append((MESSAGE_TYPE_SEASON_CHECK_IN, build_check_in_request))

    for message_type, build in due:
        with LogContext(customer_id=customer.id, message_type=message_type):
            try:
                command = build(customer)
                await queue.enqueue(command)
            except Exception as e:
                logger.error(f"Failed to queue {message_type} message: {e}", exc_info=True)
                continue

            logger.info(f"Queued {message_type} message {command.message_id}")
            queued.append(command)

    return queued


async def process_recurring_messages(
    storage: Storage,
    queue: MessageQueue,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> BatchResult:
    """
    Runs the recurring schedule over every customer with an elapsed
    devotional or check-in timestamp and an active conversation.
    """
    now = now or utc_now()
    result = BatchResult(name="recurring_messages")

    candidates = await storage.find_customers_due_for_recurring_message(
        now, limit or settings.SCHEDULER_BATCH_LIMIT
    )

    if not candidates:
        logger.info("No customers with scheduled messages found")
        return result

    logger.info(f"Found {len(candidates)} customers with scheduled messages")

    for customer in candidates:
        result.processed += 1

        if customer.messaging_state is None or not customer.messaging_state.is_active_conversation:
            result.skipped += 1
            continue

        try:
            queued = await evaluate_customer_schedule(queue, customer, now)
        except Exception as e:
            result.failed += 1
            logger.error(f"Error processing schedule for customer {customer.id}: {e}", exc_info=True)
            continue

        if queued:
            result.emitted += len(queued)
            result.message_ids.extend(command.message_id for command in queued)
        else:
            result.skipped += 1

    return result
