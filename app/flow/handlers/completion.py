"""
app/flow/handlers/completion.py

Handles: check-in after a completed 7-day plan

- Finds completed plans whose check-in was not confirmed as sent
- Queues a weekly check-in request addressed by customer id
- Never sets checkInSent: the sender marks it after confirmed delivery,
  so a failed send is retried on the next tick
"""

from datetime import datetime
from typing import Optional

from app.core.config import settings
from app.core.logging import get_logger, LogContext
from app.flow.outcomes import BatchResult
from app.models.plan import DevotionalPlan
from app.schemas.commands import WeeklyCheckInRequest
from app.services.message_queue import MessageQueue
from app.services.storage import Storage

logger = get_logger(__name__)


def build_weekly_check_in(plan: DevotionalPlan) -> WeeklyCheckInRequest:
    return WeeklyCheckInRequest(
        customer_id=plan.customer_id,
        metadata={
            "completedPlanId": plan.id,
            "expectsResponse": True,
        },
    )


async def queue_weekly_check_in(queue: MessageQueue, plan: DevotionalPlan) -> WeeklyCheckInRequest:
    with LogContext(customer_id=plan.customer_id, plan_id=plan.id):
        command = build_weekly_check_in(plan)
        await queue.enqueue(command)
        logger.info(f"Queued weekly check-in request {command.message_id}")
        return command


async def process_plan_completions(
    storage: Storage,
    queue: MessageQueue,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> BatchResult:
    """
    Queues one weekly check-in per completed plan still lacking checkInSent.
    ``now`` is accepted for a uniform evaluator signature; the query is time-independent.
    """
    result = BatchResult(name="plan_completions")

    plans = await storage.find_plans_needing_check_in(limit or settings.SCHEDULER_BATCH_LIMIT)

    if not plans:
        logger.info("No completed plans needing check-in messages")
        return result

    logger.info(f"Found {len(plans)} completed plans needing check-in messages")

    for plan in plans:
        result.processed += 1
        try:
            command = await queue_weekly_check_in(queue, plan)
        except Exception as e:
            result.failed += 1
            logger.error(f"Error queueing weekly check-in for plan {plan.id}: {e}", exc_info=True)
            continue

        result.emitted += 1
        result.message_ids.append(command.message_id)

    return result
