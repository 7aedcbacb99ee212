"""
app/flow/handlers/plan_day.py

Handles: 7-day devotional plan delivery

- Loads the active plan of each customer whose plan message is due
- Formats and queues the current day's devotion
- Reschedules the next plan message (best effort, after queueing)
- Optionally advances currentDay / completes the plan
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from app.core.config import settings
from app.core.logging import get_logger, LogContext
from app.flow.formatter import format_daily_devotion_message
from app.flow.outcomes import BatchResult, PostActionResult
from app.flow.states import PlanDayAdvancement
from app.models.customer import Customer
from app.models.plan import DevotionalPlan
from app.schemas.commands import DevotionalPlanDayMessage, Priority
from app.services.message_queue import MessageQueue
from app.services.storage import Storage
from utils.constants import MESSAGE_TYPE_DAILY_PLAN_DEVOTION
from utils.time_utils import format_timestamp, next_plan_message_time, utc_now

logger = get_logger(__name__)


@dataclass
class PlanDayOutcome:
    """A queued day message plus the outcome of its post-actions."""
    command: DevotionalPlanDayMessage
    reschedule: PostActionResult
    advancement: PostActionResult


def build_plan_day_message(customer: Customer, plan: DevotionalPlan) -> DevotionalPlanDayMessage:
    """
    Builds the command for ``plan.current_day``.
    The caller guarantees currentDay is inside ``plan.days``.
    """
    day_number = plan.current_day
    devotion = plan.days[day_number - 1]

    text = format_daily_devotion_message(
        devotion.verse_reference,
        devotion.verse_text,
        devotion.reflection,
        devotion.journal_prompt,
        day_number,
        total_days=settings.PLAN_TOTAL_DAYS,
    )

    return DevotionalPlanDayMessage(
        customer_id=customer.id,
        phone_number=customer.phone,
        priority=Priority.HIGH if day_number == 1 else Priority.NORMAL,
        message=text,
        metadata={
            "planId": plan.id,
            "dayNumber": day_number,
            "messageType": MESSAGE_TYPE_DAILY_PLAN_DEVOTION,
        },
    )


async def process_customer_plan(
    storage: Storage,
    queue: MessageQueue,
    customer: Customer,
    now: datetime,
    advancement: Optional[PlanDayAdvancement] = None,
) -> Optional[PlanDayOutcome]:
    """
    Queues today's plan message for one customer.

    Returns None when the customer has nothing deliverable (no plan, plan
    missing or inactive, invalid day data). Errors from loading the plan or
    queueing the message propagate to the batch.
    """
    with LogContext(customer_id=customer.id, plan_id=customer.active_plan_id):
        if not customer.active_plan_id:
            logger.warning("Customer has no activePlanId, skipping")
            return None

        plan = await storage.get_plan(customer.active_plan_id, customer.id)

        if plan is None:
            logger.warning("Active plan not found, skipping")
            return None

        if not plan.is_active:
            logger.warning(f"Plan is not active (status: {plan.status}), skipping")
            return None

        if not plan.has_valid_current_day:
            logger.warning(
                f"Plan has invalid day data (currentDay={plan.current_day}, days={len(plan.days)}), skipping"
            )
            return None

        if not customer.phone:
            logger.warning("Customer has no phone on record; sender must resolve the destination")

        command = build_plan_day_message(customer, plan)
        await queue.enqueue(command)

        logger.info(f"Queued Day {plan.current_day} plan message {command.message_id}")

        reschedule = await reschedule_next_plan_message(storage, customer, now)
        advanced = await advance_plan(storage, plan, now, advancement)

        return PlanDayOutcome(command=command, reschedule=reschedule, advancement=advanced)


async def reschedule_next_plan_message(storage: Storage, customer: Customer, now: datetime) -> PostActionResult:
    """
    Moves nextPlanMessageScheduledFor a fixed interval past ``now``.

    Runs after the message was queued: failures are recorded, never raised.
    """
    expected = None
    if customer.messaging_state is not None:
        expected = customer.messaging_state.next_plan_message_scheduled_for

    next_time = next_plan_message_time(now, settings.PLAN_MESSAGE_INTERVAL_HOURS)

    try:
        updated = await storage.reschedule_plan_message(customer.id, expected, next_time)
    except Exception as e:
        logger.warning(f"Could not reschedule next plan message: {e}")
        return PostActionResult.recorded_failure(str(e))

    if not updated:
        logger.warning("Plan schedule changed concurrently or customer missing; next message time not updated")
        return PostActionResult.recorded_failure("conflict")

    logger.info(f"Scheduled next plan message at {format_timestamp(next_time)}")
    return PostActionResult.ok()


async def advance_plan(
    storage: Storage,
    plan: DevotionalPlan,
    now: datetime,
    advancement: Optional[PlanDayAdvancement] = None,
) -> PostActionResult:
    """
    Advances the plan past the day just queued when the scheduler owns
    day advancement; completes the plan after its last day.
    """
    mode = PlanDayAdvancement(advancement or settings.PLAN_DAY_ADVANCEMENT)
    if mode == PlanDayAdvancement.EXTERNAL:
        return PostActionResult.not_attempted("external")

    try:
        if plan.is_last_day:
            updated = await storage.complete_plan(plan.id, plan.customer_id, plan.current_day, now)
        else:
            updated = await storage.advance_plan_day(plan.id, plan.customer_id, plan.current_day)
    except Exception as e:
        logger.warning(f"Could not advance plan day: {e}")
        return PostActionResult.recorded_failure(str(e))

    if not updated:
        logger.warning(f"Plan day {plan.current_day} was already advanced by another writer")
        return PostActionResult.recorded_failure("conflict")

    if plan.is_last_day:
        logger.info("Plan completed")
    else:
        logger.info(f"Plan advanced to day {plan.current_day + 1}")
    return PostActionResult.ok()


async def process_due_plan_messages(
    storage: Storage,
    queue: MessageQueue,
    now: Optional[datetime] = None,
    limit: Optional[int] = None,
) -> BatchResult:
    """
    Runs the plan engine over every customer whose plan message is due.
    One failing candidate never stops the rest of the batch.
    """
    now = now or utc_now()
    result = BatchResult(name="plan_messages")

    candidates = await storage.find_customers_due_for_plan_message(
        now, limit or settings.SCHEDULER_BATCH_LIMIT
    )

    if not candidates:
        logger.info("No customers with active plans due for messages")
        return result

    logger.info(f"Found {len(candidates)} customers with active plans due for messages")

    for customer in candidates:
        result.processed += 1
        try:
            outcome = await process_customer_plan(storage, queue, customer, now)
        except Exception as e:
            result.failed += 1
            logger.error(f"Error processing plan for customer {customer.id}: {e}", exc_info=True)
            continue

        if outcome is None:
            result.skipped += 1
        else:
            result.emitted += 1
            result.message_ids.append(outcome.command.message_id)

    return result
