"""
app/flow/scheduler.py

Purpose: Timer-driven evaluation

- One tick runs the plan engine, the recurring schedule and the
  completion check-ins, in that order
- A failing evaluator (e.g. its candidate query) does not stop the others
- The loop starts the next tick only after the previous one finished
"""

import asyncio
from datetime import datetime
from typing import Optional

from app.core.logging import get_logger
from app.flow.handlers.completion import process_plan_completions
from app.flow.handlers.plan_day import process_due_plan_messages
from app.flow.handlers.recurring import process_recurring_messages
from app.flow.outcomes import TickSummary
from app.services.message_queue import MessageQueue
from app.services.storage import Storage
from utils.time_utils import format_timestamp, utc_now

logger = get_logger(__name__)

EVALUATORS = (
    ("plan_messages", process_due_plan_messages),
    ("recurring_messages", process_recurring_messages),
    ("plan_completions", process_plan_completions),
)


async def run_scheduler_tick(
    storage: Storage,
    queue: MessageQueue,
    now: Optional[datetime] = None,
) -> TickSummary:
    """
    Runs every evaluator once against the same evaluation time.
    """
    now = now or utc_now()
    summary = TickSummary()

    logger.info(f"⏰ Scheduler tick at {format_timestamp(now)}")

    for name, evaluator in EVALUATORS:
        try:
            batch = await evaluator(storage, queue, now)
        except Exception as e:
            logger.error(f"Evaluator {name} failed: {e}", exc_info=True)
            summary.errors[name] = str(e)
            continue

        summary.batches.append(batch)
        if batch.processed:
            logger.info(
                f"{name}: processed={batch.processed} emitted={batch.emitted} "
                f"skipped={batch.skipped} failed={batch.failed}"
            )

    return summary


async def scheduler_loop(storage: Storage, queue: MessageQueue, interval_seconds: int):
    """
    Runs ticks forever, ``interval_seconds`` apart, until cancelled.
    """
    logger.info(f"Scheduler started (interval={interval_seconds}s)")
    try:
        while True:
            try:
                await run_scheduler_tick(storage, queue)
            except Exception as e:
                logger.error(f"Scheduler tick failed: {e}", exc_info=True)
            await asyncio.sleep(interval_seconds)
    except asyncio.CancelledError:
        logger.info("Scheduler stopped")
        raise
