import asyncio
from datetime import timedelta

import pytest

from app.flow.scheduler import run_scheduler_tick, scheduler_loop
from app.flow.states import PlanStatus
from tests.conftest import NOW, make_customer, make_plan


def _populate(storage):
    storage.add_customer(make_customer(
        "c1",
        active_plan_id="p1",
        next_plan_message_scheduled_for=NOW - timedelta(minutes=1),
    ))
    storage.add_plan(make_plan("c1", "p1", current_day=2))
    storage.add_customer(make_customer(
        "c2",
        phone="+15550000002",
        active_plan_id=None,
        next_devotional_scheduled_for=NOW - timedelta(minutes=1),
    ))
    storage.add_plan(make_plan("c3", "p3", status=PlanStatus.COMPLETED.value, current_day=7))


@pytest.mark.asyncio
async def test_tick_runs_every_evaluator(storage, queue):
    _populate(storage)

    summary = await run_scheduler_tick(storage, queue, NOW)

    assert summary.errors == {}
    assert summary.emitted == 3
    assert sorted(c.message_type for c in queue.commands) == [
        "daily_devotional",
        "daily_plan_devotion",
        "weekly_check_in",
    ]
    assert set(summary.as_dict()["batches"]) == {"plan_messages", "recurring_messages", "plan_completions"}


@pytest.mark.asyncio
async def test_failing_query_does_not_stop_other_evaluators(storage, queue):
    _populate(storage)
    storage.fail_on.add("find_customers_due_for_plan_message")

    summary = await run_scheduler_tick(storage, queue, NOW)

    assert "plan_messages" in summary.errors
    assert sorted(c.message_type for c in queue.commands) == ["daily_devotional", "weekly_check_in"]


@pytest.mark.asyncio
async def test_second_tick_does_not_resend_rescheduled_plan_message(storage, queue):
    _populate(storage)

    await run_scheduler_tick(storage, queue, NOW)
    await run_scheduler_tick(storage, queue, NOW + timedelta(minutes=5))

    assert len(queue.of_type("daily_plan_devotion")) == 1


@pytest.mark.asyncio
async def test_loop_stops_on_cancel(storage, queue):
    task = asyncio.create_task(scheduler_loop(storage, queue, interval_seconds=3600))
    await asyncio.sleep(0)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
