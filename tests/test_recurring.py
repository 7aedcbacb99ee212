from datetime import timedelta

import pytest

from app.flow.handlers.recurring import evaluate_customer_schedule, process_recurring_messages
from app.flow.states import ConversationState
from utils.constants import SEASON_CHECK_IN_MESSAGE
from tests.conftest import NOW, make_customer


def _customer(devotional=None, check_in=None, **kwargs):
    return make_customer(
        next_devotional_scheduled_for=devotional,
        next_check_in_scheduled_for=check_in,
        current_life_season="new parent",
        extracted_themes=["rest", "patience"],
        **kwargs,
    )


@pytest.mark.asyncio
async def test_both_due_queue_two_requests(storage, queue):
    storage.add_customer(_customer(devotional=NOW - timedelta(hours=1), check_in=NOW - timedelta(hours=1)))

    result = await process_recurring_messages(storage, queue, NOW)

    assert result.emitted == 2
    devotional = queue.of_type("daily_devotional")[0]
    check_in = queue.of_type("season_check_in")[0]

    assert devotional.message is None
    assert devotional.themes == ["rest", "patience"]
    assert devotional.life_season == "new parent"
    assert devotional.phone_number == "+15551234567"

    assert check_in.message == SEASON_CHECK_IN_MESSAGE
    assert check_in.phone_number == "+15551234567"


@pytest.mark.asyncio
async def test_only_elapsed_timestamps_are_due(queue):
    customer = _customer(devotional=NOW, check_in=NOW + timedelta(days=3))

    queued = await evaluate_customer_schedule(queue, customer, NOW)

    assert [c.message_type for c in queued] == ["daily_devotional"]


@pytest.mark.asyncio
async def test_failing_devotional_does_not_block_check_in(queue):
    queue.fail_types.add("daily_devotional")
    customer = _customer(devotional=NOW - timedelta(hours=1), check_in=NOW - timedelta(hours=1))

    queued = await evaluate_customer_schedule(queue, customer, NOW)

    assert [c.message_type for c in queued] == ["season_check_in"]


@pytest.mark.asyncio
async def test_timestamps_are_left_for_the_sender(storage, queue):
    due = NOW - timedelta(hours=1)
    storage.add_customer(_customer(devotional=due, check_in=due))

    await process_recurring_messages(storage, queue, NOW)

    state = storage.customers["c1"].messaging_state
    assert state.next_devotional_scheduled_for == due
    assert state.next_check_in_scheduled_for == due


@pytest.mark.asyncio
async def test_paused_conversation_gets_nothing(storage, queue):
    storage.add_customer(_customer(
        devotional=NOW - timedelta(hours=1),
        conversation_state=ConversationState.PAUSED.value,
    ))

    result = await process_recurring_messages(storage, queue, NOW)

    assert result.processed == 0
    assert queue.commands == []


@pytest.mark.asyncio
async def test_inactive_candidate_from_query_is_skipped(queue):
    class StaleStorage:
        async def find_customers_due_for_recurring_message(self, now, limit=500):
            return [_customer(devotional=NOW, conversation_state=ConversationState.OPTED_OUT.value)]

    result = await process_recurring_messages(StaleStorage(), queue, NOW)

    assert result.skipped == 1
    assert queue.commands == []


@pytest.mark.asyncio
async def test_messages_are_independent_between_customers(storage, queue):
    storage.add_customer(_customer(devotional=NOW - timedelta(minutes=1)))
    storage.add_customer(_customer(
        customer_id="c2",
        phone="+15550000002",
        check_in=NOW - timedelta(minutes=1),
    ))

    result = await process_recurring_messages(storage, queue, NOW)

    assert result.processed == 2
    assert result.emitted == 2
    assert len(set(result.message_ids)) == 2
