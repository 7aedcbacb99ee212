import pytest
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from app.core.exceptions import StorageError
from app.flow.handlers.welcome import build_welcome_message
from app.schemas.commands import (
    DevotionalPlanDayMessage,
    ScheduledMessageRequest,
    WelcomeMessage,
    new_message_id,
    parse_outbound_command,
)
from app.services.message_queue import OutboxMessageQueue


def test_welcome_wire_format():
    welcome = build_welcome_message("c1", "+15551234567", "Welcome!", "customer_registered", "evt-1")

    payload = welcome.to_payload()

    assert payload["messageType"] == "onboarding_welcome"
    assert payload["customerId"] == "c1"
    assert payload["conversationId"] == "conv-c1"
    assert payload["to"] == "+15551234567"
    assert payload["priority"] == "HIGH"
    assert payload["metadata"] == {
        "registrationEventId": "evt-1",
        "registrationStage": "customer_registered",
        "attempt": 1,
        "maxRetries": 3,
    }


def test_payload_reads_back_as_its_variant():
    command = DevotionalPlanDayMessage(customer_id="c1", phone_number="+1555", message="Day 1")

    parsed = parse_outbound_command(command.to_payload())

    assert isinstance(parsed, DevotionalPlanDayMessage)
    assert parsed.message_id == command.message_id
    assert parsed.message == "Day 1"


def test_unknown_message_type_is_rejected():
    with pytest.raises(ValidationError):
        parse_outbound_command({"messageType": "marketing_blast", "customerId": "c1"})


def test_commands_are_immutable():
    command = ScheduledMessageRequest(customer_id="c1", message_type="season_check_in", message="Hi")

    with pytest.raises(ValidationError):
        command.message = "changed"

    assert isinstance(parse_outbound_command(command.to_payload()), ScheduledMessageRequest)


def test_message_ids():
    assert new_message_id("evt-1", "customer_registered") == new_message_id("evt-1", "customer_registered")
    assert new_message_id("evt-1", None) != new_message_id("evt-1", None)
    assert new_message_id() != new_message_id()


class FakeCollection:
    def __init__(self, error=None):
        self.documents = []
        self.error = error

    async def insert_one(self, document):
        if self.error is not None:
            raise self.error
        self.documents.append(document)


def _queue(collection):
    return OutboxMessageQueue(database={"outbound_messages": collection})


@pytest.mark.asyncio
async def test_outbox_stores_payload_with_status():
    collection = FakeCollection()
    welcome = build_welcome_message("c1", "+15551234567", "Welcome!", "customer_registered", "evt-1")

    await _queue(collection).enqueue(welcome)

    document = collection.documents[0]
    assert document["messageId"] == welcome.message_id
    assert document["status"] == "queued"
    assert "queuedAt" in document


@pytest.mark.asyncio
async def test_outbox_treats_duplicate_as_queued():
    collection = FakeCollection(error=DuplicateKeyError("E11000 duplicate key"))
    welcome = build_welcome_message("c1", "+15551234567", "Welcome!", "customer_registered", "evt-1")

    await _queue(collection).enqueue(welcome)


@pytest.mark.asyncio
async def test_outbox_driver_error_becomes_storage_error():
    collection = FakeCollection(error=ServerSelectionTimeoutError("no servers"))
    command = WelcomeMessage(
        customer_id="c1",
        conversation_id="conv-c1",
        to="+1555",
        body="hi",
        metadata={"registrationStage": "customer_registered"},
    )

    with pytest.raises(StorageError):
        await _queue(collection).enqueue(command)
