"""
app/services/message_queue.py

Purpose: Outbound message command queue

- Queue interface used by handlers and evaluators
- Outbox implementation: commands are inserted into a collection
  the message sender consumes
- Duplicate messageIds (redelivered events) count as already queued
"""

from typing import Protocol

from pymongo.errors import DuplicateKeyError, PyMongoError

from app.core.config import settings
from app.core.exceptions import StorageError
from app.core.logging import get_logger
from app.db import mongo
from app.schemas.commands import OutboundCommand
from utils.constants import OUTBOX_STATUS_QUEUED
from utils.time_utils import utc_now

logger = get_logger(__name__)


class MessageQueue(Protocol):
    async def enqueue(self, command: OutboundCommand) -> None: ...


class OutboxMessageQueue:
    """Writes commands to the outbound_messages collection."""

    def __init__(self, database=None):
        self._database = database

    @property
    def collection(self):
        database = self._database if self._database is not None else mongo.get_database()
        return database[settings.OUTBOUND_COLLECTION]

    async def enqueue(self, command: OutboundCommand) -> None:
        document = {
            **command.to_payload(),
            "status": OUTBOX_STATUS_QUEUED,
            "queuedAt": utc_now(),
        }

        try:
            await self.collection.insert_one(document)
        except DuplicateKeyError:
            logger.info(
                f"Message {command.message_id} already queued, skipping duplicate"
            )
            return
        except PyMongoError as e:
            raise StorageError(f"Failed to queue message {command.message_id}: {e}") from e

        logger.info(
            f"📤 Queued {command.message_type} message {command.message_id} for customer {command.customer_id}"
        )
