"""
app/flow/dispatcher.py

Purpose: Central event dispatcher

- Receives raw lifecycle event envelopes from the transport
- Routes to the matching handler by eventType
- Unknown event types are logged and ignored
"""

from typing import Any, Awaitable, Callable, Dict, Optional

from pydantic import ValidationError

from app.core.exceptions import InvalidEventError
from app.core.logging import get_logger
from app.flow.handlers.registration import handle_customer_registered
from app.flow.handlers.subscription import handle_subscription_activated
from app.schemas.commands import WelcomeMessage
from app.schemas.events import EventEnvelope
from app.services.message_queue import MessageQueue
from app.services.storage import Storage
from utils.constants import EVENT_CUSTOMER_REGISTERED, EVENT_SUBSCRIPTION_ACTIVATED

logger = get_logger(__name__)

EventHandler = Callable[[Dict[str, Any], Storage, MessageQueue], Awaitable[Optional[WelcomeMessage]]]

EVENT_HANDLERS: Dict[str, EventHandler] = {
    EVENT_CUSTOMER_REGISTERED: handle_customer_registered,
    EVENT_SUBSCRIPTION_ACTIVATED: handle_subscription_activated,
}


async def dispatch_event(payload: Dict[str, Any], storage: Storage, queue: MessageQueue) -> Dict[str, Any]:
    """
    Main dispatcher for inbound lifecycle events.

    Args:
        payload: Raw event envelope (camelCase JSON)
        storage: Customer/plan storage
        queue: Outbound message queue

    Returns:
        {"status": "processed" | "skipped" | "ignored", ...}

    Raises:
        InvalidEventError: when the envelope itself cannot be read
        EventProcessingError: propagated from the handler
    """
    try:
        envelope = EventEnvelope.model_validate(payload)
    except ValidationError as e:
        raise InvalidEventError(
            "Event envelope could not be parsed",
            details=[{"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]} for err in e.errors()],
        ) from e

    logger.info(f"📨 Dispatching {envelope.event_type} event {envelope.event_id}")

    handler = EVENT_HANDLERS.get(envelope.event_type or "")
    if handler is None:
        logger.warning(f"No handler for event type {envelope.event_type!r}, ignoring")
        return {"status": "ignored", "eventId": envelope.event_id}

    welcome = await handler(payload, storage, queue)

    if welcome is None:
        return {"status": "skipped", "eventId": envelope.event_id}

    return {
        "status": "processed",
        "eventId": envelope.event_id,
        "messageId": welcome.message_id,
    }
