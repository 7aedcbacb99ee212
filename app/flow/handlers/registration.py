"""
app/flow/handlers/registration.py

Handles: CustomerRegistered events

- Validates the payload (incomplete events are dropped)
- Queues the welcome asking for the customer's season of life
- Initializes conversation state
"""

from typing import Any, Dict, Optional, Union

from app.core.exceptions import EventProcessingError
from app.core.logging import get_logger, LogContext
from app.flow.handlers.welcome import build_welcome_message, deliver_welcome
from app.schemas.commands import WelcomeMessage
from app.schemas.events import CustomerRegisteredEvent, is_complete
from app.services.message_queue import MessageQueue
from app.services.storage import Storage
from utils.constants import REGISTRATION_WELCOME_MESSAGE, STAGE_CUSTOMER_REGISTERED

logger = get_logger(__name__)


async def handle_customer_registered(
    event: Union[CustomerRegisteredEvent, Dict[str, Any]],
    storage: Storage,
    queue: MessageQueue,
) -> Optional[WelcomeMessage]:
    """
    Processes a CustomerRegistered event.

    Returns:
        The queued welcome, or None when the event was skipped

    Raises:
        EventProcessingError: on any failure after validation, so the
        transport redelivers the event
    """
    try:
        if not isinstance(event, CustomerRegisteredEvent):
            event = CustomerRegisteredEvent.model_validate(event)

        with LogContext(event_id=event.event_id):
            if not is_complete(event.data):
                logger.warning("Invalid CustomerRegistered event data (customerId or phone missing). Skipping processing.")
                return None

            data = event.data
            logger.info(f"CustomerRegistered event received for customer {data.customer_id}")

            welcome = build_welcome_message(
                customer_id=data.customer_id,
                phone=data.phone,
                body=REGISTRATION_WELCOME_MESSAGE,
                stage=STAGE_CUSTOMER_REGISTERED,
                event_id=event.event_id,
            )
            return await deliver_welcome(storage, queue, welcome)

    except Exception as e:
        logger.error(f"Error processing CustomerRegistered event: {e}", exc_info=True)
        raise EventProcessingError("Failed to process CustomerRegistered event") from e
