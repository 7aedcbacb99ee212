"""
app/flow/handlers/welcome.py

Handles: the onboarding welcome shared by lifecycle events

- Builds the welcome command (HIGH priority, retry bookkeeping)
- Queues it and initializes the customer's conversation state
"""

from typing import Optional

from app.core.config import settings
from app.core.logging import get_logger
from app.schemas.commands import WelcomeMessage, WelcomeMetadata, new_message_id
from app.services.message_queue import MessageQueue
from app.services.storage import Storage
from utils.constants import (
    COMPLIANCE_FOOTER,
    CONVERSATION_ID_PREFIX,
    SUBSCRIPTION_WELCOME_MESSAGE,
    WELCOME_FIRST_ATTEMPT,
    WELCOME_GREETING_ANONYMOUS,
    WELCOME_GREETING_NAMED,
)
from utils.time_utils import utc_now

logger = get_logger(__name__)


def build_subscription_welcome_text(first_name: Optional[str]) -> str:
    """
    Step 1 of onboarding: asks for a short personal background.
    Falls back to an anonymous greeting without a first name.
    """
    if first_name and first_name.strip():
        greeting = WELCOME_GREETING_NAMED.format(first_name=first_name.strip())
    else:
        greeting = WELCOME_GREETING_ANONYMOUS
    return SUBSCRIPTION_WELCOME_MESSAGE.format(greeting=greeting, footer=COMPLIANCE_FOOTER)


def build_welcome_message(
    customer_id: str,
    phone: str,
    body: str,
    stage: str,
    event_id: Optional[str] = None,
) -> WelcomeMessage:
    """
    Builds the onboarding welcome command.

    The message id is derived from (event id, stage) when configured, so a
    redelivered event produces the same command instead of a second one.
    """
    if settings.DETERMINISTIC_EVENT_MESSAGE_IDS:
        message_id = new_message_id(event_id, stage)
    else:
        message_id = new_message_id()

    return WelcomeMessage(
        message_id=message_id,
        customer_id=customer_id,
        conversation_id=f"{CONVERSATION_ID_PREFIX}{customer_id}",
        to=phone,
        body=body,
        metadata=WelcomeMetadata(
            registration_event_id=event_id,
            registration_stage=stage,
            attempt=WELCOME_FIRST_ATTEMPT,
            max_retries=settings.WELCOME_MAX_RETRIES,
        ),
    )


async def deliver_welcome(storage: Storage, queue: MessageQueue, welcome: WelcomeMessage) -> WelcomeMessage:
    """
    Queues the welcome, then initializes conversation state.
    Both steps are safe to repeat for a redelivered event.
    """
    await queue.enqueue(welcome)
    logger.info(f"Welcome message {welcome.message_id} queued")

    logger.info("Initializing conversation state")
    await storage.initialize_conversation_state(welcome.customer_id, welcome.to, utc_now())
    logger.info(f"Conversation state {welcome.conversation_id} initialized")

    return welcome
