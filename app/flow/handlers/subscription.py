"""
app/flow/handlers/subscription.py

Handles: SubscriptionActivated events (payment completed)

- Validates the payload (incomplete events are dropped)
- Looks up the customer's first name and moves onboarding to
  "awaiting_background" (best effort)
- Queues the personalized background-question welcome
- Initializes conversation state
"""

from typing import Any, Dict, Optional, Union

from app.core.exceptions import EventProcessingError
from app.core.logging import get_logger, LogContext
from app.flow.handlers.welcome import (
    build_subscription_welcome_text,
    build_welcome_message,
    deliver_welcome,
)
from app.flow.states import OnboardingStep
from app.schemas.commands import WelcomeMessage
from app.schemas.events import SubscriptionActivatedEvent, is_complete
from app.services.message_queue import MessageQueue
from app.services.storage import Storage
from utils.constants import STAGE_SUBSCRIPTION_ACTIVATED
from utils.time_utils import utc_now

logger = get_logger(__name__)


async def prepare_onboarding(storage: Storage, customer_id: str) -> Optional[str]:
    """
    Reads the customer's first name and starts the two-step onboarding.

    Best effort: a failed lookup yields None, which makes the welcome fall
    back to the anonymous greeting. A failed onboarding-step write is logged
    and keeps the name already read.
    """
    try:
        customer = await storage.get_customer(customer_id)
    except Exception as e:
        logger.warning(f"Could not fetch customer profile: {e}")
        return None

    if customer is None:
        logger.warning("Customer record not found; sending anonymous welcome")
        return None

    first_name = customer.first_name
    if first_name:
        logger.info("Retrieved firstName for personalization")

    try:
        await storage.set_onboarding_step(customer_id, OnboardingStep.AWAITING_BACKGROUND.value, utc_now())
        logger.info(f"Set onboardingStep to '{OnboardingStep.AWAITING_BACKGROUND.value}'")
    except Exception as e:
        logger.warning(f"Could not update onboardingStep: {e}")

    return first_name


async def handle_subscription_activated(
    event: Union[SubscriptionActivatedEvent, Dict[str, Any]],
    storage: Storage,
    queue: MessageQueue,
) -> Optional[WelcomeMessage]:
    """
    Processes a SubscriptionActivated event.

    Returns:
        The queued welcome, or None when the event was skipped

    Raises:
        EventProcessingError: on any failure of the primary path
    """
    try:
        if not isinstance(event, SubscriptionActivatedEvent):
            event = SubscriptionActivatedEvent.model_validate(event)

        with LogContext(event_id=event.event_id):
            if not is_complete(event.data):
                logger.warning("Invalid SubscriptionActivated event data (customerId or phoneNumber missing). Skipping processing.")
                return None

            data = event.data
            logger.info(
                f"SubscriptionActivated event received for customer {data.customer_id}, "
                f"subscription {data.subscription_id}"
            )

            with LogContext(customer_id=data.customer_id):
                first_name = await prepare_onboarding(storage, data.customer_id)

            welcome = build_welcome_message(
                customer_id=data.customer_id,
                phone=data.phone_number,
                body=build_subscription_welcome_text(first_name),
                stage=STAGE_SUBSCRIPTION_ACTIVATED,
                event_id=event.event_id,
            )
            return await deliver_welcome(storage, queue, welcome)

    except Exception as e:
        logger.error(f"Error processing SubscriptionActivated event: {e}", exc_info=True)
        raise EventProcessingError("Failed to process SubscriptionActivated event") from e
