"""
app/schemas/commands.py

Purpose: Outbound message command schemas

- One immutable model per command variant
- Tagged by messageType (discriminated union)
- camelCase JSON, the format the message sender consumes
- Message id policy (random or derived from stable inputs)
"""

import uuid
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from utils.constants import (
    MESSAGE_TYPE_DAILY_DEVOTIONAL,
    MESSAGE_TYPE_DAILY_PLAN_DEVOTION,
    MESSAGE_TYPE_ONBOARDING_WELCOME,
    MESSAGE_TYPE_SEASON_CHECK_IN,
    MESSAGE_TYPE_WEEKLY_CHECK_IN,
    PRIORITY_HIGH,
    PRIORITY_NORMAL,
)
from utils.time_utils import utc_now

# Fixed namespace so derived ids are stable across deployments
MESSAGE_ID_NAMESPACE = uuid.UUID("6f1c1c52-4d0e-4f43-9d8e-2f4b7e0a9c11")


class Priority(str, Enum):
    HIGH = PRIORITY_HIGH
    NORMAL = PRIORITY_NORMAL


def new_message_id(*stable_parts: Optional[str]) -> str:
    """
    Returns a message id.

    With stable parts (e.g. event id and stage) the id is a UUIDv5 over
    them, so a redelivered event yields the same command id. Without
    them, or when any part is missing, a random UUIDv4 is returned.
    """
    if stable_parts and all(stable_parts):
        return str(uuid.uuid5(MESSAGE_ID_NAMESPACE, ":".join(stable_parts)))
    return str(uuid.uuid4())


class MessageCommand(BaseModel):
    """Fields shared by every outbound command."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        use_enum_values=True,
    )

    message_id: str = Field(default_factory=new_message_id, description="Unique command id")
    customer_id: str = Field(..., description="Target customer")
    message_type: str
    priority: Priority = Priority.NORMAL
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-compatible dict in the sender's wire format."""
        return self.model_dump(mode="json", by_alias=True)


class WelcomeMetadata(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    registration_event_id: Optional[str] = None
    registration_stage: str
    attempt: int = 1
    max_retries: int = 3


class WelcomeMessage(MessageCommand):
    """First onboarding message, sent after registration or subscription activation."""

    message_type: Literal["onboarding_welcome"] = MESSAGE_TYPE_ONBOARDING_WELCOME
    conversation_id: str
    to: str
    body: str
    priority: Priority = Priority.HIGH
    metadata: WelcomeMetadata


class ScheduledMessageRequest(MessageCommand):
    """
    Recurring devotional or season check-in.
    ``message`` is None when the sender must generate the content.
    """

    message_type: Literal["daily_devotional", "season_check_in"]
    phone_number: Optional[str] = None
    message: Optional[str] = None
    themes: Optional[List[str]] = None
    life_season: Optional[str] = None


class DevotionalPlanDayMessage(MessageCommand):
    message_type: Literal["daily_plan_devotion"] = MESSAGE_TYPE_DAILY_PLAN_DEVOTION
    phone_number: Optional[str] = None
    message: str


class WeeklyCheckInRequest(MessageCommand):
    """
    Check-in after a completed plan. Addressed by customer id only;
    the sender resolves the phone number and formats the content.
    """

    message_type: Literal["weekly_check_in"] = MESSAGE_TYPE_WEEKLY_CHECK_IN


OutboundCommand = Annotated[
    Union[WelcomeMessage, ScheduledMessageRequest, DevotionalPlanDayMessage, WeeklyCheckInRequest],
    Field(discriminator="message_type"),
]

_command_adapter = TypeAdapter(OutboundCommand)


def parse_outbound_command(payload: Dict[str, Any]) -> MessageCommand:
    """Reads a queued payload back into its command variant by messageType."""
    return _command_adapter.validate_python(payload)
