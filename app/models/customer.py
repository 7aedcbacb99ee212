"""
app/models/customer.py

Purpose: Customer document model

- Identity (id, also the partition key) and phone destination
- Active devotional plan pointer
- Profile used for personalization
- Messaging state driving every scheduled message
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, Field

from app.flow.states import ConversationState, CustomerStatus
from app.models.base import DocumentModel


class CustomerProfile(DocumentModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class MessagingState(DocumentModel):
    """
    Scheduling state embedded in a customer.

    Each ``next*`` timestamp drives exactly one message type; a timestamp
    at or before the evaluation time means the message is due.
    """

    next_plan_message_scheduled_for: Optional[datetime] = None
    next_devotional_scheduled_for: Optional[datetime] = None
    next_check_in_scheduled_for: Optional[datetime] = None
    timezone: Optional[str] = None
    preferred_time_of_day: Optional[str] = None
    current_life_season: Optional[str] = None
    extracted_themes: List[str] = Field(default_factory=list)
    conversation_state: Optional[str] = None
    last_devotional_sent_at: Optional[datetime] = None
    last_season_update_at: Optional[datetime] = None

    @property
    def is_active_conversation(self) -> bool:
        return self.conversation_state == ConversationState.ACTIVE.value


class Customer(DocumentModel):
    id: str
    # Stored as currentPhone by the account service
    phone: Optional[str] = Field(default=None, validation_alias=AliasChoices("phone", "currentPhone"))
    status: Optional[str] = None
    active_plan_id: Optional[str] = None
    profile: Optional[CustomerProfile] = None
    onboarding_step: Optional[str] = None
    onboarding_step_updated_at: Optional[datetime] = None
    messaging_state: Optional[MessagingState] = None
    # Enrollment timestamps owned by the beta program; carried through untouched
    beta_program: Optional[Dict[str, Any]] = None

    @property
    def first_name(self) -> Optional[str]:
        if self.profile and self.profile.first_name:
            return self.profile.first_name
        return None

    @property
    def is_active(self) -> bool:
        return self.status == CustomerStatus.ACTIVE.value
