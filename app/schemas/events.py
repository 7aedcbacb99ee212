"""
app/schemas/events.py

Purpose: Inbound lifecycle event schemas

- Envelope shared by every event (eventId, eventType, eventTime, subject, data)
- CustomerRegistered and SubscriptionActivated payloads
- Payload fields are optional here: incomplete events are skipped by
  the handlers rather than rejected at parse time
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EventModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class CustomerRegisteredData(EventModel):
    customer_id: Optional[str] = None
    phone: Optional[str] = None
    registration_stage: Optional[str] = None
    created_at: Optional[datetime] = None

    @property
    def destination(self) -> Optional[str]:
        return self.phone


class SubscriptionActivatedData(EventModel):
    customer_id: Optional[str] = None
    phone_number: Optional[str] = None
    subscription_id: Optional[str] = None
    stripe_price_id: Optional[str] = None
    status: Optional[str] = None
    activated_at: Optional[datetime] = None

    @property
    def destination(self) -> Optional[str]:
        return self.phone_number


class EventEnvelope(EventModel):
    """
    Common envelope. ``data`` is parsed by the concrete event types.
    """

    event_id: Optional[str] = Field(default=None, description="Publisher event id")
    event_type: Optional[str] = Field(default=None, description="CustomerRegistered, SubscriptionActivated, ...")
    event_time: Optional[datetime] = None
    subject: Optional[str] = None


class CustomerRegisteredEvent(EventEnvelope):
    data: Optional[CustomerRegisteredData] = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "eventId": "evt-123",
                "eventType": "CustomerRegistered",
                "eventTime": "2025-01-01T12:00:00Z",
                "subject": "customers/c1",
                "data": {"customerId": "c1", "phone": "+15551234567"}
            }
        }
    )


class SubscriptionActivatedEvent(EventEnvelope):
    data: Optional[SubscriptionActivatedData] = None


def is_complete(data) -> bool:
    """
    True when the payload carries everything a welcome needs:
    a customer id and a phone destination.
    """
    return data is not None and bool(data.customer_id) and bool(data.destination)
