"""
app/flow/states.py

Purpose: Defines all lifecycle states

- Customer, conversation and onboarding states
- Devotional plan states
- Single source of truth for the values stored in documents
- Outcome states of best-effort post-actions
"""

from enum import Enum


class CustomerStatus(str, Enum):
    """Account status of a customer record."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    CANCELLED = "cancelled"


class ConversationState(str, Enum):
    """
    Conversation-level state kept in ``messagingState.conversationState``.
    Recurring messages are only evaluated for ACTIVE conversations.
    """

    AWAITING_LIFE_SEASON = "awaiting_life_season"
    ACTIVE = "active"
    PAUSED = "paused"
    OPTED_OUT = "opted_out"


class OnboardingStep(str, Enum):
    """
    Two-step onboarding: background first, then season of life.
    """

    AWAITING_BACKGROUND = "awaiting_background"
    AWAITING_SEASON = "awaiting_season"
    COMPLETED = "completed"


class ConversationStage(str, Enum):
    """Stage stored on the per-customer conversation record."""

    ONBOARDING = "onboarding"
    ENGAGED = "engaged"


class PlanStatus(str, Enum):
    """Lifecycle of a 7-day devotional plan."""

    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PlanDayAdvancement(str, Enum):
    """
    Owner of ``currentDay`` increments.

    EXTERNAL leaves the plan untouched after a day message is queued;
    SCHEDULER advances it (or completes the plan after its last day).
    """

    EXTERNAL = "external"
    SCHEDULER = "scheduler"


class PostActionStatus(str, Enum):
    """Outcome of a best-effort step that runs after a message was queued."""

    OK = "ok"
    RECORDED_FAILURE = "recorded_failure"
    NOT_ATTEMPTED = "not_attempted"
