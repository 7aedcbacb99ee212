"""
app/models/plan.py

Purpose: Devotional plan document model

- Fixed sequence of daily devotions (7 for a standard plan)
- 1-based currentDay pointer
- checkInSent flag, set only by the message sender after delivery
"""

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.flow.states import PlanStatus
from app.models.base import DocumentModel


class DailyDevotion(DocumentModel):
    """Pre-authored content for one plan day."""

    day_number: Optional[int] = None
    verse_reference: Optional[str] = None
    verse_text: Optional[str] = None
    reflection: Optional[str] = None
    journal_prompt: Optional[str] = None
    sent_at: Optional[datetime] = None
    status: Optional[str] = None


class DevotionalPlan(DocumentModel):
    id: str
    customer_id: str
    plan_number: Optional[int] = None
    status: Optional[str] = None
    current_day: Optional[int] = None
    days: List[DailyDevotion] = Field(default_factory=list)
    check_in_sent: Optional[bool] = None
    life_season: Optional[str] = None
    themes: List[str] = Field(default_factory=list)
    timezone: Optional[str] = None
    preferred_time_of_day: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == PlanStatus.ACTIVE.value

    @property
    def has_valid_current_day(self) -> bool:
        """True when currentDay points inside ``days``."""
        if self.current_day is None or not self.days:
            return False
        return 1 <= self.current_day <= len(self.days)

    @property
    def is_last_day(self) -> bool:
        return self.current_day is not None and self.current_day >= len(self.days)
