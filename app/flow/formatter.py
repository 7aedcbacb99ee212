"""
app/flow/formatter.py

Purpose: Plan day message text

- Turns one day of pre-authored devotional content into SMS text
- Pure function, no I/O
"""

from typing import Optional

from utils.constants import (
    DEFAULT_PLAN_DAYS,
    PLAN_DAY_HEADER,
    PLAN_DAY_JOURNAL_PROMPT,
    PLAN_DAY_VERSE,
)


def format_daily_devotion_message(
    verse_reference: Optional[str],
    verse_text: Optional[str],
    reflection: Optional[str],
    journal_prompt: Optional[str],
    day_number: int,
    total_days: int = DEFAULT_PLAN_DAYS,
) -> str:
    """
    Formats a daily devotion with its day counter.

    Missing fields render as empty segments.

    Example:
        📖 Day 3 of 7

        "Be still, and know that I am God."
        — Psalm 46:10

        <reflection>

        📝 Journal Prompt: <prompt>
    """
    sections = [
        PLAN_DAY_HEADER.format(day_number=day_number, total_days=total_days),
        PLAN_DAY_VERSE.format(
            verse_text=verse_text or "",
            verse_reference=verse_reference or "",
        ),
        reflection or "",
        PLAN_DAY_JOURNAL_PROMPT.format(journal_prompt=journal_prompt or ""),
    ]
    return "\n\n".join(sections)
