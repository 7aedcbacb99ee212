"""
app/flow/outcomes.py

Purpose: Results reported by handlers and evaluators

- PostActionResult for best-effort steps after a message was queued
- BatchResult per evaluator run, TickSummary per scheduler tick
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from app.flow.states import PostActionStatus


@dataclass
class PostActionResult:
    """
    Outcome of a step that must never undo or repeat an already queued
    message (schedule persistence, plan-day advancement).
    """
    status: PostActionStatus
    reason: Optional[str] = None

    @classmethod
    def ok(cls) -> "PostActionResult":
        return cls(status=PostActionStatus.OK)

    @classmethod
    def recorded_failure(cls, reason: str) -> "PostActionResult":
        return cls(status=PostActionStatus.RECORDED_FAILURE, reason=reason)

    @classmethod
    def not_attempted(cls, reason: Optional[str] = None) -> "PostActionResult":
        return cls(status=PostActionStatus.NOT_ATTEMPTED, reason=reason)

    @property
    def succeeded(self) -> bool:
        return self.status == PostActionStatus.OK


@dataclass
class BatchResult:
    """Counters for one evaluator pass over its candidates."""
    name: str
    processed: int = 0
    emitted: int = 0
    skipped: int = 0
    failed: int = 0
    message_ids: List[str] = field(default_factory=list)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "emitted": self.emitted,
            "skipped": self.skipped,
            "failed": self.failed,
        }


@dataclass
class TickSummary:
    batches: List[BatchResult] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def emitted(self) -> int:
        return sum(batch.emitted for batch in self.batches)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "emitted": self.emitted,
            "batches": {batch.name: batch.as_dict() for batch in self.batches},
            "errors": self.errors,
        }
