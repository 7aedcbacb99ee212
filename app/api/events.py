"""
app/api/events.py

Purpose: Transport endpoints

- Receives lifecycle event envelopes (CustomerRegistered, SubscriptionActivated)
- Returns 5xx on processing failures so the publisher redelivers
- Manual trigger for one scheduler tick
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends

from app.api.deps import get_queue, get_storage
from app.core.logging import get_logger
from app.flow.dispatcher import dispatch_event
from app.flow.scheduler import run_scheduler_tick
from app.services.message_queue import MessageQueue
from app.services.storage import Storage

logger = get_logger(__name__)
router = APIRouter()


@router.post("/events")
async def receive_event(
    payload: Dict[str, Any] = Body(...),
    storage: Storage = Depends(get_storage),
    queue: MessageQueue = Depends(get_queue),
):
    """
    Lifecycle event endpoint.

    Malformed-but-readable events are acknowledged as skipped; handler
    failures propagate as EventProcessingError (HTTP 500).
    """
    return await dispatch_event(payload, storage, queue)


@router.post("/scheduler/run")
async def run_scheduler(
    storage: Storage = Depends(get_storage),
    queue: MessageQueue = Depends(get_queue),
):
    """
    Runs one scheduler tick immediately and reports what it queued.
    """
    logger.info("Manual scheduler tick requested")
    summary = await run_scheduler_tick(storage, queue)
    return summary.as_dict()
