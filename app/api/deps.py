"""
app/api/deps.py

Purpose: Request dependencies

- Hands the storage and queue built at startup to route handlers
- Overridable in tests via app.dependency_overrides
"""

from fastapi import Request

from app.services.message_queue import MessageQueue
from app.services.storage import Storage


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def get_queue(request: Request) -> MessageQueue:
    return request.app.state.queue
