"""
app/services/storage.py

Purpose: Customer and plan persistence

- Storage interface injected into every handler and evaluator
- MongoDB implementation on the process-wide Motor client
- Due-queries used by the scheduler
- Conditional (compare-and-set) schedule and plan-day updates
"""

import functools
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Type, TypeVar

from pydantic import ValidationError
from pymongo.errors import PyMongoError

from app.core.config import settings
from app.core.exceptions import StorageError
from app.core.logging import get_logger
from app.db import mongo
from app.flow.states import ConversationState, ConversationStage, CustomerStatus, PlanStatus
from app.models.base import DocumentModel
from app.models.customer import Customer
from app.models.plan import DevotionalPlan
from utils.constants import CONVERSATION_ID_PREFIX

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=DocumentModel)


class Storage(Protocol):
    """Operations the orchestrator needs from the document store."""

    async def get_customer(self, customer_id: str) -> Optional[Customer]: ...

    async def find_customers_due_for_plan_message(self, now: datetime, limit: int = 500) -> List[Customer]: ...

    async def find_customers_due_for_recurring_message(self, now: datetime, limit: int = 500) -> List[Customer]: ...

    async def get_plan(self, plan_id: str, customer_id: str) -> Optional[DevotionalPlan]: ...

    async def find_plans_needing_check_in(self, limit: int = 500) -> List[DevotionalPlan]: ...

    async def reschedule_plan_message(
        self, customer_id: str, expected: Optional[datetime], next_time: datetime
    ) -> bool: ...

    async def advance_plan_day(self, plan_id: str, customer_id: str, from_day: int) -> bool: ...

    async def complete_plan(self, plan_id: str, customer_id: str, last_day: int, completed_at: datetime) -> bool: ...

    async def set_onboarding_step(self, customer_id: str, step: str, at: datetime) -> bool: ...

    async def initialize_conversation_state(self, customer_id: str, phone: str, at: datetime) -> None: ...


def _storage_call(func):
    """Wraps driver errors into StorageError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            raise StorageError(f"{func.__name__} failed: {e}") from e

    return wrapper


def _parse(model: Type[ModelT], document: Optional[Dict[str, Any]]) -> Optional[ModelT]:
    if document is None:
        return None
    return model.model_validate(document)


def _parse_candidates(model: Type[ModelT], documents: List[Dict[str, Any]]) -> List[ModelT]:
    """
    Parses a candidate batch. Malformed documents are logged and left out
    so they never abort the rest of the batch.
    """
    parsed = []
    for document in documents:
        try:
            parsed.append(model.model_validate(document))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed {model.__name__} document {document.get('id')}: "
                f"{e.error_count()} validation error(s)"
            )
    return parsed


class MongoStorage:
    """
    Storage backed by MongoDB collections.

    Customers are addressed by ``id``; plans by ``(id, customerId)``.
    """

    def __init__(self, database=None):
        self._database = database

    @property
    def database(self):
        return self._database if self._database is not None else mongo.get_database()

    @property
    def customers(self):
        return self.database[settings.CUSTOMERS_COLLECTION]

    @property
    def plans(self):
        return self.database[settings.PLANS_COLLECTION]

    @property
    def conversations(self):
        return self.database[settings.CONVERSATIONS_COLLECTION]

    @_storage_call
    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        document = await self.customers.find_one({"id": customer_id})
        return _parse(Customer, document)

    @_storage_call
    async def find_customers_due_for_plan_message(self, now: datetime, limit: int = 500) -> List[Customer]:
        cursor = self.customers.find(
            {
                "activePlanId": {"$nin": [None, ""]},
                "messagingState.nextPlanMessageScheduledFor": {"$lte": now},
                "status": CustomerStatus.ACTIVE.value,
            }
        ).sort("messagingState.nextPlanMessageScheduledFor", 1).limit(limit)
        return _parse_candidates(Customer, await cursor.to_list(length=limit))

    @_storage_call
    async def find_customers_due_for_recurring_message(self, now: datetime, limit: int = 500) -> List[Customer]:
        cursor = self.customers.find(
            {
                "$or": [
                    {"messagingState.nextDevotionalScheduledFor": {"$lte": now}},
                    {"messagingState.nextCheckInScheduledFor": {"$lte": now}},
                ],
                "messagingState.conversationState": ConversationState.ACTIVE.value,
            }
        ).limit(limit)
        return _parse_candidates(Customer, await cursor.to_list(length=limit))

    @_storage_call
    async def get_plan(self, plan_id: str, customer_id: str) -> Optional[DevotionalPlan]:
        document = await self.plans.find_one({"id": plan_id, "customerId": customer_id})
        return _parse(DevotionalPlan, document)

    @_storage_call
    async def find_plans_needing_check_in(self, limit: int = 500) -> List[DevotionalPlan]:
        cursor = self.plans.find(
            {
                "status": PlanStatus.COMPLETED.value,
                "checkInSent": {"$exists": False},
            }
        ).limit(limit)
        return _parse_candidates(DevotionalPlan, await cursor.to_list(length=limit))

    @_storage_call
    async def reschedule_plan_message(
        self, customer_id: str, expected: Optional[datetime], next_time: datetime
    ) -> bool:
        """
        Sets nextPlanMessageScheduledFor only if it still holds ``expected``.

        Returns False when the customer is gone or another writer already
        moved the schedule.
        """
        result = await self.customers.update_one(
            {
                "id": customer_id,
                "messagingState.nextPlanMessageScheduledFor": expected,
            },
            {"$set": {"messagingState.nextPlanMessageScheduledFor": next_time}},
        )
        return result.matched_count > 0

    @_storage_call
    async def advance_plan_day(self, plan_id: str, customer_id: str, from_day: int) -> bool:
        result = await self.plans.update_one(
            {
                "id": plan_id,
                "customerId": customer_id,
                "status": PlanStatus.ACTIVE.value,
                "currentDay": from_day,
            },
            {"$inc": {"currentDay": 1}},
        )
        return result.matched_count > 0

    @_storage_call
    async def complete_plan(self, plan_id: str, customer_id: str, last_day: int, completed_at: datetime) -> bool:
        result = await self.plans.update_one(
            {
                "id": plan_id,
                "customerId": customer_id,
                "status": PlanStatus.ACTIVE.value,
                "currentDay": last_day,
            },
            {"$set": {"status": PlanStatus.COMPLETED.value, "completedAt": completed_at}},
        )
        return result.matched_count > 0

    @_storage_call
    async def set_onboarding_step(self, customer_id: str, step: str, at: datetime) -> bool:
        result = await self.customers.update_one(
            {"id": customer_id},
            {"$set": {"onboardingStep": step, "onboardingStepUpdatedAt": at}},
        )
        return result.matched_count > 0

    @_storage_call
    async def initialize_conversation_state(self, customer_id: str, phone: str, at: datetime) -> None:
        """
        Upserts the conversation record for a customer.
        Insert-only fields are written once; re-runs only refresh the phone.
        """
        await self.conversations.update_one(
            {"customerId": customer_id},
            {
                "$setOnInsert": {
                    "id": f"{CONVERSATION_ID_PREFIX}{customer_id}",
                    "customerId": customer_id,
                    "state": ConversationState.AWAITING_LIFE_SEASON.value,
                    "currentStage": ConversationStage.ONBOARDING.value,
                    "createdAt": at,
                },
                "$set": {"phoneNumber": phone, "updatedAt": at},
            },
            upsert=True,
        )
