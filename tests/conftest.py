from datetime import datetime, timezone
from typing import Dict, List, Optional, Set, Tuple

import pytest

from app.core.exceptions import StorageError
from app.flow.states import ConversationStage, ConversationState, PlanStatus
from app.models.customer import Customer, CustomerProfile, MessagingState
from app.models.plan import DailyDevotion, DevotionalPlan
from utils.constants import CONVERSATION_ID_PREFIX
from utils.time_utils import is_due

NOW = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)


class FakeStorage:
    """In-memory Storage with switchable failures."""

    def __init__(self):
        self.customers: Dict[str, Customer] = {}
        self.plans: Dict[Tuple[str, str], DevotionalPlan] = {}
        self.conversations: Dict[str, dict] = {}
        self.fail_on: Set[str] = set()
        self.fail_plan_for: Set[str] = set()

    def _maybe_fail(self, operation: str):
        if operation in self.fail_on:
            raise StorageError(f"{operation} unavailable")

    def add_customer(self, customer: Customer) -> Customer:
        self.customers[customer.id] = customer
        return customer

    def add_plan(self, plan: DevotionalPlan) -> DevotionalPlan:
        self.plans[(plan.customer_id, plan.id)] = plan
        return plan

    def plan(self, customer_id: str, plan_id: str) -> DevotionalPlan:
        return self.plans[(customer_id, plan_id)]

    async def get_customer(self, customer_id: str) -> Optional[Customer]:
        self._maybe_fail("get_customer")
        return self.customers.get(customer_id)

    async def find_customers_due_for_plan_message(self, now: datetime, limit: int = 500) -> List[Customer]:
        self._maybe_fail("find_customers_due_for_plan_message")
        due = [
            c for c in self.customers.values()
            if c.active_plan_id
            and c.is_active
            and c.messaging_state is not None
            and is_due(c.messaging_state.next_plan_message_scheduled_for, now)
        ]
        return due[:limit]

    async def find_customers_due_for_recurring_message(self, now: datetime, limit: int = 500) -> List[Customer]:
        self._maybe_fail("find_customers_due_for_recurring_message")
        due = []
        for c in self.customers.values():
            state = c.messaging_state
            if state is None or not state.is_active_conversation:
                continue
            if is_due(state.next_devotional_scheduled_for, now) or is_due(state.next_check_in_scheduled_for, now):
                due.append(c)
        return due[:limit]

    async def get_plan(self, plan_id: str, customer_id: str) -> Optional[DevotionalPlan]:
        self._maybe_fail("get_plan")
        if customer_id in self.fail_plan_for:
            raise StorageError("get_plan unavailable")
        return self.plans.get((customer_id, plan_id))

    async def find_plans_needing_check_in(self, limit: int = 500) -> List[DevotionalPlan]:
        self._maybe_fail("find_plans_needing_check_in")
        plans = [
            p for p in self.plans.values()
            if p.status == PlanStatus.COMPLETED.value and "check_in_sent" not in p.model_fields_set
        ]
        return plans[:limit]

    async def reschedule_plan_message(self, customer_id: str, expected: Optional[datetime], next_time: datetime) -> bool:
        self._maybe_fail("reschedule_plan_message")
        customer = self.customers.get(customer_id)
        if customer is None:
            return False
        state = customer.messaging_state or MessagingState()
        if state.next_plan_message_scheduled_for != expected:
            return False
        state = state.model_copy(update={"next_plan_message_scheduled_for": next_time})
        self.customers[customer_id] = customer.model_copy(update={"messaging_state": state})
        return True

    async def advance_plan_day(self, plan_id: str, customer_id: str, from_day: int) -> bool:
        self._maybe_fail("advance_plan_day")
        plan = self.plans.get((customer_id, plan_id))
        if plan is None or not plan.is_active or plan.current_day != from_day:
            return False
        self.plans[(customer_id, plan_id)] = plan.model_copy(update={"current_day": from_day + 1})
        return True

    async def complete_plan(self, plan_id: str, customer_id: str, last_day: int, completed_at: datetime) -> bool:
        self._maybe_fail("complete_plan")
        plan = self.plans.get((customer_id, plan_id))
        if plan is None or not plan.is_active or plan.current_day != last_day:
            return False
        self.plans[(customer_id, plan_id)] = plan.model_copy(
            update={"status": PlanStatus.COMPLETED.value, "completed_at": completed_at}
        )
        return True

    async def set_onboarding_step(self, customer_id: str, step: str, at: datetime) -> bool:
        self._maybe_fail("set_onboarding_step")
        customer = self.customers.get(customer_id)
        if customer is None:
            return False
        self.customers[customer_id] = customer.model_copy(
            update={"onboarding_step": step, "onboarding_step_updated_at": at}
        )
        return True

    async def initialize_conversation_state(self, customer_id: str, phone: str, at: datetime) -> None:
        self._maybe_fail("initialize_conversation_state")
        record = self.conversations.setdefault(
            customer_id,
            {
                "id": f"{CONVERSATION_ID_PREFIX}{customer_id}",
                "customerId": customer_id,
                "state": ConversationState.AWAITING_LIFE_SEASON.value,
                "currentStage": ConversationStage.ONBOARDING.value,
                "createdAt": at,
            },
        )
        record.update({"phoneNumber": phone, "updatedAt": at})


class FakeQueue:
    """Collects enqueued commands; fails for selected message types."""

    def __init__(self):
        self.commands = []
        self.fail_types: Set[str] = set()
        self.fail_all = False

    async def enqueue(self, command):
        if self.fail_all or command.message_type in self.fail_types:
            raise RuntimeError("queue unavailable")
        self.commands.append(command)

    def of_type(self, message_type: str):
        return [c for c in self.commands if c.message_type == message_type]


def make_days(count: int = 7) -> List[DailyDevotion]:
    return [
        DailyDevotion(
            day_number=n,
            verse_reference=f"Psalm 23:{n}",
            verse_text=f"Verse text {n}",
            reflection=f"Reflection {n}",
            journal_prompt=f"Prompt {n}",
        )
        for n in range(1, count + 1)
    ]


def make_plan(
    customer_id: str = "c1",
    plan_id: str = "p1",
    current_day: Optional[int] = 1,
    status: str = PlanStatus.ACTIVE.value,
    days: Optional[List[DailyDevotion]] = None,
    check_in_sent: Optional[bool] = None,
    **fields,
) -> DevotionalPlan:
    if check_in_sent is not None:
        fields["check_in_sent"] = check_in_sent
    return DevotionalPlan(
        id=plan_id,
        customer_id=customer_id,
        plan_number=1,
        status=status,
        current_day=current_day,
        days=make_days() if days is None else days,
        **fields,
    )


def make_customer(
    customer_id: str = "c1",
    phone: str = "+15551234567",
    active_plan_id: Optional[str] = "p1",
    first_name: Optional[str] = None,
    status: str = "active",
    **state,
) -> Customer:
    state.setdefault("conversation_state", ConversationState.ACTIVE.value)
    return Customer(
        id=customer_id,
        phone=phone,
        status=status,
        active_plan_id=active_plan_id,
        profile=CustomerProfile(first_name=first_name),
        messaging_state=MessagingState(**state),
    )


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def queue():
    return FakeQueue()
