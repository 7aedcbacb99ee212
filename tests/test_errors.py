from fastapi.testclient import TestClient
import pytest

from app.api.deps import get_queue, get_storage
from app.main import app
from tests.conftest import FakeQueue, FakeStorage

client = TestClient(app)


@pytest.fixture
def fakes():
    storage, queue = FakeStorage(), FakeQueue()
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_queue] = lambda: queue
    yield storage, queue
    app.dependency_overrides.clear()


def _registered(event_id="evt-1", **data):
    data.setdefault("customerId", "c1")
    data.setdefault("phone", "+15551234567")
    return {"eventId": event_id, "eventType": "CustomerRegistered", "data": data}


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "service": "wis-conversation-orchestrator"}


def test_event_processed(fakes):
    storage, queue = fakes

    response = client.post("/api/v1/events", json=_registered())

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "processed"
    assert data["eventId"] == "evt-1"
    assert data["messageId"] == queue.commands[0].message_id


def test_incomplete_event_is_acknowledged(fakes):
    response = client.post("/api/v1/events", json=_registered(phone=None))

    assert response.status_code == 200
    assert response.json()["status"] == "skipped"


def test_unknown_event_type_is_ignored(fakes):
    _, queue = fakes

    response = client.post("/api/v1/events", json={"eventId": "evt-3", "eventType": "PlanCreated"})

    assert response.status_code == 200
    assert response.json() == {"status": "ignored", "eventId": "evt-3"}
    assert queue.commands == []


def test_processing_failure_returns_500(fakes):
    _, queue = fakes
    queue.fail_all = True

    response = client.post("/api/v1/events", json=_registered())

    assert response.status_code == 500
    assert response.json()["code"] == "EVENT_PROCESSING_FAILED"


def test_unreadable_envelope_returns_400(fakes):
    response = client.post("/api/v1/events", json={"eventId": "evt-4", "eventTime": "not-a-date"})

    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "INVALID_EVENT"
    assert data["details"][0]["loc"] == ["eventTime"]


def test_non_object_body_is_a_validation_error(fakes):
    response = client.post("/api/v1/events", json=["not", "an", "event"])

    assert response.status_code == 422
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert len(data["details"]) > 0


def test_manual_scheduler_tick(fakes):
    response = client.post("/api/v1/scheduler/run")

    assert response.status_code == 200
    data = response.json()
    assert data["emitted"] == 0
    assert data["errors"] == {}
    assert set(data["batches"]) == {"plan_messages", "recurring_messages", "plan_completions"}


def test_404_not_found():
    response = client.get("/non-existent-route")
    assert response.status_code == 404
    data = response.json()
    assert "error" in data
    assert data["code"] == "HTTP_ERROR"


def test_custom_exception():
    from app.core.exceptions import StorageError

    @app.get("/test-custom-error")
    def trigger_custom_error():
        raise StorageError(message="Customer store unavailable")

    response = client.get("/test-custom-error")
    assert response.status_code == 503
    data = response.json()
    assert data["code"] == "STORAGE_ERROR"
    assert data["error"] == "Customer store unavailable"
