"""
Routes /api/subscription : conversion des erreurs et réponses
"""
import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient

from conftest import basic_subscription, premium_subscription
from edu_app.dependencies.quota_utils import get_tracker, require_resource_quota
from edu_app.models.subscription import ResourceType, UsageCounters
from main_fastapi import app


@pytest.fixture
def client_for(make_tracker):
    def _client(subscription, usage=None):
        tracker, store, billing = make_tracker(subscription, usage)
        app.dependency_overrides[get_tracker] = lambda: tracker
        return TestClient(app), store, billing

    yield _client
    app.dependency_overrides.clear()


def test_me_returns_state(client_for):
    client, _, _ = client_for(premium_subscription(), UsageCounters(fiches_created=3))
    response = client.get("/api/subscription/me")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["subscription"]["plan"] == "premium"
    assert data["remaining"]["fiche"] == 7


def test_me_fetch_error_is_503(client_for):
    client, store, _ = client_for(basic_subscription())
    store.fail = True
    response = client.get("/api/subscription/me")

    assert response.status_code == 503
    assert response.json()["detail"]["error_code"] == "FETCH_FAILED"


def test_limit_for_resource(client_for):
    client, _, _ = client_for(premium_subscription(), UsageCounters(courses_created=10))
    response = client.get("/api/subscription/limits/course")

    data = response.json()["data"]
    assert data["allowed"] is False
    assert data["remaining"] == 0
    assert data["message"]


def test_all_limits(client_for):
    client, _, _ = client_for(basic_subscription())
    data = client.get("/api/subscription/limits").json()["data"]
    assert set(data) == {"course", "exercise", "fiche", "ai_minutes"}


def test_unknown_resource_rejected(client_for):
    client, _, _ = client_for(basic_subscription())
    assert client.get("/api/subscription/limits/video").status_code == 422


def test_change_plan_from_basic_redirects(client_for):
    client, _, _ = client_for(basic_subscription())
    response = client.post("/api/subscription/change-plan", json={"plan": "premium"})

    data = response.json()["data"]
    assert response.status_code == 200
    assert data["checkout_required"] is True
    assert data["redirect_url"].startswith("https://checkout.stripe.com/")


def test_change_plan_in_place_returns_refreshed_state(client_for):
    client, _, _ = client_for(premium_subscription())
    data = client.post("/api/subscription/change-plan", json={"plan": "pro"}).json()["data"]

    assert data["checkout_required"] is False
    assert data["state"]["subscription"]["plan"] == "pro"


def test_change_plan_payment_error(client_for):
    client, _, billing = client_for(basic_subscription())
    billing.error = RuntimeError("auth expired")
    response = client.post("/api/subscription/change-plan", json={"plan": "pro"})

    assert response.status_code == 400
    assert response.json()["detail"]["error_code"] == "PAYMENT_INIT_FAILED"


def test_cancel_then_reactivate(client_for):
    client, _, _ = client_for(premium_subscription())

    data = client.post("/api/subscription/cancel").json()["data"]
    assert data["subscription"]["cancel_at_period_end"] is True

    data = client.post("/api/subscription/reactivate").json()["data"]
    assert data["subscription"]["cancel_at_period_end"] is False


def test_reactivate_basic_is_conflict(client_for):
    client, _, _ = client_for(basic_subscription())
    response = client.post("/api/subscription/reactivate")

    assert response.status_code == 409
    assert response.json()["detail"]["error_code"] == "NO_ACTIVE_SUBSCRIPTION"


def test_purchase_addon(client_for):
    client, _, _ = client_for(premium_subscription())
    data = client.post("/api/subscription/addons/ai_30min").json()["data"]
    assert data["minutes"] == 30
    assert data["redirect_url"]


def test_record_usage(client_for):
    client, store, _ = client_for(basic_subscription())
    response = client.post("/api/subscription/usage/ai_minutes", json={"amount": 1.5})

    assert response.status_code == 200
    assert store.usage.ai_minutes_used == 1.5
    assert response.json()["data"]["current"] == 1.5


def test_record_usage_refused_at_limit(client_for):
    client, store, _ = client_for(basic_subscription(), UsageCounters(courses_created=2))
    response = client.post("/api/subscription/usage/course")

    assert response.status_code == 429
    detail = response.json()["detail"]
    assert detail["error_code"] == "QUOTA_EXCEEDED"
    assert detail["quota_info"] == {"resource": "course", "current": 2, "limit": 2, "remaining": 0}
    assert store.usage.courses_created == 2


def test_record_usage_fractional_remaining(client_for):
    client, _, _ = client_for(basic_subscription(), UsageCounters(ai_minutes_used=1))
    response = client.post("/api/subscription/usage/ai_minutes", json={"amount": 1.5})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["remaining"] == 0.5
    assert data["allowed"] is True


def test_require_resource_quota(make_tracker):
    tracker, _, _ = make_tracker(basic_subscription(), UsageCounters(courses_created=2, exercises_created=1))
    quota_app = FastAPI()
    quota_app.dependency_overrides[get_tracker] = lambda: tracker

    @quota_app.post("/courses")
    async def create_course(check=Depends(require_resource_quota(ResourceType.course))):
        return {"remaining": check.remaining}

    @quota_app.post("/exercises")
    async def create_exercise(check=Depends(require_resource_quota(ResourceType.exercise))):
        return {"remaining": check.remaining}

    client = TestClient(quota_app)

    denied = client.post("/courses")
    assert denied.status_code == 429
    detail = denied.json()["detail"]
    assert detail["error_code"] == "QUOTA_EXCEEDED"
    assert detail["recommended_plan"] == "premium"
    assert detail["quota_info"]["remaining"] == 0

    allowed = client.post("/exercises")
    assert allowed.status_code == 200
    assert allowed.json() == {"remaining": 1}
