"""
Doublures en mémoire du store Supabase et des fonctions Edge de facturation
"""
from datetime import datetime, timedelta, timezone

import pytest

from edu_app.config import settings
from edu_app.models.subscription import (
    AddonPack,
    Plan,
    ResourceType,
    Subscription,
    SubscriptionStatus,
    USAGE_FIELDS,
    UsageCounters,
)
from edu_app.services.subscription_service import SubscriptionStateTracker
from edu_app.utils.errors import FetchError, UsageRecordError

USER_ID = "987c5515-b439-43f0-a178-3c49ca154bb1"
PERIOD_END = datetime(2026, 11, 17, tzinfo=timezone.utc)


class FakeStore:
    def __init__(self, subscription: Subscription, usage: UsageCounters | None = None):
        self.subscription = subscription
        self.usage = usage or UsageCounters()
        self.fail = False
        self.reads = 0

    async def get_subscription(self, user_id):
        self.reads += 1
        if self.fail:
            raise FetchError()
        return self.subscription.model_copy()

    async def get_usage(self, user_id):
        if self.fail:
            raise FetchError()
        return self.usage.model_copy()

    async def increment_usage(self, user_id, resource: ResourceType, amount=1):
        if self.fail:
            raise UsageRecordError()
        field = USAGE_FIELDS[resource]
        self.usage = self.usage.model_copy(update={field: getattr(self.usage, field) + amount})


PRICE_TO_PLAN = {
    settings.STRIPE_PRICE_PREMIUM: Plan.premium,
    settings.STRIPE_PRICE_PRO: Plan.pro,
}

PRICE_TO_MINUTES = {
    settings.STRIPE_PRICE_AI_10MIN: AddonPack.ai_10min.minutes,
    settings.STRIPE_PRICE_AI_30MIN: AddonPack.ai_30min.minutes,
    settings.STRIPE_PRICE_AI_60MIN: AddonPack.ai_60min.minutes,
}


class FakeBilling:
    """Se comporte comme les fonctions Edge : écrit directement dans le store"""

    def __init__(self, store: FakeStore):
        self.store = store
        self.calls = []
        self.error: Exception | None = None
        self.pending_payments = []

    def _record(self, name, *args):
        self.calls.append((name, *args))
        if self.error is not None:
            raise self.error

    async def create_checkout_session(self, access_token, price_id, mode, success_url, cancel_url):
        self._record("checkout", price_id, mode)
        sub = self.store.subscription
        if mode == "subscription" and sub.stripe_subscription_id:
            self.store.subscription = sub.model_copy(update={"plan": PRICE_TO_PLAN[price_id]})
            return {"success": True, "changeType": "change", "subscriptionId": sub.stripe_subscription_id}
        session_id = f"cs_test_{len(self.calls)}"
        self.pending_payments.append(price_id)
        return {"checkoutUrl": f"https://checkout.stripe.com/c/pay/{session_id}", "sessionId": session_id}

    async def cancel_subscription(self, access_token, subscription_id):
        self._record("cancel", subscription_id)
        self.store.subscription = self.store.subscription.model_copy(update={"cancel_at_period_end": True})

    async def reactivate_subscription(self, access_token, subscription_id):
        self._record("reactivate", subscription_id)
        self.store.subscription = self.store.subscription.model_copy(
            update={"cancel_at_period_end": False, "canceled_at": None}
        )

    def complete_pending_payments(self):
        """Simule le webhook checkout.session.completed"""
        for price_id in self.pending_payments:
            sub = self.store.subscription
            if price_id in PRICE_TO_MINUTES:
                self.store.subscription = sub.model_copy(
                    update={"ai_minutes_purchased": sub.ai_minutes_purchased + PRICE_TO_MINUTES[price_id]}
                )
            else:
                self.store.subscription = sub.model_copy(update={
                    "plan": PRICE_TO_PLAN[price_id],
                    "stripe_subscription_id": "sub_test_new",
                    "current_period_end": PERIOD_END,
                })
        self.pending_payments = []


def basic_subscription(**overrides) -> Subscription:
    data = {"user_id": USER_ID, "plan": Plan.basic, "status": SubscriptionStatus.active, "current_period_end": PERIOD_END}
    data.update(overrides)
    return Subscription(**data)


def premium_subscription(**overrides) -> Subscription:
    data = {
        "user_id": USER_ID,
        "plan": Plan.premium,
        "status": SubscriptionStatus.active,
        "current_period_start": PERIOD_END - timedelta(days=30),
        "current_period_end": PERIOD_END,
        "stripe_subscription_id": "sub_test_456",
        "stripe_customer_id": "cus_test_123",
    }
    data.update(overrides)
    return Subscription(**data)


@pytest.fixture
def make_tracker():
    def _make(subscription: Subscription, usage: UsageCounters | None = None):
        store = FakeStore(subscription, usage)
        billing = FakeBilling(store)
        tracker = SubscriptionStateTracker(USER_ID, "test-token", store, billing, in_flight=set())
        return tracker, store, billing

    return _make
