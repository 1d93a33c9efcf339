"""
Modèles Pydantic des abonnements, limites et usages
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Plan(str, Enum):
    basic = "basic"
    premium = "premium"
    pro = "pro"


class SubscriptionStatus(str, Enum):
    active = "active"
    canceled = "canceled"
    past_due = "past_due"
    incomplete = "incomplete"
    trialing = "trialing"


class ResourceType(str, Enum):
    course = "course"
    exercise = "exercise"
    fiche = "fiche"
    ai_minutes = "ai_minutes"


class AddonPack(str, Enum):
    """Packs de minutes IA (paiement unique, sans expiration)"""
    ai_10min = "ai_10min"
    ai_30min = "ai_30min"
    ai_60min = "ai_60min"

    @property
    def minutes(self) -> int:
        return ADDON_PACK_MINUTES[self]


ADDON_PACK_MINUTES: dict[AddonPack, int] = {
    AddonPack.ai_10min: 10,
    AddonPack.ai_30min: 30,
    AddonPack.ai_60min: 60,
}


class Subscription(BaseModel):
    """Ligne user_subscriptions"""

    model_config = ConfigDict(extra="ignore")

    user_id: str
    plan: Plan = Plan.basic
    status: SubscriptionStatus = SubscriptionStatus.active
    current_period_start: datetime | None = None
    current_period_end: datetime | None = None
    cancel_at_period_end: bool = False
    canceled_at: datetime | None = None
    ai_minutes_purchased: int = Field(0, ge=0)
    stripe_subscription_id: str | None = None
    stripe_customer_id: str | None = None
    is_organization_member: bool = False

    @field_validator("ai_minutes_purchased", mode="before")
    @classmethod
    def _null_minutes(cls, value):
        return 0 if value is None else value

    @field_validator("cancel_at_period_end", mode="before")
    @classmethod
    def _null_flag(cls, value):
        return False if value is None else value

    @property
    def is_paid(self) -> bool:
        return self.stripe_subscription_id is not None


class UsageCounters(BaseModel):
    """Compteurs du mois de facturation courant"""

    model_config = ConfigDict(extra="ignore")

    courses_created: int = Field(0, ge=0)
    exercises_created: int = Field(0, ge=0)
    fiches_created: int = Field(0, ge=0)
    ai_minutes_used: float = Field(0.0, ge=0)

    @field_validator("courses_created", "exercises_created", "fiches_created", "ai_minutes_used", mode="before")
    @classmethod
    def _null_counter(cls, value):
        return 0 if value is None else value

    def used(self, resource: ResourceType) -> float:
        return getattr(self, USAGE_FIELDS[resource])


USAGE_FIELDS: dict[ResourceType, str] = {
    ResourceType.course: "courses_created",
    ResourceType.exercise: "exercises_created",
    ResourceType.fiche: "fiches_created",
    ResourceType.ai_minutes: "ai_minutes_used",
}


class PlanLimits(BaseModel):
    courses: int
    exercises: int
    fiches: int
    ai_minutes: int
    max_days_per_course: int
    is_unlimited: bool = False

    def limit(self, resource: ResourceType) -> int:
        return getattr(self, LIMIT_FIELDS[resource])


LIMIT_FIELDS: dict[ResourceType, str] = {
    ResourceType.course: "courses",
    ResourceType.exercise: "exercises",
    ResourceType.fiche: "fiches",
    ResourceType.ai_minutes: "ai_minutes",
}

# ai_minutes : allocation mensuelle seulement, les minutes achetées sont comptées à part
PLAN_LIMITS: dict[Plan, PlanLimits] = {
    Plan.basic: PlanLimits(courses=2, exercises=2, fiches=2, ai_minutes=3, max_days_per_course=10),
    Plan.premium: PlanLimits(courses=10, exercises=10, fiches=10, ai_minutes=0, max_days_per_course=10),
    Plan.pro: PlanLimits(courses=30, exercises=30, fiches=30, ai_minutes=0, max_days_per_course=10),
}

ORGANIZATION_LIMITS = PlanLimits(
    courses=999999,
    exercises=999999,
    fiches=999999,
    ai_minutes=999999,
    max_days_per_course=999999,
    is_unlimited=True,
)


def limits_for(subscription: Subscription) -> PlanLimits:
    if subscription.is_organization_member:
        return ORGANIZATION_LIMITS
    return PLAN_LIMITS[subscription.plan]


class LimitCheck(BaseModel):
    """Réponse de la barrière de quotas pour une ressource"""

    resource: ResourceType
    allowed: bool
    current: float
    limit: int
    remaining: float
    percentage: float
    purchased_remaining: float | None = None
    is_unlimited: bool = False
    message: str | None = None


class PlanChangeType(str, Enum):
    checkout = "checkout"
    upgrade = "upgrade"
    downgrade = "downgrade"
    change = "change"
    unchanged = "unchanged"


class PlanChangeResult(BaseModel):
    checkout_required: bool
    redirect_url: str | None = None
    session_id: str | None = None
    change_type: PlanChangeType


class SubscriptionState(BaseModel):
    """Vue cohérente : abonnement, compteurs du mois et limites dérivées"""

    subscription: Subscription
    usage: UsageCounters
    limits: PlanLimits

    def remaining(self) -> dict[str, float]:
        return {
            resource.value: max(0, self.limits.limit(resource) - self.usage.used(resource))
            for resource in ResourceType
        }


class PlanChangeRequest(BaseModel):
    plan: Plan = Field(..., description="Plan cible")


class UsageRecordRequest(BaseModel):
    amount: float = Field(1, gt=0, description="Quantité consommée")
