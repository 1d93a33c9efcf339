#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Transitions de plan (fonctions pures)

Calcule la commande à envoyer au système de facturation à partir de l'état
courant, sans effectuer d'appel. L'exécution est faite par SubscriptionStateTracker.

    basic --upgrade--> premium/pro                         (checkout)
    premium/pro --changement payant--> autre plan payant   (prorata immédiat)
    premium/pro --vers basic--> annulation en fin de période
    premium/pro --cancel--> cancel_at_period_end=True
    premium/pro (annulation prévue) --reactivate--> cancel_at_period_end=False
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel

from edu_app.config import settings
from edu_app.models.subscription import AddonPack, Plan, PlanChangeType, Subscription
from edu_app.utils.errors import NoActiveSubscriptionError, PaymentInitError


# Prix mensuel en centimes, sert à distinguer montée et descente de gamme
PLAN_PRICE_CENTS = {
    Plan.basic: 0,
    Plan.premium: 990,
    Plan.pro: 1990,
}


class TransitionKind(str, Enum):
    checkout = "checkout"
    change_price = "change_price"
    cancel = "cancel"
    reactivate = "reactivate"
    noop = "noop"


class Transition(BaseModel):
    kind: TransitionKind
    change_type: PlanChangeType = PlanChangeType.unchanged
    price_id: str | None = None
    subscription_id: str | None = None


def plan_price_id(plan: Plan) -> str:
    if plan == Plan.premium:
        return settings.STRIPE_PRICE_PREMIUM
    if plan == Plan.pro:
        return settings.STRIPE_PRICE_PRO
    raise PaymentInitError("Le plan Basique est gratuit et ne se souscrit pas")


def addon_price_id(pack: AddonPack) -> str:
    return {
        AddonPack.ai_10min: settings.STRIPE_PRICE_AI_10MIN,
        AddonPack.ai_30min: settings.STRIPE_PRICE_AI_30MIN,
        AddonPack.ai_60min: settings.STRIPE_PRICE_AI_60MIN,
    }[pack]


def plan_change_transition(subscription: Subscription, target: Plan) -> Transition:
    if subscription.is_organization_member:
        raise PaymentInitError(
            "Vous êtes membre d'une organisation et bénéficiez déjà d'un abonnement. "
            "Vous ne pouvez pas souscrire à un plan individuel."
        )

    if target == subscription.plan:
        return Transition(kind=TransitionKind.noop)

    if not subscription.is_paid:
        # basic (aucun abonnement Stripe) : passage obligatoire par le checkout
        return Transition(
            kind=TransitionKind.checkout,
            change_type=PlanChangeType.checkout,
            price_id=plan_price_id(target),
        )

    if target == Plan.basic:
        transition = cancel_transition(subscription)
        return transition.model_copy(update={"change_type": PlanChangeType.downgrade})

    current_cents = PLAN_PRICE_CENTS[subscription.plan]
    target_cents = PLAN_PRICE_CENTS[target]
    if target_cents > current_cents:
        change_type = PlanChangeType.upgrade
    elif target_cents < current_cents:
        change_type = PlanChangeType.downgrade
    else:
        change_type = PlanChangeType.change

    return Transition(
        kind=TransitionKind.change_price,
        change_type=change_type,
        price_id=plan_price_id(target),
        subscription_id=subscription.stripe_subscription_id,
    )


def cancel_transition(subscription: Subscription) -> Transition:
    if not subscription.is_paid:
        raise NoActiveSubscriptionError()
    if subscription.cancel_at_period_end:
        return Transition(kind=TransitionKind.noop)
    return Transition(kind=TransitionKind.cancel, subscription_id=subscription.stripe_subscription_id)


def reactivate_transition(subscription: Subscription) -> Transition:
    if not subscription.is_paid:
        raise NoActiveSubscriptionError("Aucun abonnement à réactiver")
    if not subscription.cancel_at_period_end:
        return Transition(kind=TransitionKind.noop)
    return Transition(kind=TransitionKind.reactivate, subscription_id=subscription.stripe_subscription_id)


def invariant_violations(subscription: Subscription) -> list[str]:
    """Incohérences entre plan, référence Stripe et annulation prévue"""
    violations = []
    if (subscription.plan == Plan.basic) != (subscription.stripe_subscription_id is None):
        violations.append("plan basic <=> stripe_subscription_id absent")
    if subscription.cancel_at_period_end:
        if subscription.plan == Plan.basic:
            violations.append("cancel_at_period_end sur un plan basic")
        if subscription.current_period_end is None:
            violations.append("cancel_at_period_end sans current_period_end")
    return violations
