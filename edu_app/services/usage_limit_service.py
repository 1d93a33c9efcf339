#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Barrière de quotas mensuels (calcul pur, aucun appel réseau)

Répond à « l'utilisateur peut-il consommer une unité de plus de la ressource X ? »
à partir de compteurs déjà chargés, et produit le texte affiché quand la limite
est atteinte.

Minutes IA : l'allocation mensuelle est consommée d'abord, puis les minutes achetées.
`ai_minutes_purchased` est le total acheté (jamais remis à zéro) ; le solde en
découle : total acheté moins le dépassement de l'allocation du mois.
"""
from __future__ import annotations

from edu_app.models.subscription import (
    PLAN_LIMITS,
    LimitCheck,
    Plan,
    PlanLimits,
    ResourceType,
    SubscriptionState,
    UsageCounters,
)


RESOURCE_LABELS = {
    ResourceType.course: ("cours", "cours"),
    ResourceType.exercise: ("exercice", "exercices"),
    ResourceType.fiche: ("fiche de révision", "fiches de révision"),
    ResourceType.ai_minutes: ("minute avec l'avatar IA", "minutes avec l'avatar IA"),
}

PLAN_DISPLAY_NAMES = {
    Plan.basic: "Basique",
    Plan.premium: "Premium",
    Plan.pro: "Pro",
}


def _label(resource: ResourceType, count: float) -> str:
    singular, plural = RESOURCE_LABELS[resource]
    return plural if count > 1 else singular


def percentage(used: float, limit: float) -> float:
    """Pourcentage d'utilisation plafonné à 100 ; une limite nulle vaut 0 %."""
    if limit <= 0:
        return 0.0
    return min(used / limit * 100, 100.0)


def remaining_quota(used: float, limit: float) -> float:
    return max(0, limit - used)


def available_purchased_minutes(usage: UsageCounters, limits: PlanLimits, purchased_total: int) -> float:
    """Minutes achetées encore disponibles une fois l'allocation du mois dépassée"""
    overflow = max(0.0, usage.ai_minutes_used - limits.ai_minutes)
    return max(0.0, purchased_total - overflow)


def next_plan(plan: Plan) -> Plan | None:
    if plan == Plan.basic:
        return Plan.premium
    if plan == Plan.premium:
        return Plan.pro
    return None


def limit_reached_message(resource: ResourceType, plan: Plan, limit: int) -> str:
    """Texte de la boîte de dialogue « limite atteinte »"""
    if resource == ResourceType.ai_minutes:
        if plan != Plan.basic:
            return (
                f"Vous avez utilisé toutes vos {limit} minutes disponibles ce mois-ci. "
                "Vous pouvez acheter des packs de minutes supplémentaires qui ne s'expireront jamais."
            )
        return (
            f"Vous avez utilisé vos {limit} minutes gratuites avec l'avatar IA ce mois-ci. "
            "Achetez un pack de minutes ou passez au plan Premium."
        )

    upgrade = next_plan(plan)
    reached = f"Vous avez atteint votre limite de {limit} {_label(resource, limit)} pour ce mois-ci."
    if upgrade is None:
        return f"{reached} Vous êtes déjà sur le plan le plus élevé !"

    next_limit = PLAN_LIMITS[upgrade].limit(resource)
    return (
        f"{reached} Passez au plan {PLAN_DISPLAY_NAMES[upgrade]} pour créer jusqu'à "
        f"{next_limit} {_label(resource, next_limit)} par mois !"
    )


def check_and_describe(
    resource: ResourceType,
    usage: UsageCounters,
    limits: PlanLimits,
    purchased_balance: float = 0,
    plan: Plan = Plan.basic,
) -> LimitCheck:
    """Décide si une unité de plus est permise et décrit le reste disponible"""
    used = usage.used(resource)
    limit = limits.limit(resource)
    remaining = remaining_quota(used, limit)
    purchased_remaining = max(0, purchased_balance) if resource == ResourceType.ai_minutes else None

    if limits.is_unlimited:
        allowed = True
    else:
        allowed = remaining > 0 or bool(purchased_remaining)

    return LimitCheck(
        resource=resource,
        allowed=allowed,
        current=used,
        limit=limit,
        remaining=remaining,
        percentage=percentage(used, limit),
        purchased_remaining=purchased_remaining,
        is_unlimited=limits.is_unlimited,
        message=None if allowed else limit_reached_message(resource, plan, limit),
    )


def check_state(state: SubscriptionState, resource: ResourceType) -> LimitCheck:
    """check_and_describe appliqué à un état chargé par le suivi d'abonnement"""
    return check_and_describe(
        resource,
        state.usage,
        state.limits,
        purchased_balance=available_purchased_minutes(
            state.usage, state.limits, state.subscription.ai_minutes_purchased
        ),
        plan=state.subscription.plan,
    )


def split_consumption(
    minutes: float,
    usage: UsageCounters,
    limits: PlanLimits,
    purchased_balance: float,
) -> tuple[float, float]:
    """
    Répartit une consommation de minutes IA : (part allocation mensuelle, part achetée).

    Si la somme est inférieure à `minutes`, le reste n'est couvert par rien.
    """
    allowance_left = max(0.0, limits.ai_minutes - usage.ai_minutes_used)
    from_allowance = min(minutes, allowance_left)
    from_purchased = min(minutes - from_allowance, max(0.0, purchased_balance))
    return from_allowance, from_purchased
