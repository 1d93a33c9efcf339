#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Dépendances de quotas : suivi d'abonnement par requête et contrôle des limites
"""

from fastapi import Depends
from loguru import logger

from edu_app.dependencies.auth import get_current_active_user
from edu_app.models.auth import UserInfo
from edu_app.models.subscription import LimitCheck, ResourceType
from edu_app.services.subscription_service import SubscriptionStateTracker, get_subscription_tracker
from edu_app.services.usage_limit_service import check_state, next_plan
from edu_app.utils.errors import BillingError, QuotaError, billing_error_to_http


async def get_tracker(current_user: UserInfo = Depends(get_current_active_user)) -> SubscriptionStateTracker:
    """Suivi d'abonnement de l'utilisateur courant"""
    return get_subscription_tracker(current_user)


async def enforce_resource_quota(tracker: SubscriptionStateTracker, resource: ResourceType) -> LimitCheck:
    """Lève une 429 au format standard quand la limite mensuelle de `resource` est atteinte"""
    try:
        state = await tracker.get_state()
    except BillingError as e:
        raise billing_error_to_http(e)

    check = check_state(state, resource)
    if not check.allowed:
        plan = state.subscription.plan
        upgrade = next_plan(plan)
        logger.info(f"Quota {resource.value} atteint pour {tracker.user_id} ({check.current}/{check.limit})")
        raise QuotaError.quota_exceeded(
            resource=resource.value,
            current=check.current,
            limit=check.limit,
            message=check.message or "Limite atteinte",
            current_plan=plan.value,
            recommended_plan=upgrade.value if upgrade else None,
        )
    return check


def require_resource_quota(resource: ResourceType):
    """
    Fabrique une dépendance qui refuse la requête (429) quand la limite mensuelle
    de `resource` est atteinte. Le compteur n'est pas incrémenté ici.

    À placer sur les routes qui créent un cours, un exercice ou une fiche.
    """

    async def _require(tracker: SubscriptionStateTracker = Depends(get_tracker)) -> LimitCheck:
        return await enforce_resource_quota(tracker, resource)

    return _require


async def require_path_resource_quota(
    resource: ResourceType,
    tracker: SubscriptionStateTracker = Depends(get_tracker),
) -> LimitCheck:
    """Variante de require_resource_quota pour les routes `/{resource}`"""
    return await enforce_resource_quota(tracker, resource)
