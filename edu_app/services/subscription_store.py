#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Accès Supabase aux abonnements et compteurs d'usage

Tables : user_subscriptions, organization_members
RPC    : get_or_create_usage_period, increment_usage
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from loguru import logger

from edu_app.config import settings
from edu_app.config.supabase_config import get_supabase_client
from edu_app.models.subscription import Plan, ResourceType, Subscription, SubscriptionStatus, UsageCounters
from edu_app.utils.errors import FetchError, UsageRecordError


class SubscriptionStore:
    def __init__(self, client=None):
        self.client = client if client is not None else get_supabase_client(use_service_key=True)
        if self.client:
            logger.info("SubscriptionStore initialisé")
        else:
            logger.error("SubscriptionStore : impossible de créer le client Supabase")

    def _require_client(self):
        if self.client is None:
            raise FetchError("Base de données indisponible")
        return self.client

    # -------- Organisations --------
    async def get_active_membership(self, user_id: str) -> Optional[Dict[str, Any]]:
        client = self._require_client()
        try:
            result = (
                client.table("organization_members")
                .select("id, status, organization_id")
                .eq("user_id", user_id)
                .eq("status", "active")
                .limit(1)
                .execute()
            )
            return result.data[0] if result.data else None
        except Exception as e:
            logger.error(f"Lecture de l'appartenance à une organisation échouée: {e}")
            raise FetchError(cause=e) from e

    # -------- Abonnements --------
    async def get_subscription(self, user_id: str) -> Subscription:
        """Abonnement de l'utilisateur ; un membre d'organisation hérite des limites illimitées."""
        membership = await self.get_active_membership(user_id)
        if membership:
            logger.debug(f"Utilisateur {user_id} membre de l'organisation {membership.get('organization_id')}")
            return Subscription(user_id=user_id, is_organization_member=True)

        client = self._require_client()
        try:
            result = client.table("user_subscriptions").select("*").eq("user_id", user_id).limit(1).execute()
        except Exception as e:
            logger.error(f"Lecture de l'abonnement échouée: {e}")
            raise FetchError(cause=e) from e

        row = result.data[0] if result.data else None
        if row is None:
            row = await self.create_basic_subscription(user_id)
        return Subscription.model_validate(row)

    async def create_basic_subscription(self, user_id: str) -> Dict[str, Any]:
        """Crée la ligne basic d'un utilisateur qui n'en a pas encore"""
        client = self._require_client()
        now = datetime.now(timezone.utc)
        data = {
            "user_id": user_id,
            "plan": Plan.basic.value,
            "status": SubscriptionStatus.active.value,
            "current_period_start": now.isoformat(),
            "current_period_end": (now + timedelta(days=settings.BASIC_PERIOD_DAYS)).isoformat(),
        }
        try:
            result = client.table("user_subscriptions").insert(data).execute()
        except Exception as e:
            logger.error(f"Création de l'abonnement basic échouée: {e}")
            raise FetchError(cause=e) from e

        logger.info(f"Abonnement basic créé pour l'utilisateur {user_id}")
        return result.data[0] if result.data else data

    # -------- Usage --------
    async def get_usage(self, user_id: str) -> UsageCounters:
        client = self._require_client()
        try:
            result = client.rpc("get_or_create_usage_period", {"p_user_id": user_id}).execute()
        except Exception as e:
            logger.error(f"Lecture des compteurs d'usage échouée: {e}")
            raise FetchError(cause=e) from e

        data = result.data
        if isinstance(data, list):
            data = data[0] if data else {}
        return UsageCounters.model_validate(data or {})

    async def increment_usage(self, user_id: str, resource: ResourceType, amount: float = 1) -> None:
        client = self._require_client()
        try:
            client.rpc("increment_usage", {
                "p_user_id": user_id,
                "p_resource_type": resource.value,
                "p_amount": amount,
            }).execute()
        except Exception as e:
            logger.error(f"Incrément d'usage {resource.value} échoué: {e}")
            raise UsageRecordError(cause=e) from e
        logger.info(f"Usage incrémenté: {resource.value} +{amount} (utilisateur {user_id})")


_subscription_store: Optional[SubscriptionStore] = None


def get_subscription_store() -> SubscriptionStore:
    global _subscription_store
    if _subscription_store is None:
        _subscription_store = SubscriptionStore()
    return _subscription_store
