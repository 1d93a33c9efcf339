#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Appels aux fonctions Edge de facturation (Stripe côté Supabase)

Chaque appel est fait avec le jeton de l'utilisateur : la fonction Edge
l'authentifie elle-même. Aucune relance automatique.
"""
from __future__ import annotations

import json
from typing import Any, Dict, Optional

from loguru import logger

from edu_app.config.supabase_config import get_supabase_client


class BillingFunctionError(Exception):
    """Réponse d'erreur d'une fonction Edge"""


class BillingFunctions:
    CHECKOUT_FUNCTION = "create-checkout-session"
    CANCEL_FUNCTION = "cancel-subscription"
    REACTIVATE_FUNCTION = "reactivate-subscription"

    def __init__(self, client=None):
        self.client = client if client is not None else get_supabase_client(use_service_key=False)

    async def _invoke(self, name: str, access_token: str, body: Dict[str, Any]) -> Dict[str, Any]:
        if self.client is None:
            raise BillingFunctionError("Client Supabase indisponible")

        raw = self.client.functions.invoke(
            name,
            invoke_options={
                "body": body,
                "headers": {"Authorization": f"Bearer {access_token}"},
                "responseType": "json",
            },
        )
        if isinstance(raw, (bytes, str)):
            raw = json.loads(raw or "{}")
        data = raw or {}
        if isinstance(data, dict) and data.get("error"):
            raise BillingFunctionError(str(data["error"]))
        logger.debug(f"Fonction {name} OK")
        return data

    async def create_checkout_session(
        self,
        access_token: str,
        price_id: str,
        mode: str,
        success_url: str,
        cancel_url: str,
    ) -> Dict[str, Any]:
        """
        Crée une session de checkout.

        Réponse : {checkoutUrl, sessionId} pour un nouvel abonnement ou un achat,
        {success, changeType} quand l'abonnement existant est modifié au prorata.
        """
        return await self._invoke(self.CHECKOUT_FUNCTION, access_token, {
            "priceId": price_id,
            "mode": mode,
            "successUrl": success_url,
            "cancelUrl": cancel_url,
        })

    async def cancel_subscription(self, access_token: str, subscription_id: str) -> None:
        await self._invoke(self.CANCEL_FUNCTION, access_token, {"subscriptionId": subscription_id})

    async def reactivate_subscription(self, access_token: str, subscription_id: str) -> None:
        await self._invoke(self.REACTIVATE_FUNCTION, access_token, {"subscription_id": subscription_id})


_billing_functions: Optional[BillingFunctions] = None


def get_billing_functions() -> BillingFunctions:
    global _billing_functions
    if _billing_functions is None:
        _billing_functions = BillingFunctions()
    return _billing_functions
