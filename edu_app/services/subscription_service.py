#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Suivi d'abonnement (basé sur Supabase + fonctions Edge Stripe)

Rôle :
- présenter une vue cohérente du plan, de la période et des quotas restants
- relayer toutes les actions qui modifient le plan vers le système de facturation

Le système de facturation fait foi : après chaque action, l'état est relu au
lieu d'être modifié localement.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Optional, Set

from loguru import logger

from edu_app.config import settings
from edu_app.models.auth import UserInfo
from edu_app.models.subscription import (
    AddonPack,
    LimitCheck,
    Plan,
    PlanChangeResult,
    PlanChangeType,
    ResourceType,
    SubscriptionState,
    limits_for,
)
from edu_app.services.billing_functions import BillingFunctions, get_billing_functions
from edu_app.services.plan_transitions import (
    Transition,
    TransitionKind,
    addon_price_id,
    cancel_transition,
    invariant_violations,
    plan_change_transition,
    reactivate_transition,
)
from edu_app.services.subscription_store import SubscriptionStore, get_subscription_store
from edu_app.services.usage_limit_service import (
    available_purchased_minutes,
    check_state,
    split_consumption,
)
from edu_app.utils.errors import (
    CancelError,
    OperationInProgressError,
    PaymentInitError,
    ReactivateError,
)

# Utilisateurs ayant une opération de facturation en cours (toutes instances confondues)
_IN_FLIGHT: Set[str] = set()


class SubscriptionStateTracker:
    def __init__(
        self,
        user_id: str,
        access_token: str,
        store: SubscriptionStore,
        billing: BillingFunctions,
        in_flight: Optional[Set[str]] = None,
    ):
        self.user_id = user_id
        self.access_token = access_token
        self.store = store
        self.billing = billing
        self._in_flight = _IN_FLIGHT if in_flight is None else in_flight

    @contextmanager
    def _exclusive(self, action: str):
        if self.user_id in self._in_flight:
            logger.warning(f"{action} refusé : opération déjà en cours pour {self.user_id}")
            raise OperationInProgressError()
        self._in_flight.add(self.user_id)
        try:
            yield
        finally:
            self._in_flight.discard(self.user_id)

    # -------- Lecture --------
    async def get_state(self) -> SubscriptionState:
        subscription = await self.store.get_subscription(self.user_id)
        usage = await self.store.get_usage(self.user_id)

        violations = invariant_violations(subscription)
        if violations and not subscription.is_organization_member:
            logger.warning(f"Abonnement incohérent pour {self.user_id}: {', '.join(violations)}")

        return SubscriptionState(subscription=subscription, usage=usage, limits=limits_for(subscription))

    async def refetch(self) -> SubscriptionState:
        return await self.get_state()

    async def check(self, resource: ResourceType) -> LimitCheck:
        return check_state(await self.get_state(), resource)

    # -------- Changement de plan --------
    async def request_plan_change(self, target: Plan) -> PlanChangeResult:
        state = await self.get_state()
        transition = plan_change_transition(state.subscription, target)

        if transition.kind == TransitionKind.noop:
            return PlanChangeResult(checkout_required=False, change_type=PlanChangeType.unchanged)

        with self._exclusive("Changement de plan"):
            if transition.kind == TransitionKind.cancel:
                await self._cancel(transition)
                return PlanChangeResult(checkout_required=False, change_type=transition.change_type)

            try:
                response = await self.billing.create_checkout_session(
                    self.access_token,
                    transition.price_id,
                    "subscription",
                    settings.checkout_success_url,
                    settings.checkout_cancel_url,
                )
            except Exception as e:
                logger.error(f"Création de la session de paiement échouée ({target.value}): {e}")
                raise PaymentInitError(cause=e) from e

        checkout_url = response.get("checkoutUrl")
        if checkout_url:
            logger.info(f"Checkout {target.value} créé pour {self.user_id}")
            return PlanChangeResult(
                checkout_required=True,
                redirect_url=checkout_url,
                session_id=response.get("sessionId"),
                change_type=PlanChangeType.checkout,
            )

        if response.get("success"):
            logger.info(f"Abonnement de {self.user_id} modifié au prorata vers {target.value}")
            change_type = transition.change_type
            if transition.kind == TransitionKind.checkout:
                change_type = PlanChangeType.change
            return PlanChangeResult(checkout_required=False, change_type=change_type)

        logger.error(f"Réponse inattendue de la fonction de paiement: {response}")
        raise PaymentInitError("Réponse inattendue du service de paiement")

    # -------- Annulation / réactivation --------
    async def cancel_subscription(self) -> None:
        state = await self.get_state()
        transition = cancel_transition(state.subscription)
        if transition.kind == TransitionKind.noop:
            logger.info(f"Annulation déjà prévue pour {self.user_id}")
            return
        with self._exclusive("Annulation"):
            await self._cancel(transition)

    async def _cancel(self, transition: Transition) -> None:
        try:
            await self.billing.cancel_subscription(self.access_token, transition.subscription_id)
        except Exception as e:
            logger.error(f"Annulation de l'abonnement {transition.subscription_id} échouée: {e}")
            raise CancelError(cause=e) from e
        logger.info(f"Annulation en fin de période demandée pour {self.user_id}")

    async def reactivate_subscription(self) -> None:
        state = await self.get_state()
        transition = reactivate_transition(state.subscription)
        if transition.kind == TransitionKind.noop:
            logger.info(f"Aucune annulation à lever pour {self.user_id}")
            return
        with self._exclusive("Réactivation"):
            try:
                await self.billing.reactivate_subscription(self.access_token, transition.subscription_id)
            except Exception as e:
                logger.error(f"Réactivation de l'abonnement {transition.subscription_id} échouée: {e}")
                raise ReactivateError(cause=e) from e
        logger.info(f"Abonnement de {self.user_id} réactivé")

    # -------- Minutes IA --------
    async def purchase_addon_minutes(self, pack: AddonPack) -> str:
        """Paiement unique ; le solde acheté est crédité par le webhook au retour."""
        with self._exclusive("Achat de minutes"):
            try:
                response = await self.billing.create_checkout_session(
                    self.access_token,
                    addon_price_id(pack),
                    "payment",
                    settings.checkout_success_url,
                    settings.checkout_cancel_url,
                )
            except Exception as e:
                logger.error(f"Création du checkout {pack.value} échouée: {e}")
                raise PaymentInitError(cause=e) from e

        checkout_url = response.get("checkoutUrl")
        if not checkout_url:
            raise PaymentInitError("Le service de paiement n'a pas renvoyé de lien de paiement")
        logger.info(f"Checkout {pack.value} ({pack.minutes} min) créé pour {self.user_id}")
        return checkout_url

    # -------- Usage --------
    async def record_usage(self, resource: ResourceType, amount: float = 1) -> None:
        """
        À appeler après la création effective d'une ressource.

        Pour les minutes IA, seul `ai_minutes_used` est incrémenté : la part qui
        dépasse l'allocation du mois est déduite du solde acheté au prochain calcul.
        """
        if resource == ResourceType.ai_minutes:
            state = await self.get_state()
            if not state.limits.is_unlimited:
                balance = available_purchased_minutes(
                    state.usage, state.limits, state.subscription.ai_minutes_purchased
                )
                from_allowance, from_purchased = split_consumption(amount, state.usage, state.limits, balance)
                uncovered = amount - from_allowance - from_purchased
                logger.debug(
                    f"Minutes IA {self.user_id}: {from_allowance} sur l'allocation, {from_purchased} sur le solde acheté"
                )
                if uncovered > 0:
                    logger.warning(f"{uncovered} minute(s) IA consommée(s) sans quota par {self.user_id}")

        await self.store.increment_usage(self.user_id, resource, amount)


def get_subscription_tracker(user: UserInfo) -> SubscriptionStateTracker:
    return SubscriptionStateTracker(
        user_id=user.id,
        access_token=user.access_token,
        store=get_subscription_store(),
        billing=get_billing_functions(),
    )
