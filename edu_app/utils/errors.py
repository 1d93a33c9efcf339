#!/usr/bin/env python3
"""
Gestion d'erreurs standardisée : exceptions métier de la facturation
et conversion en réponses HTTP
"""

from enum import Enum
from typing import Any

from fastapi import HTTPException, status
from pydantic import BaseModel


class ErrorCode(Enum):
    """Codes d'erreur standard"""

    # Quotas
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"

    # Abonnement
    FETCH_FAILED = "FETCH_FAILED"
    PAYMENT_INIT_FAILED = "PAYMENT_INIT_FAILED"
    CANCEL_FAILED = "CANCEL_FAILED"
    REACTIVATE_FAILED = "REACTIVATE_FAILED"
    NO_ACTIVE_SUBSCRIPTION = "NO_ACTIVE_SUBSCRIPTION"
    USAGE_RECORD_FAILED = "USAGE_RECORD_FAILED"
    OPERATION_IN_PROGRESS = "OPERATION_IN_PROGRESS"

    # Système
    INTERNAL_ERROR = "INTERNAL_ERROR"


class StandardErrorResponse(BaseModel):
    """Corps d'erreur standard"""

    success: bool = False
    error_code: str
    message: str
    details: dict[str, Any] | None = None

    current_plan: str | None = None
    recommended_plan: str | None = None
    upgrade_url: str | None = "/profile"

    quota_info: dict[str, Any] | None = None

    suggested_actions: list[str] | None = None


class BillingError(Exception):
    """Erreur de base de l'abonnement. `message` est affichable tel quel."""

    code = ErrorCode.INTERNAL_ERROR
    http_status = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Une erreur est survenue"

    def __init__(self, message: str | None = None, *, cause: Exception | None = None):
        self.message = message or self.default_message
        self.cause = cause
        super().__init__(self.message)


class FetchError(BillingError):
    """Chargement de l'état impossible (store injoignable)"""

    code = ErrorCode.FETCH_FAILED
    http_status = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Impossible de charger votre abonnement"


class UsageRecordError(FetchError):
    code = ErrorCode.USAGE_RECORD_FAILED
    default_message = "Impossible d'enregistrer votre consommation"


class PaymentInitError(BillingError):
    """Création de la session de paiement échouée"""

    code = ErrorCode.PAYMENT_INIT_FAILED
    http_status = status.HTTP_400_BAD_REQUEST
    default_message = "Une erreur est survenue lors de la création de la session de paiement"


class CancelError(BillingError):
    code = ErrorCode.CANCEL_FAILED
    http_status = status.HTTP_502_BAD_GATEWAY
    default_message = "Une erreur est survenue lors de l'annulation"


class ReactivateError(BillingError):
    code = ErrorCode.REACTIVATE_FAILED
    http_status = status.HTTP_502_BAD_GATEWAY
    default_message = "Une erreur est survenue lors de la réactivation"


class NoActiveSubscriptionError(BillingError):
    code = ErrorCode.NO_ACTIVE_SUBSCRIPTION
    http_status = status.HTTP_409_CONFLICT
    default_message = "Aucun abonnement actif trouvé"


class OperationInProgressError(BillingError):
    """Une opération de facturation est déjà en cours pour cet utilisateur"""

    code = ErrorCode.OPERATION_IN_PROGRESS
    http_status = status.HTTP_409_CONFLICT
    default_message = "Une opération sur votre abonnement est déjà en cours"


SUGGESTED_ACTIONS: dict[ErrorCode, list[str]] = {
    ErrorCode.FETCH_FAILED: ["Réessayer dans quelques instants"],
    ErrorCode.USAGE_RECORD_FAILED: ["Réessayer dans quelques instants"],
    ErrorCode.PAYMENT_INIT_FAILED: ["Réessayer", "Vérifier votre connexion"],
    ErrorCode.CANCEL_FAILED: ["Réessayer", "Gérer l'abonnement depuis votre profil"],
    ErrorCode.REACTIVATE_FAILED: ["Réessayer", "Gérer l'abonnement depuis votre profil"],
    ErrorCode.NO_ACTIVE_SUBSCRIPTION: ["Choisir un plan Premium ou Pro"],
    ErrorCode.OPERATION_IN_PROGRESS: ["Patienter quelques secondes puis actualiser"],
}


def billing_error_to_http(error: BillingError) -> HTTPException:
    """Convertit une erreur métier en HTTPException au format standard"""
    return HTTPException(
        status_code=error.http_status,
        detail=StandardErrorResponse(
            error_code=error.code.value,
            message=error.message,
            suggested_actions=SUGGESTED_ACTIONS.get(error.code),
        ).model_dump(),
    )


class QuotaError:
    """Erreurs de quota"""

    @staticmethod
    def quota_exceeded(
        resource: str,
        current: float,
        limit: int,
        message: str,
        current_plan: str | None = None,
        recommended_plan: str | None = None,
    ) -> HTTPException:
        """Limite mensuelle atteinte"""
        return HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=StandardErrorResponse(
                error_code=ErrorCode.QUOTA_EXCEEDED.value,
                message=message,
                current_plan=current_plan,
                recommended_plan=recommended_plan,
                quota_info={
                    "resource": resource,
                    "current": current,
                    "limit": limit,
                    "remaining": max(0, limit - current),
                },
                suggested_actions=["Attendre le prochain mois de facturation", "Passer à un plan supérieur"],
            ).model_dump(),
        )

