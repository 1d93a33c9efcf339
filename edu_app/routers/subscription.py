"""
Routes d'abonnement : état, quotas, changement de plan, annulation, minutes IA
"""

from fastapi import APIRouter, Depends
from loguru import logger

from edu_app.dependencies.quota_utils import get_tracker, require_path_resource_quota
from edu_app.models.common import APIResponse
from edu_app.models.subscription import (
    AddonPack,
    PlanChangeRequest,
    ResourceType,
    UsageRecordRequest,
)
from edu_app.services.subscription_service import SubscriptionStateTracker
from edu_app.services.usage_limit_service import check_state
from edu_app.utils.errors import BillingError, billing_error_to_http

router = APIRouter()


@router.get("/me", response_model=APIResponse)
async def get_my_subscription(tracker: SubscriptionStateTracker = Depends(get_tracker)):
    try:
        state = await tracker.get_state()
    except BillingError as e:
        raise billing_error_to_http(e)
    data = state.model_dump(mode="json")
    data["remaining"] = state.remaining()
    return APIResponse(success=True, message="Abonnement chargé", data=data)


@router.get("/limits", response_model=APIResponse)
async def get_all_limits(tracker: SubscriptionStateTracker = Depends(get_tracker)):
    try:
        state = await tracker.get_state()
    except BillingError as e:
        raise billing_error_to_http(e)
    checks = {resource.value: check_state(state, resource).model_dump(mode="json") for resource in ResourceType}
    return APIResponse(success=True, message="Limites chargées", data=checks)


@router.get("/limits/{resource}", response_model=APIResponse)
async def get_limit(resource: ResourceType, tracker: SubscriptionStateTracker = Depends(get_tracker)):
    try:
        check = await tracker.check(resource)
    except BillingError as e:
        raise billing_error_to_http(e)
    return APIResponse(success=True, message="Limite chargée", data=check.model_dump(mode="json"))


@router.post("/change-plan", response_model=APIResponse)
async def change_plan(payload: PlanChangeRequest, tracker: SubscriptionStateTracker = Depends(get_tracker)):
    try:
        result = await tracker.request_plan_change(payload.plan)
        data = result.model_dump(mode="json")
        if not result.checkout_required:
            data["state"] = (await tracker.refetch()).model_dump(mode="json")
    except BillingError as e:
        raise billing_error_to_http(e)
    message = "Redirection vers le paiement" if result.checkout_required else "Abonnement mis à jour"
    return APIResponse(success=True, message=message, data=data)


@router.post("/cancel", response_model=APIResponse)
async def cancel_subscription(tracker: SubscriptionStateTracker = Depends(get_tracker)):
    try:
        await tracker.cancel_subscription()
        state = await tracker.refetch()
    except BillingError as e:
        raise billing_error_to_http(e)
    return APIResponse(
        success=True,
        message="Votre abonnement restera actif jusqu'à la fin de la période de facturation actuelle.",
        data=state.model_dump(mode="json"),
    )


@router.post("/reactivate", response_model=APIResponse)
async def reactivate_subscription(tracker: SubscriptionStateTracker = Depends(get_tracker)):
    try:
        await tracker.reactivate_subscription()
        state = await tracker.refetch()
    except BillingError as e:
        raise billing_error_to_http(e)
    return APIResponse(success=True, message="Abonnement réactivé", data=state.model_dump(mode="json"))


@router.post("/addons/{pack}", response_model=APIResponse)
async def purchase_addon(pack: AddonPack, tracker: SubscriptionStateTracker = Depends(get_tracker)):
    try:
        redirect_url = await tracker.purchase_addon_minutes(pack)
    except BillingError as e:
        raise billing_error_to_http(e)
    return APIResponse(
        success=True,
        message="Redirection vers le paiement",
        data={"checkout_required": True, "redirect_url": redirect_url, "minutes": pack.minutes},
    )


@router.post(
    "/usage/{resource}",
    response_model=APIResponse,
    dependencies=[Depends(require_path_resource_quota)],
)
async def record_usage(
    resource: ResourceType,
    payload: UsageRecordRequest | None = None,
    tracker: SubscriptionStateTracker = Depends(get_tracker),
):
    amount = payload.amount if payload else 1
    try:
        await tracker.record_usage(resource, amount)
        check = await tracker.check(resource)
    except BillingError as e:
        raise billing_error_to_http(e)
    logger.debug(f"Usage {resource.value} enregistré pour {tracker.user_id}")
    return APIResponse(success=True, message="Consommation enregistrée", data=check.model_dump(mode="json"))
