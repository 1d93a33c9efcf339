"""
Modèles de données de l'API
"""

from .auth import UserInfo
from .common import APIResponse
from .subscription import (
    AddonPack,
    LimitCheck,
    Plan,
    PlanChangeRequest,
    PlanChangeResult,
    PlanChangeType,
    PlanLimits,
    ResourceType,
    Subscription,
    SubscriptionState,
    SubscriptionStatus,
    UsageCounters,
    UsageRecordRequest,
)

__all__ = [
    'UserInfo',
    'APIResponse',
    'AddonPack',
    'LimitCheck',
    'Plan',
    'PlanChangeRequest',
    'PlanChangeResult',
    'PlanChangeType',
    'PlanLimits',
    'ResourceType',
    'Subscription',
    'SubscriptionState',
    'SubscriptionStatus',
    'UsageCounters',
    'UsageRecordRequest',
]
