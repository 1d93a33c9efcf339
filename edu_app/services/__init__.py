"""
Couche services
"""

from .billing_functions import BillingFunctions, get_billing_functions
from .subscription_service import SubscriptionStateTracker, get_subscription_tracker
from .subscription_store import SubscriptionStore, get_subscription_store
from .usage_limit_service import available_purchased_minutes, check_and_describe, percentage, split_consumption

__all__ = [
    'BillingFunctions', 'get_billing_functions',
    'SubscriptionStateTracker', 'get_subscription_tracker',
    'SubscriptionStore', 'get_subscription_store',
    'available_purchased_minutes', 'check_and_describe', 'percentage', 'split_consumption',
]
