"""
Subscription billing module.

Plans, subscription periods, payment orders, activations and prorated
plan upgrades.
"""

from .models import Plan, Subscription, Order, SubscriptionActivation, BillingCycle
from .exceptions import (
    BillingError, NotFoundError, ForbiddenError, InvalidInputError, InternalError
)
from .proration import remaining_days, prorated_upgrade_amount

__all__ = [
    # Models
    "Plan",
    "Subscription",
    "Order",
    "SubscriptionActivation",
    "BillingCycle",

    # Errors
    "BillingError",
    "NotFoundError",
    "ForbiddenError",
    "InvalidInputError",
    "InternalError",

    # Proration
    "remaining_days",
    "prorated_upgrade_amount",
]
