"""
Resource wrappers mapping payOS endpoints onto the request pipeline.
"""

from .base import ApiResource
from .payment_requests import Invoices, PaymentRequests
from .payouts import Payouts, PayoutsBatch
from .payouts_account import PayoutsAccount
from .webhooks import Webhooks

__all__ = [
    "ApiResource",
    "Invoices",
    "PaymentRequests",
    "Payouts",
    "PayoutsAccount",
    "PayoutsBatch",
    "Webhooks",
]
