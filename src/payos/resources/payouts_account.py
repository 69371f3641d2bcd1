from __future__ import annotations

from typing import Any, Dict, Optional

from ..core.config import RequestOptions
from .base import ApiResource

__all__ = ["PayoutsAccount"]


class PayoutsAccount(ApiResource):
    def balance(self, options: Optional[RequestOptions] = None) -> Dict[str, Any]:
        """Return the payout account number, name, currency and balance."""
        return self._client.get("/v1/payouts-account/balance", options=options)
