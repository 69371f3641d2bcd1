"""
Webhook registration and verification of inbound webhook payloads.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..core.config import RequestOptions
from ..core.errors import ErrorCategory, ErrorKind, PayOSError
from .base import ApiResource

__all__ = ["Webhooks"]

# Only rejections from payOS become webhook errors; transport, signature and
# input failures keep their own kind.
_WRAPPED_CATEGORIES = frozenset({ErrorCategory.HTTP, ErrorCategory.APPLICATION})


class Webhooks(ApiResource):
    def confirm(self, webhook_url: str, options: Optional[RequestOptions] = None) -> Dict[str, Any]:
        """
        Register ``webhook_url`` with payOS.

        payOS calls the URL with a validation request before accepting it, so
        the endpoint must already be reachable and answering.
        """
        if not webhook_url:
            raise PayOSError(ErrorKind.WEBHOOK, "Webhook URL invalid.")
        try:
            return self._client.post(
                "/confirm-webhook",
                body={"webhookUrl": webhook_url},
                options=options,
            )
        except PayOSError as exc:
            if exc.category not in _WRAPPED_CATEGORIES:
                raise
            raise PayOSError(
                ErrorKind.WEBHOOK,
                f"Webhook validation failed: {exc.message}",
                status_code=exc.status_code,
                error_code=exc.error_code,
                error_description=exc.error_description,
                headers=exc.headers,
            ) from exc

    def verify(self, webhook: Mapping[str, Any]) -> Dict[str, Any]:
        """Check the signature of a webhook body received from payOS and return its data."""
        data = webhook.get("data") if webhook else None
        if data is None:
            raise PayOSError(ErrorKind.WEBHOOK, "Invalid webhook data")
        signature = webhook.get("signature")
        if not signature:
            raise PayOSError(ErrorKind.WEBHOOK, "Invalid signature")
        expected = self._client.signer.sign_body(data)
        if not self._client.signer.verify(expected, signature):
            raise PayOSError(ErrorKind.WEBHOOK, "Data not integrity")
        return data
