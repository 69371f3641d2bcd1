"""
Payment links (``/v2/payment-requests``) and their invoices.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from ..core.config import RequestOptions
from ..core.pipeline import FileDownload
from ..core.signing import RequestSignature, ResponseSignature
from .base import ApiResource, IdOrOrderCode, signed

__all__ = ["Invoices", "PaymentRequests"]


class Invoices(ApiResource):
    def get(
        self,
        id_or_order_code: IdOrOrderCode,
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        return self._client.get(
            f"/v2/payment-requests/{id_or_order_code}/invoices",
            defaults=signed(response=ResponseSignature.BODY),
            options=options,
        )

    def download(
        self,
        invoice_id: str,
        id_or_order_code: IdOrOrderCode,
        options: Optional[RequestOptions] = None,
    ) -> FileDownload:
        """Download an invoice file; the body is returned raw, without unwrapping."""
        return self._client.download(
            f"/v2/payment-requests/{id_or_order_code}/invoices/{invoice_id}/download",
            options,
        )


class PaymentRequests(ApiResource):
    def __init__(self, client) -> None:
        super().__init__(client)
        self.invoices = Invoices(client)

    def create(
        self,
        payment_data: Mapping[str, Any],
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        """
        Create a payment link.

        ``payment_data`` must hold ``amount``, ``cancelUrl``, ``description``,
        ``orderCode`` and ``returnUrl``; the request signature is computed over
        exactly those fields and added to the body.
        """
        return self._client.post(
            "/v2/payment-requests",
            body=dict(payment_data),
            defaults=signed(RequestSignature.CREATE_PAYMENT_LINK, ResponseSignature.BODY),
            options=options,
        )

    def get(
        self,
        id_or_order_code: IdOrOrderCode,
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        return self._client.get(
            f"/v2/payment-requests/{id_or_order_code}",
            defaults=signed(response=ResponseSignature.BODY),
            options=options,
        )

    def cancel(
        self,
        id_or_order_code: IdOrOrderCode,
        cancellation_reason: Optional[str] = None,
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        return self._client.post(
            f"/v2/payment-requests/{id_or_order_code}/cancel",
            body={"cancellationReason": cancellation_reason},
            defaults=signed(response=ResponseSignature.BODY),
            options=options,
        )
