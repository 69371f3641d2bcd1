"""
Payouts (``/v1/payouts``), batch payouts and credit estimation.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from ..core.config import RequestOptions, merge_options
from ..core.pagination import Page, Pagination, build_page
from ..core.signing import RequestSignature, ResponseSignature
from .base import ApiResource, signed

__all__ = ["Payouts", "PayoutsBatch"]

DEFAULT_PAGE_SIZE = 50


def _with_idempotency_key(
    options: Optional[RequestOptions], idempotency_key: Optional[str]
) -> RequestOptions:
    return merge_options(options, RequestOptions(idempotency_key=idempotency_key))


class PayoutsBatch(ApiResource):
    def create(
        self,
        batch_data: Mapping[str, Any],
        idempotency_key: Optional[str] = None,
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        """
        Create a batch of payouts.

        A random idempotency key is generated when none is given; every retry
        of this call sends the same key.
        """
        return self._client.post(
            "/v1/payouts/batch",
            body=dict(batch_data),
            defaults=signed(RequestSignature.HEADER, ResponseSignature.HEADER),
            options=_with_idempotency_key(options, idempotency_key),
            idempotent=True,
        )


class Payouts(ApiResource):
    def __init__(self, client) -> None:
        super().__init__(client)
        self.batch = PayoutsBatch(client)

    def create(
        self,
        payout_data: Mapping[str, Any],
        idempotency_key: Optional[str] = None,
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        """
        Create a single payout.

        Use a UUID or other high-entropy string as ``idempotency_key`` so that
        repeated submissions of the same payout are recognised server-side.
        """
        return self._client.post(
            "/v1/payouts/",
            body=dict(payout_data),
            defaults=signed(RequestSignature.HEADER, ResponseSignature.HEADER),
            options=_with_idempotency_key(options, idempotency_key),
            idempotent=True,
        )

    def get(self, payout_id: str, options: Optional[RequestOptions] = None) -> Dict[str, Any]:
        return self._client.get(
            f"/v1/payouts/{payout_id}",
            defaults=signed(response=ResponseSignature.HEADER),
            options=options,
        )

    def list(
        self,
        *,
        reference_id: Optional[str] = None,
        approval_state: Optional[str] = None,
        category: Optional[Sequence[str]] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        limit: int = DEFAULT_PAGE_SIZE,
        offset: int = 0,
        options: Optional[RequestOptions] = None,
    ) -> Page[Dict[str, Any], Dict[str, Any]]:
        """Fetch the first page of payouts matching the filters."""
        filters: Dict[str, Any] = {}
        if reference_id:
            filters["referenceId"] = reference_id
        if approval_state:
            filters["approvalState"] = approval_state
        if category:
            filters["category"] = ",".join(category)
        if from_date:
            filters["fromDate"] = from_date
        if to_date:
            filters["toDate"] = to_date

        def fetch_page(page_offset: int, page_limit: int) -> Dict[str, Any]:
            query = dict(filters, limit=page_limit, offset=page_offset)
            return self._client.get(
                "/v1/payouts",
                defaults=signed(response=ResponseSignature.HEADER),
                options=merge_options(options, RequestOptions(query=query)),
            )

        return build_page(
            fetch_page(offset, limit),
            fetch_page,
            lambda response: Pagination.from_mapping(response.get("pagination") or {}),
            lambda response: response.get("payouts") or [],
        )

    def estimate_credit(
        self,
        payout_data: Mapping[str, Any],
        options: Optional[RequestOptions] = None,
    ) -> Dict[str, Any]:
        """Estimate the credit needed for a single or batch payout request."""
        return self._client.post(
            "/v1/payouts/estimate-credit",
            body=dict(payout_data),
            defaults=signed(RequestSignature.HEADER),
            options=options,
        )
