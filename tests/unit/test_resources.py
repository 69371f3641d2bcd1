from __future__ import annotations

import threading

import pytest
import requests

from payos.core.config import RequestOptions
from payos.core.errors import ErrorKind, PayOSError
from payos.core.signing import SignatureConfig, sign_body, sign_header, sign_payment_request
from tests.conftest import BASE_URL, CHECKSUM_KEY, envelope, make_response

PAYMENT = {
    "orderCode": 123,
    "amount": 2000,
    "description": "VQR 123",
    "cancelUrl": "https://shop.vn/cancel",
    "returnUrl": "https://shop.vn/return",
    "items": [{"name": "tea", "quantity": 1, "price": 2000}],
}


def _body_signed(data):
    return make_response(200, envelope(data, signature=sign_body(data, CHECKSUM_KEY)))


def _header_signed(data):
    return make_response(200, envelope(data), headers={"x-signature": sign_header(CHECKSUM_KEY, data)})


def test_create_payment_link(make_client):
    link = {"paymentLinkId": "pl_1", "orderCode": 123, "status": "PENDING"}
    client = make_client(_body_signed(link))

    assert client.payment_requests.create(PAYMENT) == link

    call = client.session.calls[0]
    assert call.method == "POST"
    assert call.url == f"{BASE_URL}/v2/payment-requests"
    assert call.json["signature"] == sign_payment_request(PAYMENT, CHECKSUM_KEY)
    assert call.json["items"] == PAYMENT["items"]
    assert "signature" not in PAYMENT


def test_create_payment_link_rejects_tampered_response(make_client):
    link = {"paymentLinkId": "pl_1"}
    client = make_client(make_response(200, envelope(link, signature=sign_body({"paymentLinkId": "pl_2"}, CHECKSUM_KEY))))

    with pytest.raises(PayOSError) as caught:
        client.payment_requests.create(PAYMENT)

    assert caught.value.kind is ErrorKind.INVALID_SIGNATURE


def test_get_and_cancel_payment_link(make_client):
    info = {"id": "pl_1", "orderCode": 123, "status": "CANCELLED"}
    client = make_client(_body_signed(info), _body_signed(info))

    assert client.payment_requests.get(123) == info
    assert client.payment_requests.cancel("pl_1", "customer changed mind") == info

    get_call, cancel_call = client.session.calls
    assert get_call.method == "GET"
    assert get_call.url == f"{BASE_URL}/v2/payment-requests/123"
    assert cancel_call.url == f"{BASE_URL}/v2/payment-requests/pl_1/cancel"
    assert cancel_call.json == {"cancellationReason": "customer changed mind"}


def test_invoices(make_client):
    invoices = {"invoices": [{"invoiceId": "inv_1"}], "taxPercentage": 10}
    client = make_client(
        _body_signed(invoices),
        make_response(200, content=b"PDF", headers={"Content-Type": "application/pdf"}),
    )

    assert client.payment_requests.invoices.get(123) == invoices
    download = client.payment_requests.invoices.download("inv_1", 123)

    assert download.content == b"PDF"
    assert client.session.calls[0].url == f"{BASE_URL}/v2/payment-requests/123/invoices"
    assert client.session.calls[1].url == f"{BASE_URL}/v2/payment-requests/123/invoices/inv_1/download"


def test_create_payout_signs_header_and_sends_idempotency_key(make_client):
    payout = {"referenceId": "ref-1", "amount": 5000, "toBin": "970415", "toAccountNumber": "0123"}
    result = {"id": "po_1", "approvalState": "PROCESSING"}
    client = make_client(_header_signed(result))

    assert client.payouts.create(payout, idempotency_key="idem-1") == result

    call = client.session.calls[0]
    assert call.url == f"{BASE_URL}/v1/payouts/"
    assert call.headers["x-signature"] == sign_header(CHECKSUM_KEY, payout)
    assert call.headers["x-idempotency-key"] == "idem-1"
    assert call.json == payout


def test_create_payout_generates_idempotency_key(make_client):
    client = make_client(make_response(500), _header_signed({"id": "po_1"}))

    client.payouts.create({"referenceId": "ref-1", "amount": 1})

    first, second = client.session.calls
    assert first.headers["x-idempotency-key"]
    assert first.headers["x-idempotency-key"] == second.headers["x-idempotency-key"]


def test_create_payout_batch(make_client):
    batch = {"referenceId": "batch-1", "category": ["salary"], "payouts": [{"amount": 1}]}
    client = make_client(_header_signed({"id": "batch_1"}))

    client.payouts.batch.create(batch)

    call = client.session.calls[0]
    assert call.url == f"{BASE_URL}/v1/payouts/batch"
    assert call.headers["x-signature"] == sign_header(CHECKSUM_KEY, batch)
    assert call.headers["x-idempotency-key"]


def test_get_payout_verifies_header_signature(make_client):
    client = make_client(make_response(200, envelope({"id": "po_1"}), headers={"x-signature": "f" * 64}))

    with pytest.raises(PayOSError) as caught:
        client.payouts.get("po_1")

    assert caught.value.kind is ErrorKind.INVALID_SIGNATURE


def test_estimate_credit(make_client):
    client = make_client(make_response(200, envelope({"estimateCredit": 5100})))
    body = {"referenceId": "ref-1", "amount": 5000}

    assert client.payouts.estimate_credit(body) == {"estimateCredit": 5100}
    assert client.session.calls[0].headers["x-signature"] == sign_header(CHECKSUM_KEY, body)


def _payout_page(ids, offset, has_more):
    return _header_signed(
        {
            "payouts": [{"id": payout_id} for payout_id in ids],
            "pagination": {
                "limit": 2,
                "offset": offset,
                "total": 3,
                "count": len(ids),
                "hasMore": has_more,
            },
        }
    )


def test_list_payouts_pages_through_results(make_client):
    client = make_client(_payout_page(["a", "b"], 0, True), _payout_page(["c"], 2, False))

    page = client.payouts.list(
        reference_id="ref",
        category=["salary", "bonus"],
        from_date="2024-01-01",
        limit=2,
        options=RequestOptions(headers={"x-trace": "t"}),
    )

    assert [payout["id"] for payout in page] == ["a", "b", "c"]
    first, second = client.session.calls
    assert first.url == (
        f"{BASE_URL}/v1/payouts?referenceId=ref&category=salary%2Cbonus"
        "&fromDate=2024-01-01&limit=2&offset=0"
    )
    assert second.url.endswith("&limit=2&offset=2")
    assert second.headers["x-trace"] == "t"


def test_payouts_account_balance(make_client):
    balance = {"accountNumber": "0123", "accountName": "SHOP", "currency": "VND", "balance": "1000"}
    client = make_client(make_response(200, envelope(balance)))

    assert client.payouts_account.balance() == balance
    assert client.session.calls[0].url == f"{BASE_URL}/v1/payouts-account/balance"


def test_confirm_webhook(make_client):
    client = make_client(make_response(200, envelope({"webhookUrl": "https://shop.vn/hook"})))

    assert client.webhooks.confirm("https://shop.vn/hook") == {"webhookUrl": "https://shop.vn/hook"}
    call = client.session.calls[0]
    assert call.url == f"{BASE_URL}/confirm-webhook"
    assert call.json == {"webhookUrl": "https://shop.vn/hook"}


def test_confirm_webhook_requires_url(make_client):
    client = make_client()

    with pytest.raises(PayOSError) as caught:
        client.webhooks.confirm("")

    assert caught.value.kind is ErrorKind.WEBHOOK
    assert client.session.calls == []


def test_confirm_webhook_keeps_abort(make_client):
    client = make_client()
    event = threading.Event()
    event.set()

    with pytest.raises(PayOSError) as caught:
        client.webhooks.confirm("https://shop.vn/hook", RequestOptions(cancel_event=event))

    assert caught.value.kind is ErrorKind.ABORTED
    assert client.session.calls == []


def test_confirm_webhook_keeps_timeout(make_client):
    client = make_client(requests.Timeout(), max_retries=0)

    with pytest.raises(PayOSError) as caught:
        client.webhooks.confirm("https://shop.vn/hook")

    assert caught.value.kind is ErrorKind.TIMEOUT


def test_confirm_webhook_keeps_signature_failure(make_client):
    data = {"webhookUrl": "https://shop.vn/hook"}
    client = make_client(make_response(200, envelope(data, signature="0" * 64)))

    with pytest.raises(PayOSError) as caught:
        client.webhooks.confirm(
            "https://shop.vn/hook",
            RequestOptions(signature=SignatureConfig(response="body")),
        )

    assert caught.value.kind is ErrorKind.INVALID_SIGNATURE


def test_confirm_webhook_wraps_failures(make_client):
    client = make_client(make_response(400, {"code": "20", "desc": "Webhook unreachable"}))

    with pytest.raises(PayOSError) as caught:
        client.webhooks.confirm("https://shop.vn/hook")

    error = caught.value
    assert error.kind is ErrorKind.WEBHOOK
    assert error.status_code == 400
    assert error.error_code == "20"
    assert str(error) == "Webhook validation failed: Webhook unreachable"
    assert error.__cause__.kind is ErrorKind.BAD_REQUEST


def test_verify_webhook(make_client):
    data = {"orderCode": 123, "amount": 2000, "description": "VQR 123", "code": "00"}
    client = make_client()
    webhook = {"code": "00", "desc": "success", "success": True, "data": data, "signature": sign_body(data, CHECKSUM_KEY)}

    assert client.webhooks.verify(webhook) == data


def test_verify_webhook_accepts_empty_data_object(make_client):
    webhook = {"data": {}, "signature": sign_body({}, CHECKSUM_KEY)}

    assert make_client().webhooks.verify(webhook) == {}


@pytest.mark.parametrize(
    "webhook, message",
    [
        ({"signature": "abc"}, "Invalid webhook data"),
        ({"data": {"orderCode": 1}}, "Invalid signature"),
        ({"data": {"orderCode": 1}, "signature": "0" * 64}, "Data not integrity"),
    ],
)
def test_verify_webhook_rejects(make_client, webhook, message):
    with pytest.raises(PayOSError) as caught:
        make_client().webhooks.verify(webhook)

    assert caught.value.kind is ErrorKind.WEBHOOK
    assert str(caught.value) == message
