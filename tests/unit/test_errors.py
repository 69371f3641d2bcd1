from __future__ import annotations

import pytest

from payos.core.errors import ErrorCategory, ErrorKind, PayOSError, error_for_status


@pytest.mark.parametrize(
    "status, kind",
    [
        (400, ErrorKind.BAD_REQUEST),
        (401, ErrorKind.UNAUTHORIZED),
        (403, ErrorKind.FORBIDDEN),
        (404, ErrorKind.NOT_FOUND),
        (429, ErrorKind.TOO_MANY_REQUESTS),
        (500, ErrorKind.SERVER_ERROR),
        (503, ErrorKind.SERVER_ERROR),
        (409, ErrorKind.API_ERROR),
    ],
)
def test_error_for_status(status, kind):
    error = error_for_status(status, {"x-request-id": "r1"})

    assert error.kind is kind
    assert error.category is ErrorCategory.HTTP
    assert error.status_code == status
    assert error.headers == {"x-request-id": "r1"}
    assert error.message == f"{status} status code"


def test_error_for_status_prefers_description():
    error = error_for_status(400, error_code="21", error_description="Amount too small")

    assert str(error) == "Amount too small"
    assert error.error_code == "21"


@pytest.mark.parametrize(
    "kind, category",
    [
        (ErrorKind.INVALID_CONFIG, ErrorCategory.CONSTRUCTION),
        (ErrorKind.MISSING_FIELD, ErrorCategory.CONSTRUCTION),
        (ErrorKind.ABORTED, ErrorCategory.TRANSPORT),
        (ErrorKind.APPLICATION_ERROR, ErrorCategory.APPLICATION),
        (ErrorKind.UNSUPPORTED_ALGORITHM, ErrorCategory.SIGNATURE),
        (ErrorKind.NO_MORE_PAGES, ErrorCategory.PAGINATION),
        (ErrorKind.WEBHOOK, ErrorCategory.WEBHOOK),
    ],
)
def test_every_kind_has_a_category(kind, category):
    assert kind.category is category
    assert PayOSError(kind).category is category


def test_retryable_kinds():
    retryable = {kind for kind in ErrorKind if PayOSError(kind).is_retryable}

    assert retryable == {
        ErrorKind.TIMEOUT,
        ErrorKind.CONNECTION_FAILED,
        ErrorKind.TOO_MANY_REQUESTS,
        ErrorKind.SERVER_ERROR,
    }


def test_default_messages():
    assert str(PayOSError(ErrorKind.TIMEOUT)) == "Request timed out"
    assert str(PayOSError(ErrorKind.ABORTED)) == "Request was aborted"
    assert str(PayOSError(ErrorKind.API_ERROR)) == "API request failed"


def test_repr_includes_structured_fields():
    error = PayOSError(ErrorKind.APPLICATION_ERROR, status_code=200, error_code="14", error_description="Nope")

    assert repr(error) == "PayOSError(kind=application_error, status_code=200, error_code='14', message='Nope')"
