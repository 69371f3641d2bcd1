"""
Error taxonomy shared by every part of the payOS client.

Every failure surfaces as a single :class:`PayOSError` tagged with an
:class:`ErrorKind`. Callers switch on ``error.kind`` (or ``error.category``)
instead of catching a family of exception subclasses.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping, Optional, Sequence

__all__ = [
    "ErrorCategory",
    "ErrorKind",
    "PayOSError",
    "error_for_status",
]


class ErrorCategory(str, Enum):
    CONSTRUCTION = "construction"
    TRANSPORT = "transport"
    HTTP = "http"
    APPLICATION = "application"
    SIGNATURE = "signature"
    PAGINATION = "pagination"
    WEBHOOK = "webhook"


class ErrorKind(str, Enum):
    INVALID_CONFIG = "invalid_config"
    INVALID_INPUT = "invalid_input"
    MISSING_FIELD = "missing_field"

    TIMEOUT = "timeout"
    CONNECTION_FAILED = "connection_failed"
    ABORTED = "aborted"

    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    TOO_MANY_REQUESTS = "too_many_requests"
    SERVER_ERROR = "server_error"
    API_ERROR = "api_error"

    APPLICATION_ERROR = "application_error"

    INVALID_SIGNATURE = "invalid_signature"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"

    NO_MORE_PAGES = "no_more_pages"
    NO_PREVIOUS_PAGES = "no_previous_pages"

    WEBHOOK = "webhook"

    @property
    def category(self) -> ErrorCategory:
        return _CATEGORIES[self]


_CATEGORIES = {
    ErrorKind.INVALID_CONFIG: ErrorCategory.CONSTRUCTION,
    ErrorKind.INVALID_INPUT: ErrorCategory.CONSTRUCTION,
    ErrorKind.MISSING_FIELD: ErrorCategory.CONSTRUCTION,
    ErrorKind.TIMEOUT: ErrorCategory.TRANSPORT,
    ErrorKind.CONNECTION_FAILED: ErrorCategory.TRANSPORT,
    ErrorKind.ABORTED: ErrorCategory.TRANSPORT,
    ErrorKind.BAD_REQUEST: ErrorCategory.HTTP,
    ErrorKind.UNAUTHORIZED: ErrorCategory.HTTP,
    ErrorKind.FORBIDDEN: ErrorCategory.HTTP,
    ErrorKind.NOT_FOUND: ErrorCategory.HTTP,
    ErrorKind.TOO_MANY_REQUESTS: ErrorCategory.HTTP,
    ErrorKind.SERVER_ERROR: ErrorCategory.HTTP,
    ErrorKind.API_ERROR: ErrorCategory.HTTP,
    ErrorKind.APPLICATION_ERROR: ErrorCategory.APPLICATION,
    ErrorKind.INVALID_SIGNATURE: ErrorCategory.SIGNATURE,
    ErrorKind.UNSUPPORTED_ALGORITHM: ErrorCategory.SIGNATURE,
    ErrorKind.NO_MORE_PAGES: ErrorCategory.PAGINATION,
    ErrorKind.NO_PREVIOUS_PAGES: ErrorCategory.PAGINATION,
    ErrorKind.WEBHOOK: ErrorCategory.WEBHOOK,
}

_RETRYABLE_KINDS = frozenset(
    {
        ErrorKind.TIMEOUT,
        ErrorKind.CONNECTION_FAILED,
        ErrorKind.TOO_MANY_REQUESTS,
        ErrorKind.SERVER_ERROR,
    }
)

_DEFAULT_MESSAGES = {
    ErrorKind.TIMEOUT: "Request timed out",
    ErrorKind.CONNECTION_FAILED: "Connection error",
    ErrorKind.ABORTED: "Request was aborted",
    ErrorKind.INVALID_SIGNATURE: "Invalid signature",
    ErrorKind.WEBHOOK: "Webhook error",
}


class PayOSError(Exception):
    """
    Raised for every failure detected by the client.

    ``kind`` identifies the failure; the remaining attributes are populated
    when the failure site knows them (HTTP status, envelope code and
    description, response headers, missing request fields).
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: Optional[str] = None,
        *,
        status_code: Optional[int] = None,
        error_code: Optional[str] = None,
        error_description: Optional[str] = None,
        headers: Optional[Mapping[str, Any]] = None,
        missing_fields: Optional[Sequence[str]] = None,
    ) -> None:
        self.kind = kind
        self.status_code = status_code
        self.error_code = error_code
        self.error_description = error_description
        self.headers = dict(headers) if headers is not None else None
        self.missing_fields = list(missing_fields) if missing_fields else []
        self.message = (
            message
            or error_description
            or _DEFAULT_MESSAGES.get(kind)
            or "API request failed"
        )
        super().__init__(self.message)

    @property
    def category(self) -> ErrorCategory:
        return self.kind.category

    @property
    def is_retryable(self) -> bool:
        return self.kind in _RETRYABLE_KINDS

    def __repr__(self) -> str:
        parts = [f"kind={self.kind.value}"]
        if self.status_code is not None:
            parts.append(f"status_code={self.status_code}")
        if self.error_code is not None:
            parts.append(f"error_code={self.error_code!r}")
        parts.append(f"message={self.message!r}")
        return f"PayOSError({', '.join(parts)})"


def error_for_status(
    status_code: int,
    headers: Optional[Mapping[str, Any]] = None,
    *,
    error_code: Optional[str] = None,
    error_description: Optional[str] = None,
) -> PayOSError:
    """Map a non-successful HTTP status onto the matching error kind."""
    if status_code == 400:
        kind = ErrorKind.BAD_REQUEST
    elif status_code == 401:
        kind = ErrorKind.UNAUTHORIZED
    elif status_code == 403:
        kind = ErrorKind.FORBIDDEN
    elif status_code == 404:
        kind = ErrorKind.NOT_FOUND
    elif status_code == 429:
        kind = ErrorKind.TOO_MANY_REQUESTS
    elif status_code >= 500:
        kind = ErrorKind.SERVER_ERROR
    else:
        kind = ErrorKind.API_ERROR
    return PayOSError(
        kind,
        error_description or f"{status_code} status code",
        status_code=status_code,
        error_code=error_code,
        error_description=error_description,
        headers=headers,
    )
