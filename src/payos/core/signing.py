"""
HMAC signing and verification for payOS payloads.
"""

from __future__ import annotations

import hashlib
import hmac
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from .canonical import flatten, render_scalar, sort_top_level, to_query_string
from .errors import ErrorKind, PayOSError

__all__ = [
    "HeaderSignatureOptions",
    "PAYMENT_REQUEST_FIELDS",
    "RequestSignature",
    "ResponseSignature",
    "SignatureConfig",
    "Signer",
    "create_idempotency_key",
    "sign_body",
    "sign_header",
    "sign_payment_request",
    "verify",
]

PAYMENT_REQUEST_FIELDS = ("amount", "cancelUrl", "description", "orderCode", "returnUrl")

_ALGORITHMS = {
    "SHA256": hashlib.sha256,
    "SHA1": hashlib.sha1,
    "SHA512": hashlib.sha512,
}


class RequestSignature(str, Enum):
    """Where the outgoing request carries its signature."""

    NONE = "none"
    BODY = "body"
    HEADER = "header"
    CREATE_PAYMENT_LINK = "create-payment-link"


class ResponseSignature(str, Enum):
    """Where the response signature is expected."""

    NONE = "none"
    BODY = "body"
    HEADER = "header"


def _coerce(enum_type, value, label: str):
    if value is None:
        return enum_type.NONE
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_type)
        raise PayOSError(
            ErrorKind.INVALID_CONFIG,
            f"Invalid {label} signature type {value!r}; expected one of: {allowed}",
        ) from exc


@dataclass(frozen=True)
class SignatureConfig:
    """
    The ``(request, response)`` signature pair applied to one call.

    Plain strings such as ``"body"`` are accepted and converted; anything
    outside the known modes is rejected when the config is built.
    """

    request: RequestSignature = RequestSignature.NONE
    response: ResponseSignature = ResponseSignature.NONE

    def __post_init__(self) -> None:
        object.__setattr__(self, "request", _coerce(RequestSignature, self.request, "request"))
        object.__setattr__(
            self, "response", _coerce(ResponseSignature, self.response, "response")
        )


@dataclass(frozen=True)
class HeaderSignatureOptions:
    encode_uri: bool = True
    sort_arrays: bool = False
    algorithm: str = "SHA256"


def _require_key(key: Optional[str]) -> None:
    if key is None or not str(key).strip():
        raise PayOSError(ErrorKind.INVALID_INPUT, "Signing key must not be empty")


def _hmac_hex(algorithm: str, key: str, message: str) -> str:
    try:
        digestmod = _ALGORITHMS[algorithm.upper()]
    except (KeyError, AttributeError) as exc:
        raise PayOSError(
            ErrorKind.UNSUPPORTED_ALGORITHM,
            f"Algorithm '{algorithm}' is not supported. "
            "Supported algorithms: SHA256, SHA1, SHA512",
        ) from exc
    return hmac.new(key.encode("utf-8"), message.encode("utf-8"), digestmod).hexdigest()


def sign_body(data: Any, key: str) -> str:
    """Signature used for ``body`` requests, responses and webhooks."""
    if data is None:
        raise PayOSError(ErrorKind.INVALID_INPUT, "Data to sign must not be None")
    _require_key(key)
    return _hmac_hex("SHA256", key, to_query_string(flatten(data)))


def sign_payment_request(data: Mapping[str, Any], key: str) -> str:
    """
    Signature for payment link creation.

    Only the five :data:`PAYMENT_REQUEST_FIELDS` take part, always in that
    order, regardless of what else ``data`` holds.
    """
    if data is None:
        raise PayOSError(ErrorKind.INVALID_INPUT, "Payment request data must not be None")
    _require_key(key)
    missing = [name for name in PAYMENT_REQUEST_FIELDS if name not in data]
    if missing:
        raise PayOSError(
            ErrorKind.MISSING_FIELD,
            f"Payment request data missing required fields: {', '.join(missing)}",
            missing_fields=missing,
        )
    message = "&".join(f"{name}={render_scalar(data[name])}" for name in PAYMENT_REQUEST_FIELDS)
    return _hmac_hex("SHA256", key, message)


def sign_header(
    key: str,
    data: Any,
    options: Optional[HeaderSignatureOptions] = None,
) -> str:
    """Signature sent in (and checked against) the ``x-signature`` header."""
    _require_key(key)
    if data is None:
        raise PayOSError(ErrorKind.INVALID_INPUT, "Data to sign must not be None")
    options = options or HeaderSignatureOptions()
    pairs = sort_top_level(data, sort_arrays=options.sort_arrays)
    return _hmac_hex(options.algorithm, key, to_query_string(pairs, encode_uri=options.encode_uri))


def verify(expected: Optional[str], actual: Optional[str]) -> bool:
    """Constant-time, case-sensitive signature comparison."""
    if expected is None or actual is None:
        return False
    return hmac.compare_digest(expected.encode("utf-8"), actual.encode("utf-8"))


def create_idempotency_key() -> str:
    return str(uuid.uuid4())


class Signer:
    """Binds the checksum key so callers can sign without passing it around."""

    def __init__(self, checksum_key: str) -> None:
        _require_key(checksum_key)
        self._key = checksum_key

    def sign_body(self, data: Any) -> str:
        return sign_body(data, self._key)

    def sign_payment_request(self, data: Mapping[str, Any]) -> str:
        return sign_payment_request(data, self._key)

    def sign_header(self, data: Any, options: Optional[HeaderSignatureOptions] = None) -> str:
        return sign_header(self._key, data, options)

    def sign_request(
        self, mode: Union[RequestSignature, str], data: Any
    ) -> Optional[str]:
        """Sign ``data`` for an outgoing request, or return ``None`` for ``none``."""
        mode = _coerce(RequestSignature, mode, "request")
        if mode is RequestSignature.NONE:
            return None
        if mode is RequestSignature.CREATE_PAYMENT_LINK:
            return self.sign_payment_request(data)
        if mode is RequestSignature.BODY:
            return self.sign_body(data)
        return self.sign_header(data)

    def sign_response(self, mode: Union[ResponseSignature, str], data: Any) -> Optional[str]:
        mode = _coerce(ResponseSignature, mode, "response")
        if mode is ResponseSignature.NONE:
            return None
        if mode is ResponseSignature.BODY:
            return self.sign_body(data)
        return self.sign_header(data)

    def verify(self, expected: Optional[str], actual: Optional[str]) -> bool:
        return verify(expected, actual)

    def __repr__(self) -> str:
        return "Signer(checksum_key=***)"
