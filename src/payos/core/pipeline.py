"""
The request/response pipeline shared by every payOS resource.

One logical call moves through BUILD (headers, signing), SEND (one HTTP
attempt), then either returns, waits and sends again, or raises a
:class:`~payos.core.errors.PayOSError`. Attempts of a call are strictly
sequential and reuse the same signed body and idempotency key.
"""

from __future__ import annotations

import logging
import random
import threading
import time
from dataclasses import dataclass, field, replace
from email.message import Message
from typing import Any, Callable, Dict, Mapping, Optional
from urllib.parse import quote

import requests

from .canonical import render_scalar
from .config import PayOSConfig, RequestOptions
from .errors import ErrorKind, PayOSError, error_for_status
from .retry import RetryPolicy, RetryState
from .signing import (
    RequestSignature,
    ResponseSignature,
    SignatureConfig,
    Signer,
    create_idempotency_key,
    verify,
)

__all__ = [
    "Envelope",
    "FileDownload",
    "RequestDescriptor",
    "RequestPipeline",
    "SUCCESS_CODE",
]

SUCCESS_CODE = "00"
SIGNATURE_HEADER = "x-signature"
IDEMPOTENCY_HEADER = "x-idempotency-key"
_DOWNLOAD_CHUNK_SIZE = 64 * 1024


def _new_correlation_id() -> str:
    return f"log_{random.getrandbits(24):06x}"


@dataclass(frozen=True)
class RequestDescriptor:
    """
    Everything needed to issue one logical call.

    A descriptor is never mutated; each retry works on a copy carrying a new
    correlation id (see :meth:`for_attempt`).
    """

    method: str
    path: str
    query: Mapping[str, Any] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    signature: SignatureConfig = field(default_factory=SignatureConfig)
    max_retries: Optional[int] = None
    timeout_ms: Optional[int] = None
    cancel_event: Optional[threading.Event] = None
    idempotency_key: Optional[str] = None
    idempotent: bool = False
    correlation_id: Optional[str] = None

    @classmethod
    def build(
        cls,
        method: str,
        path: str,
        *,
        body: Any = None,
        options: Optional[RequestOptions] = None,
        idempotent: bool = False,
    ) -> "RequestDescriptor":
        options = options or RequestOptions()
        if options.timeout_ms is not None and options.timeout_ms <= 0:
            raise PayOSError(
                ErrorKind.INVALID_INPUT,
                f"timeout_ms must be greater than zero, got {options.timeout_ms}",
            )
        return cls(
            method=method.upper(),
            path=path,
            query=dict(options.query or {}),
            headers=dict(options.headers or {}),
            body=body,
            signature=options.signature or SignatureConfig(),
            max_retries=options.max_retries,
            timeout_ms=options.timeout_ms,
            cancel_event=options.cancel_event,
            idempotency_key=options.idempotency_key,
            idempotent=idempotent,
        )

    def for_attempt(self, correlation_id: str) -> "RequestDescriptor":
        return replace(self, correlation_id=correlation_id)

    @property
    def cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


@dataclass(frozen=True)
class Envelope:
    """The ``{code, desc, data, signature}`` wrapper around every response body."""

    code: Optional[str]
    desc: Optional[str]
    data: Any
    signature: Optional[str]

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Envelope":
        code = payload.get("code")
        return cls(
            code=None if code is None else str(code),
            desc=payload.get("desc"),
            data=payload.get("data"),
            signature=payload.get("signature"),
        )

    @property
    def is_success(self) -> bool:
        return self.code == SUCCESS_CODE and self.data is not None


@dataclass(frozen=True)
class FileDownload:
    content: bytes = field(repr=False)
    content_type: Optional[str] = None
    filename: Optional[str] = None
    content_length: Optional[int] = None


@dataclass(frozen=True)
class _PreparedRequest:
    url: str
    headers: Mapping[str, str]
    body: Any


def _filename_from_disposition(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    message = Message()
    message["content-disposition"] = value
    filename = message.get_filename()
    return filename.strip('"') if filename else None


def _content_length(value: Optional[str]) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except ValueError:
        return None


class RequestPipeline:
    """
    Builds, sends, retries and unwraps payOS requests.

    ``session`` is any :class:`requests.Session`-compatible object. ``sleep``
    is used for backoff waits when the call has no cancellation event.
    ``logger`` defaults to this module's logger; clients pass their own.
    """

    def __init__(
        self,
        config: PayOSConfig,
        session: requests.Session,
        signer: Signer,
        *,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float], None]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config
        self.logger = logger or logging.getLogger(__name__)
        self.session = session
        self.signer = signer
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep or time.sleep

    def execute(self, descriptor: RequestDescriptor) -> Any:
        """Run one logical call and return the envelope's ``data``."""
        prepared = self._prepare(descriptor)
        response = self._send(descriptor, prepared, stream=False)
        try:
            return self._unwrap(response, descriptor.signature)
        finally:
            response.close()

    def execute_raw(self, descriptor: RequestDescriptor) -> FileDownload:
        """Run one logical call and return the raw body as a file download."""
        prepared = self._prepare(descriptor)
        response = self._send(descriptor, prepared, stream=True)
        buffer = bytearray()
        try:
            for chunk in response.iter_content(chunk_size=_DOWNLOAD_CHUNK_SIZE):
                if descriptor.cancelled:
                    raise PayOSError(ErrorKind.ABORTED)
                buffer.extend(chunk)
        except requests.RequestException as exc:
            raise PayOSError(
                ErrorKind.CONNECTION_FAILED,
                "Connection error occurred while downloading",
            ) from exc
        finally:
            response.close()

        content_type = response.headers.get("Content-Type")
        if content_type:
            content_type = content_type.split(";", 1)[0].strip() or None
        return FileDownload(
            content=bytes(buffer),
            content_type=content_type,
            filename=_filename_from_disposition(response.headers.get("Content-Disposition")),
            content_length=_content_length(response.headers.get("Content-Length")),
        )

    def build_url(self, path: str, query: Optional[Mapping[str, Any]] = None) -> str:
        url = self.config.base_url + (path if path.startswith("/") else f"/{path}")
        if query:
            url += "?" + "&".join(
                f"{quote(str(key), safe='')}={quote(render_scalar(value), safe='')}"
                for key, value in query.items()
            )
        return url

    def _prepare(self, descriptor: RequestDescriptor) -> _PreparedRequest:
        headers: Dict[str, str] = self.config.base_headers()
        idempotency_key = descriptor.idempotency_key
        if idempotency_key is None and descriptor.idempotent:
            idempotency_key = create_idempotency_key()
        if idempotency_key is not None:
            headers[IDEMPOTENCY_HEADER] = idempotency_key
        headers.update(descriptor.headers)

        body = descriptor.body
        mode = descriptor.signature.request
        if mode is not RequestSignature.NONE:
            if body is None:
                raise PayOSError(
                    ErrorKind.INVALID_INPUT,
                    f"Request signature '{mode.value}' requires a request body",
                )
            signature = self.signer.sign_request(mode, body)
            if mode is RequestSignature.HEADER:
                headers[SIGNATURE_HEADER] = signature
            else:
                if not isinstance(body, Mapping):
                    raise PayOSError(
                        ErrorKind.INVALID_INPUT,
                        f"Request signature '{mode.value}' requires an object body",
                    )
                body = {**body, "signature": signature}

        return _PreparedRequest(
            url=self.build_url(descriptor.path, descriptor.query),
            headers=headers,
            body=body,
        )

    def _effective_max_retries(self, descriptor: RequestDescriptor) -> int:
        if descriptor.max_retries is None:
            return self.config.max_retries
        return max(0, min(descriptor.max_retries, self.config.max_retries))

    def _effective_timeout(self, descriptor: RequestDescriptor) -> float:
        timeout_ms = self.config.timeout_ms if descriptor.timeout_ms is None else descriptor.timeout_ms
        return timeout_ms / 1000

    def _wait(self, delay_ms: float, descriptor: RequestDescriptor) -> None:
        seconds = delay_ms / 1000
        if descriptor.cancel_event is None:
            self._sleep(seconds)
        elif descriptor.cancel_event.wait(seconds):
            raise PayOSError(ErrorKind.ABORTED)

    def _send(
        self,
        descriptor: RequestDescriptor,
        prepared: _PreparedRequest,
        *,
        stream: bool,
    ) -> requests.Response:
        max_retries = self._effective_max_retries(descriptor)
        state = RetryState(max_retries=max_retries, correlation_id=_new_correlation_id())
        attempt = descriptor.for_attempt(state.correlation_id)
        timeout = self._effective_timeout(descriptor)

        while True:
            if attempt.cancelled:
                raise PayOSError(ErrorKind.ABORTED)
            state.attempt_count += 1
            self.logger.debug(
                "[%s] Making %s request to %s. Retries remaining: %d",
                attempt.correlation_id,
                attempt.method,
                attempt.path,
                state.retries_remaining,
            )
            try:
                response = self.session.request(
                    attempt.method,
                    prepared.url,
                    headers=dict(prepared.headers),
                    json=prepared.body,
                    timeout=timeout,
                    stream=stream,
                )
            except requests.RequestException as exc:
                if attempt.cancelled:
                    raise PayOSError(ErrorKind.ABORTED) from exc
                if not self.retry_policy.should_retry(exc, state.retries_remaining):
                    raise self._transport_error(exc) from exc
                state.retries_remaining -= 1
                delay = self.retry_policy.next_delay_ms(None, max_retries, state.retries_remaining)
                self.logger.warning(
                    "[%s] %s: %s, retrying in %.0fms. Retries remaining: %d",
                    attempt.correlation_id,
                    "Request timeout" if isinstance(exc, requests.Timeout) else "Connection error",
                    exc,
                    delay,
                    state.retries_remaining,
                )
                self._wait(delay, attempt)
                attempt = attempt.for_attempt(
                    f"{_new_correlation_id()} (retry of {state.correlation_id})"
                )
                continue

            if attempt.cancelled:
                response.close()
                raise PayOSError(ErrorKind.ABORTED)

            status = response.status_code
            if 200 <= status < 300:
                self.logger.debug(
                    "[%s] Request succeeded with status %d after %d attempt(s)",
                    attempt.correlation_id,
                    status,
                    state.attempt_count,
                )
                return response

            if self.retry_policy.should_retry(status, state.retries_remaining):
                state.retries_remaining -= 1
                delay = self.retry_policy.next_delay_ms(
                    response.headers, max_retries, state.retries_remaining
                )
                self.logger.warning(
                    "[%s] Request failed with status %d, retrying in %.0fms. Retries remaining: %d",
                    attempt.correlation_id,
                    status,
                    delay,
                    state.retries_remaining,
                )
                response.close()
                self._wait(delay, attempt)
                attempt = attempt.for_attempt(
                    f"{_new_correlation_id()} (retry of {state.correlation_id})"
                )
                continue

            self.logger.warning(
                "[%s] Request failed with status %d, no retries %s",
                attempt.correlation_id,
                status,
                "remaining" if self.retry_policy.is_retryable(status) else "allowed for this status",
            )
            raise self._http_error(response)

    @staticmethod
    def _transport_error(exc: requests.RequestException) -> PayOSError:
        if isinstance(exc, requests.Timeout):
            return PayOSError(ErrorKind.TIMEOUT)
        return PayOSError(ErrorKind.CONNECTION_FAILED, "Connection error occurred")

    @staticmethod
    def _http_error(response: requests.Response) -> PayOSError:
        error_code = error_description = None
        try:
            payload = response.json()
        except (ValueError, requests.RequestException):
            payload = None
        if isinstance(payload, Mapping):
            code = payload.get("code")
            error_code = None if code is None else str(code)
            error_description = payload.get("desc")
        headers = dict(response.headers)
        response.close()
        return error_for_status(
            response.status_code,
            headers,
            error_code=error_code,
            error_description=error_description,
        )

    def _unwrap(self, response: requests.Response, signature: SignatureConfig) -> Any:
        try:
            payload = response.json()
        except ValueError as exc:
            raise PayOSError(
                ErrorKind.API_ERROR,
                f"Failed to deserialize response: {exc}",
                status_code=response.status_code,
                headers=dict(response.headers),
            ) from exc
        if not isinstance(payload, Mapping):
            raise PayOSError(
                ErrorKind.API_ERROR,
                "Failed to deserialize response: expected a JSON object",
                status_code=response.status_code,
                headers=dict(response.headers),
            )

        envelope = Envelope.from_payload(payload)
        if not envelope.is_success:
            raise PayOSError(
                ErrorKind.APPLICATION_ERROR,
                status_code=response.status_code,
                error_code=envelope.code,
                error_description=envelope.desc or "Unknown error",
                headers=dict(response.headers),
            )

        self._verify_response(envelope, response.headers, signature.response)
        return envelope.data

    def _verify_response(
        self,
        envelope: Envelope,
        headers: Mapping[str, str],
        mode: ResponseSignature,
    ) -> None:
        if mode is ResponseSignature.NONE:
            return
        if mode is ResponseSignature.BODY:
            received = envelope.signature
        else:
            received = headers.get(SIGNATURE_HEADER)
        if not received:
            self.logger.debug("Response carries no %s signature; skipping verification", mode.value)
            return

        try:
            expected = self.signer.sign_response(mode, envelope.data)
        except PayOSError as exc:
            raise PayOSError(
                ErrorKind.INVALID_SIGNATURE,
                f"Could not recompute response signature: {exc.message}",
            ) from exc
        if not verify(expected, received):
            raise PayOSError(ErrorKind.INVALID_SIGNATURE, "Data integrity check failed")
