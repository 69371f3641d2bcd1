"""
HTTP client for the payOS merchant API.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any, Callable, Optional

import requests

from .config import PayOSConfig, RequestOptions, merge_options, resolve_log_level
from .pipeline import FileDownload, RequestDescriptor, RequestPipeline
from .retry import RetryPolicy
from .signing import Signer

__all__ = ["PayOSClient"]

_client_numbers = itertools.count(1)


def _client_logger(level_name: Optional[str]) -> logging.Logger:
    """
    A logger private to one client, below ``payos`` so application handlers
    and levels still apply. ``PAYOS_LOG`` only changes this logger.
    """
    client_logger = logging.getLogger(f"payos.client.{next(_client_numbers)}")
    if level_name is not None:
        level = resolve_log_level(level_name)
        if level is None:
            client_logger.disabled = True
        else:
            client_logger.setLevel(level)
    return client_logger


class PayOSClient:
    """
    Entry point for the payOS API.

    Owns the HTTP session (unless one is supplied), the request pipeline and
    the resource wrappers exposed as attributes.
    """

    def __init__(
        self,
        config: PayOSConfig,
        *,
        session: Optional[requests.Session] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ) -> None:
        from ..resources import PaymentRequests, Payouts, PayoutsAccount, Webhooks

        self.config = config
        self._owns_session = session is None
        self.session = session or requests.Session()
        self.signer = Signer(config.checksum_key)
        self.logger = _client_logger(config.log_level)
        self.pipeline = RequestPipeline(
            config,
            self.session,
            self.signer,
            retry_policy=retry_policy,
            sleep=sleep,
            logger=self.logger,
        )

        self.payment_requests = PaymentRequests(self)
        self.webhooks = Webhooks(self)
        self.payouts = Payouts(self)
        self.payouts_account = PayoutsAccount(self)

    @property
    def checksum_key(self) -> str:
        return self.config.checksum_key

    def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        defaults: Optional[RequestOptions] = None,
        options: Optional[RequestOptions] = None,
        idempotent: bool = False,
    ) -> Any:
        """
        Issue a call through the pipeline and return the envelope data.

        ``defaults`` carries the resource's own settings (usually its signature
        modes); ``options`` are the caller's per-call overrides and win.
        """
        descriptor = RequestDescriptor.build(
            method,
            path,
            body=body,
            options=merge_options(defaults, options),
            idempotent=idempotent,
        )
        return self.pipeline.execute(descriptor)

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: Any) -> Any:
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: Any) -> Any:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def download(self, path: str, options: Optional[RequestOptions] = None) -> FileDownload:
        descriptor = RequestDescriptor.build("GET", path, options=options)
        return self.pipeline.execute_raw(descriptor)

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "PayOSClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"PayOSClient(client_id={self.config.client_id!r}, base_url={self.config.base_url!r})"
