"""
Public, high-level helpers for constructing a payOS client.
"""

from __future__ import annotations

from typing import Mapping, Optional

import requests

from .core.client import PayOSClient
from .core.config import ClientParameters, ConfigError, PayOSConfig, load_config
from .core.retry import RetryPolicy

__all__ = [
    "ConfigError",
    "PayOSClient",
    "PayOSConfig",
    "create_client",
]


def create_client(
    *,
    config: Optional[PayOSConfig] = None,
    session: Optional[requests.Session] = None,
    retry_policy: Optional[RetryPolicy] = None,
    env_file: Optional[str] = ".env",
    overrides: Optional[Mapping[str, str]] = None,
    base: Optional[Mapping[str, str]] = None,
    parameters: Optional[ClientParameters] = None,
    client_id: Optional[str] = None,
    api_key: Optional[str] = None,
    checksum_key: Optional[str] = None,
    partner_code: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout_ms: Optional[int | str] = None,
    max_retries: Optional[int | str] = None,
    log_level: Optional[str] = None,
    default_headers: Optional[Mapping[str, str]] = None,
) -> PayOSClient:
    """
    Construct a :class:`PayOSClient`.

    Callers can either supply a ready-made :class:`PayOSConfig` or let the
    helper assemble one from environment data and keyword arguments.
    """
    if config is not None:
        extras = (
            overrides,
            base,
            parameters,
            client_id,
            api_key,
            checksum_key,
            partner_code,
            base_url,
            timeout_ms,
            max_retries,
            log_level,
            default_headers,
        )
        if any(item is not None and item != {} for item in extras):
            raise ValueError(
                "Provide either a pre-built PayOSConfig or individual parameters, not both."
            )
        cfg = config
    else:
        cfg = load_config(
            env_file=env_file,
            overrides=overrides,
            base=base,
            parameters=parameters,
            client_id=client_id,
            api_key=api_key,
            checksum_key=checksum_key,
            partner_code=partner_code,
            base_url=base_url,
            timeout_ms=timeout_ms,
            max_retries=max_retries,
            log_level=log_level,
            default_headers=default_headers,
        )
    return PayOSClient(cfg, session=session, retry_policy=retry_policy)
