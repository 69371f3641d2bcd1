"""
Configuration objects and helpers for the payOS client.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .._version import __version__
from .environment import build_environment
from .errors import ErrorKind, PayOSError
from .signing import SignatureConfig

__all__ = [
    "ClientParameters",
    "ConfigError",
    "DEFAULT_BASE_URL",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_TIMEOUT_MS",
    "PayOSConfig",
    "RequestOptions",
    "load_config",
    "merge_options",
    "resolve_log_level",
]

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api-merchant.payos.vn"
DEFAULT_TIMEOUT_MS = 60_000
DEFAULT_MAX_RETRIES = 2

_PARAMETER_TO_ENV_KEY = {
    "client_id": "PAYOS_CLIENT_ID",
    "api_key": "PAYOS_API_KEY",
    "checksum_key": "PAYOS_CHECKSUM_KEY",
    "partner_code": "PAYOS_PARTNER_CODE",
    "base_url": "PAYOS_BASE_URL",
    "timeout_ms": "PAYOS_TIMEOUT_MS",
    "max_retries": "PAYOS_MAX_RETRIES",
    "log_level": "PAYOS_LOG",
}

# Level names accepted by PAYOS_LOG; NONE turns the client's logging off.
_LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "INFORMATION": logging.INFO,
    "DEBUG": logging.DEBUG,
    "TRACE": logging.DEBUG,
    "NONE": None,
}


def _stringify(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ConfigError(PayOSError):
    """Raised when the supplied configuration is invalid."""

    def __init__(self, message: str) -> None:
        super().__init__(ErrorKind.INVALID_CONFIG, message)


@dataclass(frozen=True)
class ClientParameters:
    """
    Explicit parameter bundle for constructing :class:`PayOSConfig`.

    Callers can either instantiate this helper or pass the individual keyword
    arguments directly to :func:`load_config`.
    """

    client_id: Optional[str] = None
    api_key: Optional[str] = None
    checksum_key: Optional[str] = None
    partner_code: Optional[str] = None
    base_url: Optional[str] = None
    timeout_ms: Optional[int | str] = None
    max_retries: Optional[int | str] = None
    log_level: Optional[str] = None

    def as_overrides(self) -> Dict[str, str]:
        overrides: Dict[str, str] = {}
        for field_name, env_key in _PARAMETER_TO_ENV_KEY.items():
            value = getattr(self, field_name)
            if value is None:
                continue
            overrides[env_key] = _stringify(value)
        return overrides


def _collect_parameter_overrides(
    parameters: Optional[ClientParameters],
    explicit: Mapping[str, Any],
) -> Dict[str, str]:
    overrides: Dict[str, str] = {}
    if parameters is not None:
        overrides.update(parameters.as_overrides())

    for key, value in explicit.items():
        if value is None:
            continue
        try:
            env_key = _PARAMETER_TO_ENV_KEY[key]
        except KeyError as exc:  # pragma: no cover - only reachable through a typo here
            raise TypeError(f"Unknown client parameter '{key}'") from exc
        overrides[env_key] = _stringify(value)
    return overrides


def _require(values: Mapping[str, str], env_key: str, option: str) -> str:
    value = (values.get(env_key) or "").strip()
    if not value:
        raise ConfigError(
            f"The {env_key} environment variable is missing or empty; either provide it, "
            f"or instantiate the client with a {option} option."
        )
    return value


def _non_negative_int(values: Mapping[str, str], env_key: str, default: int) -> int:
    raw = values.get(env_key)
    if raw is None or not str(raw).strip():
        return default
    try:
        parsed = int(str(raw).strip())
    except ValueError as exc:
        raise ConfigError(f"{env_key} must be an integer, got '{raw}'") from exc
    if parsed < 0:
        raise ConfigError(f"{env_key} must not be negative")
    return parsed


def resolve_log_level(name: str) -> Optional[int]:
    """Translate a ``PAYOS_LOG`` value into a :mod:`logging` level, ``None`` for NONE."""
    try:
        return _LOG_LEVELS[name.strip().upper()]
    except KeyError as exc:
        raise ConfigError(
            f"PAYOS_LOG must be one of {', '.join(_LOG_LEVELS)}, got '{name}'"
        ) from exc


@dataclass(frozen=True)
class PayOSConfig:
    client_id: str
    api_key: str = field(repr=False)
    checksum_key: str = field(repr=False)
    partner_code: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    log_level: Optional[str] = None
    default_headers: Mapping[str, str] = field(default_factory=dict)

    def base_headers(self) -> Dict[str, str]:
        """Headers sent with every request before per-call overrides."""
        headers = {
            "x-client-id": self.client_id,
            "x-api-key": self.api_key,
            "User-Agent": f"payos-python/{__version__}",
        }
        if self.partner_code:
            headers["x-partner-code"] = self.partner_code
        headers.update(self.default_headers)
        return headers

    @classmethod
    def from_mapping(
        cls,
        values: Mapping[str, str],
        *,
        default_headers: Optional[Mapping[str, str]] = None,
    ) -> "PayOSConfig":
        client_id = _require(values, "PAYOS_CLIENT_ID", "client_id")
        api_key = _require(values, "PAYOS_API_KEY", "api_key")
        checksum_key = _require(values, "PAYOS_CHECKSUM_KEY", "checksum_key")
        partner_code = (values.get("PAYOS_PARTNER_CODE") or "").strip() or None

        base_url = (values.get("PAYOS_BASE_URL") or DEFAULT_BASE_URL).strip().rstrip("/")
        if not base_url.startswith(("http://", "https://")):
            raise ConfigError(f"PAYOS_BASE_URL must be an http(s) URL, got '{base_url}'")

        timeout_ms = _non_negative_int(values, "PAYOS_TIMEOUT_MS", DEFAULT_TIMEOUT_MS)
        if timeout_ms == 0:
            raise ConfigError("PAYOS_TIMEOUT_MS must be greater than zero")
        max_retries = _non_negative_int(values, "PAYOS_MAX_RETRIES", DEFAULT_MAX_RETRIES)

        log_level = (values.get("PAYOS_LOG") or "").strip().upper() or None
        if log_level is not None:
            resolve_log_level(log_level)

        return cls(
            client_id=client_id,
            api_key=api_key,
            checksum_key=checksum_key,
            partner_code=partner_code,
            base_url=base_url,
            timeout_ms=timeout_ms,
            max_retries=max_retries,
            log_level=log_level,
            default_headers=dict(default_headers or {}),
        )

    @classmethod
    def from_env(
        cls,
        *,
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
    ) -> "PayOSConfig":
        parameter_overrides = _collect_parameter_overrides(
            parameters,
            {
                "client_id": client_id,
                "api_key": api_key,
                "checksum_key": checksum_key,
                "partner_code": partner_code,
                "base_url": base_url,
                "timeout_ms": timeout_ms,
                "max_retries": max_retries,
                "log_level": log_level,
            },
        )
        merged_overrides = dict(overrides or {})
        merged_overrides.update(parameter_overrides)

        environment = build_environment(
            env_file=env_file,
            base=base,
            overrides=merged_overrides,
        )
        for env_key in _PARAMETER_TO_ENV_KEY.values():
            source = environment.source_of(env_key)
            if source is not None:
                logger.debug("%s taken from %s", env_key, source)
        return cls.from_mapping(environment.settings(), default_headers=default_headers)


def load_config(
    *,
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
) -> PayOSConfig:
    """
    Convenience wrapper that mirrors :meth:`PayOSConfig.from_env`.

    The configuration can be provided entirely through environment variables,
    a ``.env`` file, direct keyword arguments, or any combination of the three.
    """
    return PayOSConfig.from_env(
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


@dataclass(frozen=True)
class RequestOptions:
    """
    Per-call overrides. Layers are combined with :func:`merge_options`.

    ``cancel_event`` aborts the call when set; ``idempotency_key`` is sent as
    ``x-idempotency-key`` on every attempt of the call.
    """

    headers: Optional[Mapping[str, str]] = None
    query: Optional[Mapping[str, Any]] = None
    max_retries: Optional[int] = None
    timeout_ms: Optional[int] = None
    signature: Optional[SignatureConfig] = None
    cancel_event: Optional[threading.Event] = None
    idempotency_key: Optional[str] = None


def merge_options(*layers: Optional[RequestOptions]) -> RequestOptions:
    """
    Merge option layers left to right.

    Later non-``None`` values win; header and query mappings are unioned with
    later keys winning. Inputs are never mutated.
    """
    headers: Dict[str, str] = {}
    query: Dict[str, Any] = {}
    merged: Dict[str, Any] = {}
    saw_headers = saw_query = False
    for layer in layers:
        if layer is None:
            continue
        if layer.headers is not None:
            headers.update(layer.headers)
            saw_headers = True
        if layer.query is not None:
            query.update(layer.query)
            saw_query = True
        for name in ("max_retries", "timeout_ms", "signature", "cancel_event", "idempotency_key"):
            value = getattr(layer, name)
            if value is not None:
                merged[name] = value
    return RequestOptions(
        headers=headers if saw_headers else None,
        query=query if saw_query else None,
        **merged,
    )
